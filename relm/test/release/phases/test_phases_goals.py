# SPDX-License-Identifier: MIT
from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from relm.core.config import ReleaseConfig
from relm.core.result import Err, Ok
from relm.platform.process import ProcessError
from relm.release.contracts import ReleaseEnvironment
from relm.release.descriptor import ReleaseDescriptor
from relm.release.goals import MockGoalRunner
from relm.release.listener import RecordingListener
from relm.release.phases.goals import RunGoalsPhase, perform_directory
from relm.release.reactor import Reactor


def test_preparation_goals_from_config(
    tmp_path: Path,
    descriptor: ReleaseDescriptor,
    environment: ReleaseEnvironment,
    project: Reactor,
    goal_runner: MockGoalRunner,
) -> None:
    listener = RecordingListener()

    result = RunGoalsPhase("run-preparation-goals", goal_runner, "preparation").execute(
        descriptor, environment.with_listener(listener), project
    )

    assert isinstance(result, Ok)
    assert goal_runner.invocations == [(("clean", "verify"), tmp_path, (), False)]
    assert listener.events == ["goal_start:run-preparation-goals:clean verify", "goal_end"]


def test_perform_goals_use_checkout_and_release_profile(
    tmp_path: Path,
    descriptor: ReleaseDescriptor,
    environment: ReleaseEnvironment,
    project: Reactor,
    goal_runner: MockGoalRunner,
) -> None:
    descriptor.perform_goals = ("deploy", "site-deploy")
    descriptor.additional_arguments = ("-Dgpg.skip",)

    RunGoalsPhase("run-perform-goals", goal_runner, "perform").execute(descriptor, environment, project)

    assert goal_runner.invocations == [
        (("deploy", "site-deploy"), tmp_path / "target" / "checkout", ("-Dgpg.skip",), True)
    ]


@pytest.mark.parametrize(
    ("relative_path", "expected"),
    [
        ("", Path("checkout")),
        (None, Path("checkout")),
        ("my/project", Path("checkout/my/project")),
        ("my/project/", Path("checkout/my/project")),
    ],
)
def test_perform_directory(relative_path: str | None, expected: Path) -> None:
    assert perform_directory(Path("checkout"), relative_path) == expected


def test_perform_goals_run_in_root_module_directory(
    tmp_path: Path,
    descriptor: ReleaseDescriptor,
    environment: ReleaseEnvironment,
    project: Reactor,
    goal_runner: MockGoalRunner,
) -> None:
    descriptor.checkout_directory = tmp_path / "out"
    descriptor.scm_relative_path = "parent"

    RunGoalsPhase("run-perform-goals", goal_runner, "perform").execute(descriptor, environment, project)

    assert goal_runner.invocations[0][1] == tmp_path / "out" / "parent"


def test_failed_build_is_command_error(
    descriptor: ReleaseDescriptor,
    environment: ReleaseEnvironment,
    project: Reactor,
    goal_runner: MockGoalRunner,
) -> None:
    goal_runner.fail_with(ProcessError(("mvn", "verify"), 1, "[INFO] building\n", "BUILD FAILURE\n"))

    result = RunGoalsPhase("run-preparation-goals", goal_runner, "preparation").execute(
        descriptor, environment, project
    )

    assert isinstance(result, Err)
    assert result.error.kind == "command"
    assert result.error.message == "goals clean verify failed (exit 1)"
    assert result.error.output is not None and "BUILD FAILURE" in result.error.output


def test_unlaunchable_build_is_execution_error_and_goal_ends(
    descriptor: ReleaseDescriptor,
    environment: ReleaseEnvironment,
    project: Reactor,
    goal_runner: MockGoalRunner,
) -> None:
    goal_runner.fail_with(ProcessError(("mvn",), -1, "", "No such file or directory"))
    listener = RecordingListener()

    result = RunGoalsPhase("run-preparation-goals", goal_runner, "preparation").execute(
        descriptor, environment.with_listener(listener), project
    )

    assert isinstance(result, Err)
    assert result.error.kind == "execution"
    assert listener.events[-1] == "goal_end"


def test_simulate_emits_goal_events_without_running(
    descriptor: ReleaseDescriptor,
    environment: ReleaseEnvironment,
    project: Reactor,
    goal_runner: MockGoalRunner,
) -> None:
    listener = RecordingListener()

    result = RunGoalsPhase("run-perform-goals", goal_runner, "perform").simulate(
        descriptor, environment.with_listener(listener), project
    )

    assert isinstance(result, Ok)
    assert goal_runner.invocations == []
    assert listener.events == ["goal_start:run-perform-goals:deploy", "goal_end"]


def test_no_goals(
    descriptor: ReleaseDescriptor,
    environment: ReleaseEnvironment,
    project: Reactor,
    goal_runner: MockGoalRunner,
) -> None:
    env = replace(environment, config=ReleaseConfig(preparation_goals=()))

    result = RunGoalsPhase("run-preparation-goals", goal_runner, "preparation").execute(descriptor, env, project)

    assert isinstance(result, Ok)
    assert result.value.messages == ("no goals to run",)
    assert goal_runner.invocations == []
