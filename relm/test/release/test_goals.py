"""Tests for the build command goal runner."""

from __future__ import annotations

import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

import pytest

import relm.release.goals as goals_module
from relm.core.result import Err, Ok, Result
from relm.platform.process import ProcessError
from relm.release.goals import CommandGoalRunner, GoalException


def test_empty_command_rejected() -> None:
    with pytest.raises(ValueError, match="must not be empty"):
        CommandGoalRunner(())


def test_command_line() -> None:
    runner = CommandGoalRunner(["mvn", "-B"])

    assert runner.command_line(["clean", "verify"], ["-Dx=1"]) == ["mvn", "-B", "clean", "verify", "-Dx=1"]
    assert runner.command_line(["deploy"], release_profile=True) == [
        "mvn",
        "-B",
        "deploy",
        "-DperformRelease=true",
    ]


def test_run_returns_output(tmp_path: Path) -> None:
    runner = CommandGoalRunner([sys.executable, "-c", "import sys; print(' '.join(sys.argv[1:]))"])

    result = runner.run(["clean", "verify"], tmp_path)

    assert isinstance(result, Ok)
    assert result.value.strip() == "clean verify"


def test_failed_build_is_err(tmp_path: Path) -> None:
    runner = CommandGoalRunner([sys.executable, "-c", "import sys; sys.exit(1)"])

    result = runner.run(["verify"], tmp_path)

    assert isinstance(result, Err)
    assert result.error.returncode == 1


def test_unlaunchable_build_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[list[str], Mapping[str, str] | None]] = []

    def fake_run(
        cmd: Sequence[str], cwd: Path, env: Mapping[str, str] | None = None, *, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        calls.append((list(cmd), env))
        return Err(ProcessError(tuple(cmd), -1, "", "No such file or directory: 'mvn'"))

    monkeypatch.setattr(goals_module, "run_process", fake_run)
    runner = CommandGoalRunner(["mvn"], env={"MAVEN_OPTS": "-Xmx1g"})

    with pytest.raises(GoalException, match="No such file") as excinfo:
        runner.run(["deploy"], tmp_path)

    assert excinfo.value.error.returncode == -1
    assert calls == [(["mvn", "deploy"], {"MAVEN_OPTS": "-Xmx1g"})]
