# SPDX-License-Identifier: MIT
"""Build goal phases: verify the prepared release, build the tagged one."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from relm.core.result import Err, Ok, Result
from relm.release.contracts import ReleaseEnvironment
from relm.release.descriptor import ReleaseDescriptor
from relm.release.errors import ReleaseError, command_error, execution_error
from relm.release.goals import GoalException, GoalRunner
from relm.release.phases.base import PhaseOutput, ReleasePhase
from relm.release.phases.scm import DEFAULT_CHECKOUT_DIRECTORY
from relm.release.reactor import Reactor

GoalStage = Literal["preparation", "perform"]


def perform_directory(checkout: Path, relative_path: str | None) -> Path:
    """Directory of the root module inside a checkout of the released tree."""
    relative = (relative_path or "").strip("/")
    return checkout / relative if relative else checkout


class RunGoalsPhase(ReleasePhase):
    """Run the preparation or perform goals through the goal runner.

    The listener sees ``goal_start``/``goal_end`` around the invocation, in
    dry runs too.
    """

    def __init__(self, name: str, runner: GoalRunner, stage: GoalStage) -> None:
        super().__init__(name)
        self._runner = runner
        self.stage = stage

    def _goals(self, descriptor: ReleaseDescriptor, environment: ReleaseEnvironment) -> tuple[str, ...]:
        if self.stage == "preparation":
            return descriptor.preparation_goals or environment.config.preparation_goals
        return descriptor.perform_goals or environment.config.perform_goals

    def _directory(self, descriptor: ReleaseDescriptor) -> Path:
        if self.stage == "preparation":
            return descriptor.base_directory
        checkout = descriptor.checkout_directory or descriptor.base_directory / DEFAULT_CHECKOUT_DIRECTORY
        return perform_directory(checkout, descriptor.scm_relative_path)

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        goals = self._goals(descriptor, environment)
        if not goals:
            return Ok(PhaseOutput.of("no goals to run"))

        cwd = self._directory(descriptor)
        release_profile = self.stage == "perform" and descriptor.use_release_profile
        listener = environment.listener
        listener.goal_start(self.name, goals)
        try:
            result = self._runner.run(
                goals, cwd, descriptor.additional_arguments, release_profile=release_profile
            )
        except GoalException as e:
            return Err(execution_error(f"failed to run goals {' '.join(goals)}", e))
        finally:
            listener.goal_end()

        if isinstance(result, Err):
            error = result.error
            return Err(
                command_error(
                    f"goals {' '.join(goals)} failed (exit {error.returncode})",
                    "\n".join(part for part in (error.stdout, error.stderr) if part),
                )
            )
        return Ok(PhaseOutput.of(f"ran {' '.join(goals)} in {cwd}"))

    def simulate(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        goals = self._goals(descriptor, environment)
        if not goals:
            return Ok(PhaseOutput.of("no goals to run"))
        listener = environment.listener
        listener.goal_start(self.name, goals)
        listener.goal_end()
        return Ok(PhaseOutput.of(f"would run {' '.join(goals)} in {self._directory(descriptor)}"))
