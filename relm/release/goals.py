"""Build goal execution.

Preparation and perform phases hand their goals to a GoalRunner.
CommandGoalRunner appends the goals to a configured build command
(``mvn``, ``./gradlew``, ``make`` ...) and runs it in the module directory.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol

from relm.core.result import Err, Ok, Result
from relm.platform.process import ProcessError
from relm.platform.process import run as run_process

__all__ = ["CommandGoalRunner", "GoalException", "GoalRunner", "MockGoalRunner"]

BUILD_TIMEOUT_SECONDS = 60 * 60.0
RELEASE_PROFILE_ARGUMENTS = ("-DperformRelease=true",)


class GoalException(Exception):
    """The build command could not be launched (or timed out)."""

    def __init__(self, error: ProcessError) -> None:
        detail = f": {error.stderr.strip()}" if error.stderr.strip() else ""
        super().__init__(f"{error}{detail}")
        self.error = error


class GoalRunner(Protocol):
    def run(
        self,
        goals: Sequence[str],
        cwd: Path,
        arguments: Sequence[str] = (),
        *,
        release_profile: bool = False,
    ) -> Result[str, ProcessError]:
        """Run ``goals``; Err when the build ran and failed.

        Raises GoalException when the build could not be started.
        """
        ...


class CommandGoalRunner:
    """Runs goals as arguments of an external build command."""

    def __init__(
        self,
        command: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        timeout: float | None = BUILD_TIMEOUT_SECONDS,
    ) -> None:
        if not command:
            raise ValueError("build command must not be empty")
        self.command = tuple(command)
        self.env = env
        self.timeout = timeout

    def command_line(
        self, goals: Sequence[str], arguments: Sequence[str] = (), *, release_profile: bool = False
    ) -> list[str]:
        cmd = [*self.command, *goals, *arguments]
        if release_profile:
            cmd.extend(RELEASE_PROFILE_ARGUMENTS)
        return cmd

    def run(
        self,
        goals: Sequence[str],
        cwd: Path,
        arguments: Sequence[str] = (),
        *,
        release_profile: bool = False,
    ) -> Result[str, ProcessError]:
        cmd = self.command_line(goals, arguments, release_profile=release_profile)
        result = run_process(cmd, cwd=cwd, env=self.env, timeout=self.timeout)
        if isinstance(result, Err):
            if not result.error.started:
                raise GoalException(result.error)
            return result
        return Ok(result.value)


class MockGoalRunner:
    """Goal runner for testing: records invocations, never spawns anything.

    Usage:
        runner = MockGoalRunner()
        runner.fail_with(ProcessError(("mvn",), 1, "", "BUILD FAILURE"))
    """

    def __init__(self) -> None:
        self.invocations: list[tuple[tuple[str, ...], Path, tuple[str, ...], bool]] = []
        self._error: ProcessError | None = None

    def fail_with(self, error: ProcessError) -> None:
        """Make every later run fail with ``error`` (raises when not started)."""
        self._error = error

    def run(
        self,
        goals: Sequence[str],
        cwd: Path,
        arguments: Sequence[str] = (),
        *,
        release_profile: bool = False,
    ) -> Result[str, ProcessError]:
        self.invocations.append((tuple(goals), cwd, tuple(arguments), release_profile))
        error = self._error
        if error is None:
            return Ok(f"ran {' '.join(goals)}")
        if not error.started:
            raise GoalException(error)
        return Err(error)
