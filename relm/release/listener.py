"""Release listener: an ordered event stream mirroring phase/goal execution."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from relm.output.console import ConsoleProtocol, Style

__all__ = ["ConsoleListener", "NullListener", "RecordingListener", "ReleaseListener"]


class ReleaseListener(Protocol):
    def phase_start(self, name: str) -> None: ...

    def phase_end(self) -> None: ...

    def goal_start(self, name: str, goals: Sequence[str]) -> None: ...

    def goal_end(self) -> None: ...


class NullListener:
    """Listener used when the caller does not observe the run."""

    def phase_start(self, name: str) -> None:
        del name

    def phase_end(self) -> None:
        return None

    def goal_start(self, name: str, goals: Sequence[str]) -> None:
        del name, goals

    def goal_end(self) -> None:
        return None


class ConsoleListener:
    """Prints one line per phase and goal invocation."""

    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console

    def phase_start(self, name: str) -> None:
        self._console.print(f"[{name}]", Style.BOLD)

    def phase_end(self) -> None:
        return None

    def goal_start(self, name: str, goals: Sequence[str]) -> None:
        self._console.print(f"{name}: {' '.join(goals)}", Style.DIM)

    def goal_end(self) -> None:
        return None


class RecordingListener:
    """Listener that keeps the event stream, for tests and reports."""

    def __init__(self) -> None:
        self.events: list[str] = []

    def phase_start(self, name: str) -> None:
        self.events.append(f"phase_start:{name}")

    def phase_end(self) -> None:
        self.events.append("phase_end")

    def goal_start(self, name: str, goals: Sequence[str]) -> None:
        self.events.append(f"goal_start:{name}:{' '.join(goals)}")

    def goal_end(self) -> None:
        self.events.append("goal_end")
