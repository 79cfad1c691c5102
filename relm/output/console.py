"""Console output abstraction.

Phases and the release manager report progress through ConsoleProtocol
rather than printing directly, so the release core never depends on a
terminal library. RichConsole renders for a terminal; MockConsole records
lines for tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "OutputRecord",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()  # operation finished
    ERROR = auto()
    WARNING = auto()  # problem that did not stop the phase
    INFO = auto()
    DIM = auto()  # per-phase progress lines
    BOLD = auto()
    HEADER = auto()  # phase name

    def __str__(self) -> str:
        return self.name.lower()


class ConsoleProtocol(Protocol):
    """Protocol for styled console output.

    The release environment carries one of these; phases, listeners and CLI
    commands all write through it.
    """

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        """Print a message with optional styling.

        Args:
            message: Text to print, shown verbatim (never parsed as markup).
            style: Style to apply.
        """
        ...

    def success(self, message: str) -> None:
        """Print a success line (prefixed ``OK``)."""
        ...

    def error(self, message: str) -> None:
        """Print an error line (prefixed ``error:``)."""
        ...

    def warning(self, message: str) -> None:
        """Print a warning line (prefixed ``warning:``)."""
        ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None:
        """Print a section header."""
        ...

    def newline(self) -> None: ...


class RichConsole:
    """Console implementation using Rich.

    Module descriptors routinely contain ``[...]`` text (version ranges,
    property defaults), so every message is escaped before Rich sees it.

    Args:
        stderr: Write to standard error instead of standard output.
    """

    def __init__(self, *, stderr: bool = False) -> None:
        # Import Rich lazily
        from rich.console import Console

        self._console = Console(stderr=stderr)
        self._style_map = {
            Style.DEFAULT: "",
            Style.SUCCESS: "green",
            Style.ERROR: "red bold",
            Style.WARNING: "yellow",
            Style.INFO: "cyan",
            Style.DIM: "dim",
            Style.BOLD: "bold",
            Style.HEADER: "blue bold",
        }

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        rich_style = self._style_map.get(style, "")
        if rich_style:
            self._console.print(message, style=rich_style, markup=False, highlight=False)
        else:
            self._console.print(message, markup=False, highlight=False)

    def success(self, message: str) -> None:
        self._console.print(f"[green]OK[/green] {_escape(message)}")

    def error(self, message: str) -> None:
        self._console.print(f"[red bold]error:[/red bold] {_escape(message)}")

    def warning(self, message: str) -> None:
        self._console.print(f"[yellow]warning:[/yellow] {_escape(message)}")

    def info(self, message: str) -> None:
        self._console.print(f"[cyan]info:[/cyan] {_escape(message)}")

    def header(self, message: str) -> None:
        self._console.print(f"\n[blue bold]{_escape(message)}[/blue bold]")

    def newline(self) -> None:
        self._console.print()


def _escape(message: str) -> str:
    from rich.markup import escape

    return escape(message)


@dataclass
class OutputRecord:
    """A single output record for MockConsole."""

    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Console implementation that captures output for testing.

    Lines are recorded with the same prefixes RichConsole prints (``OK``,
    ``error:``, ``warning:``), so assertions read like terminal output.

    Usage:
        console = MockConsole()
        manager.clean(CleanRequest(descriptor, ReleaseEnvironment(config, console), reactor))
        assert console.find("release files removed")
    """

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"OK {message}", Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR))

    def warning(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"warning: {message}", Style.WARNING))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"info: {message}", Style.INFO))

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    def newline(self) -> None:
        self.outputs.append(OutputRecord("", Style.DEFAULT))

    # Test helpers

    def clear(self) -> None:
        """Forget everything captured so far."""
        self.outputs.clear()

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        """All captured messages joined by newlines."""
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        """Check if any error was printed."""
        return any(o.style == Style.ERROR for o in self.outputs)

    def has_warning(self) -> bool:
        return any(o.style == Style.WARNING for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        """Find all outputs containing a substring.

        Args:
            substring: Text to look for (case-sensitive).

        Returns:
            Matching records in print order; empty when nothing matched.
        """
        return [o for o in self.outputs if substring in o.message]

    def count(self, style: Style) -> int:
        """Number of records printed with ``style``."""
        return sum(1 for o in self.outputs if o.style == style)
