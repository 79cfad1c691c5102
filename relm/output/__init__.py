"""Output formatting and console abstraction."""

from relm.output.console import ConsoleProtocol, MockConsole, OutputRecord, RichConsole, Style

__all__ = ["ConsoleProtocol", "MockConsole", "OutputRecord", "RichConsole", "Style"]
