"""Platform helpers: subprocesses and file writes."""

from relm.platform.files import atomic_write_bytes, atomic_write_text
from relm.platform.process import ProcessError, run

__all__ = [
    "ProcessError",
    "atomic_write_bytes",
    "atomic_write_text",
    "run",
]
