"""Error types for the release bounded context.

Every failure surfaced by a phase or by the release manager is a
ReleaseError discriminated by ``kind``:

- ``validation``: preconditions not met (missing SCM URL, inconsistent
  completed-phase marker, unmappable version). Never carries a cause.
- ``execution``: something unexpected failed (descriptor store I/O,
  provider exception, unparseable module descriptor). Always carries the
  originating exception as ``cause``.
- ``command``: an SCM command ran but reported failure. No cause; the
  provider output is kept in ``output``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

__all__ = [
    "ReleaseError",
    "ReleaseErrorKind",
    "command_error",
    "execution_error",
    "validation_error",
]

ReleaseErrorKind = Literal["validation", "execution", "command"]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    Attributes:
        kind: Discriminant (see module docstring).
        message: Human-readable description.
        hint: Optional remediation.
        cause: Originating exception (``execution`` only).
        output: Provider output (``command`` only).
        phase: Name of the phase that failed, when known.
        completed_phase: Descriptor marker at failure time; resuming
            ``prepare`` continues right after it.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
    cause: BaseException | None = None
    output: str | None = None
    phase: str | None = None
    completed_phase: str | None = None

    def in_phase(self, phase: str, completed_phase: str | None) -> ReleaseError:
        """Attach phase context, keeping any phase already recorded."""
        return replace(
            self,
            phase=self.phase or phase,
            completed_phase=completed_phase,
        )

    def pretty(self) -> str:
        text = self.message
        if self.phase:
            text = f"[{self.phase}] {text}"
        if self.cause is not None:
            text = f"{text}: {self.cause}"
        if self.hint:
            text = f"{text} (hint: {self.hint})"
        return text


def validation_error(message: str, *, hint: str | None = None) -> ReleaseError:
    return ReleaseError(kind="validation", message=message, hint=hint)


def execution_error(message: str, cause: BaseException, *, hint: str | None = None) -> ReleaseError:
    return ReleaseError(kind="execution", message=message, hint=hint, cause=cause)


def command_error(message: str, output: str, *, hint: str | None = None) -> ReleaseError:
    return ReleaseError(kind="command", message=message, hint=hint, output=output)
