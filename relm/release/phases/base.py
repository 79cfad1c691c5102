# SPDX-License-Identifier: MIT
"""Base types for release phases."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from relm.core.result import Ok, Result
from relm.release.contracts import ReleaseEnvironment
from relm.release.descriptor import ReleaseDescriptor
from relm.release.errors import ReleaseError
from relm.release.reactor import Reactor


@dataclass(frozen=True, slots=True)
class PhaseOutput:
    """What a phase reports back to the release manager.

    Attributes:
        messages: Progress lines (printed dimmed).
        warnings: Problems that did not stop the phase.
    """

    messages: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @classmethod
    def of(cls, *messages: str) -> PhaseOutput:
        """Create an output holding the given messages."""
        return cls(messages=messages)


class ReleasePhase(ABC):
    """One named step of a release sequence.

    ``execute`` does the work. ``simulate`` does what a dry run may do
    (write shadow files, report commands) without touching descriptors or
    the repository. ``clean`` removes whatever ``simulate`` left behind.
    """

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    @abstractmethod
    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]: ...

    def simulate(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        """Report the phase without running it."""
        del descriptor, environment, reactor
        return Ok(PhaseOutput.of(f"{self.name} skipped (dry run)"))

    def clean(self, reactor: Reactor) -> None:
        """Remove simulate artifacts (nothing by default)."""
        del reactor
