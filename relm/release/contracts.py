"""Cross-layer contracts for the release bounded context."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime

from relm.core.config import ReleaseConfig
from relm.output.console import ConsoleProtocol
from relm.release.descriptor import ReleaseDescriptor
from relm.release.listener import NullListener, ReleaseListener
from relm.release.reactor import Reactor

__all__ = [
    "CleanRequest",
    "PerformRequest",
    "PrepareRequest",
    "ReleaseEnvironment",
    "ReleaseRequest",
    "ReleaseResult",
]


@dataclass(frozen=True, slots=True)
class ReleaseEnvironment:
    """Ambient collaborators handed to every phase.

    Attributes:
        listener: Receives goal events; the release manager installs the
            request's listener for the duration of a run.
        env: Environment of spawned processes (None inherits).
        clean_checkout: Remove the perform checkout once goals ran.
    """

    config: ReleaseConfig
    console: ConsoleProtocol
    listener: ReleaseListener = field(default_factory=NullListener)
    env: Mapping[str, str] | None = None
    clean_checkout: bool = False

    def with_listener(self, listener: ReleaseListener) -> ReleaseEnvironment:
        return replace(self, listener=listener)


@dataclass(frozen=True, slots=True)
class PrepareRequest:
    descriptor: ReleaseDescriptor
    environment: ReleaseEnvironment
    reactor: Reactor
    listener: ReleaseListener = field(default_factory=NullListener)
    resume: bool = True
    dry_run: bool = False
    descriptor_supplied: bool = False


@dataclass(frozen=True, slots=True)
class PerformRequest:
    descriptor: ReleaseDescriptor
    environment: ReleaseEnvironment
    reactor: Reactor
    listener: ReleaseListener = field(default_factory=NullListener)
    dry_run: bool = False
    clean: bool = False
    descriptor_supplied: bool = False


@dataclass(frozen=True, slots=True)
class CleanRequest:
    descriptor: ReleaseDescriptor
    environment: ReleaseEnvironment
    reactor: Reactor


@dataclass(frozen=True, slots=True)
class ReleaseRequest:
    """Request for the fixed sequences: rollback, branch, update-versions."""

    descriptor: ReleaseDescriptor
    environment: ReleaseEnvironment
    reactor: Reactor
    listener: ReleaseListener = field(default_factory=NullListener)
    dry_run: bool = False
    descriptor_supplied: bool = False


@dataclass(frozen=True, slots=True)
class ReleaseResult:
    """Outcome of one release operation.

    Attributes:
        phases_run: Phases executed (or simulated), in order.
        output: Messages reported by the phases.
    """

    operation: str
    success: bool
    phases_run: tuple[str, ...]
    output: tuple[str, ...]
    start_time: datetime
    end_time: datetime

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()
