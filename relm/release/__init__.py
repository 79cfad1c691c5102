"""Release bounded context.

- descriptor, store: durable release state and its persistence
- reactor, xmldoc, rewrite, scm_translate, versions: module descriptors and
  how they are rewritten
- phases, sequences: the steps of each operation
- manager: orchestration (prepare, perform, clean, rollback, branch,
  update-versions)
"""

from __future__ import annotations

from relm.release.contracts import (
    CleanRequest,
    PerformRequest,
    PrepareRequest,
    ReleaseEnvironment,
    ReleaseRequest,
    ReleaseResult,
)
from relm.release.descriptor import ReleaseDescriptor, ResolvedDependency, ScmInfo
from relm.release.errors import ReleaseError, command_error, execution_error, validation_error
from relm.release.listener import ConsoleListener, NullListener, RecordingListener, ReleaseListener
from relm.release.manager import ReleaseManager
from relm.release.reactor import Coordinate, ModuleRecord, Reactor, load_reactor
from relm.release.sequences import PhaseRegistry, build_default_registry
from relm.release.store import DescriptorStore, DescriptorStoreError, JsonDescriptorStore

__all__ = [
    "CleanRequest",
    "ConsoleListener",
    "Coordinate",
    "DescriptorStore",
    "DescriptorStoreError",
    "JsonDescriptorStore",
    "ModuleRecord",
    "NullListener",
    "PerformRequest",
    "PhaseRegistry",
    "PrepareRequest",
    "Reactor",
    "RecordingListener",
    "ReleaseDescriptor",
    "ReleaseEnvironment",
    "ReleaseError",
    "ReleaseListener",
    "ReleaseManager",
    "ReleaseRequest",
    "ReleaseResult",
    "ResolvedDependency",
    "ScmInfo",
    "build_default_registry",
    "command_error",
    "execution_error",
    "load_reactor",
    "validation_error",
]
