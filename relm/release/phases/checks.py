# SPDX-License-Identifier: MIT
"""Precondition phases: descriptor sanity and working copy state."""

from __future__ import annotations

from pathlib import PurePath

from relm.core.result import Err, Ok, Result
from relm.release.contracts import ReleaseEnvironment
from relm.release.descriptor import ReleaseDescriptor
from relm.release.errors import ReleaseError, validation_error
from relm.release.phases.base import PhaseOutput, ReleasePhase
from relm.release.phases.scm import call_provider, resolve_provider
from relm.release.reactor import Reactor
from relm.release.store import DESCRIPTOR_FILE_NAME
from relm.release.versions import is_snapshot
from relm.scm.provider import ScmFileSet, ScmManager


class CheckDescriptorsPhase(ReleasePhase):
    """Validate the reactor and settle the SCM URL of the release.

    When the descriptor carries no ``scm_source_url`` it is taken from the
    root module's ``<developerConnection>`` (falling back to
    ``<connection>``).
    """

    def __init__(self, name: str = "check-descriptors", *, require_snapshots: bool = True) -> None:
        super().__init__(name)
        self.require_snapshots = require_snapshots

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        root = reactor.root
        if root is None:
            return Err(validation_error("no modules to release"))

        problems = reactor.validate()
        if problems:
            return Err(validation_error("inconsistent modules: " + "; ".join(problems)))

        if not descriptor.scm_source_url:
            scm = root.scm
            url = (scm.developer_connection or scm.connection) if scm is not None else None
            if not url:
                return Err(
                    validation_error(
                        f"missing <scm> connection in {root.path}",
                        hint="declare <scm><developerConnection> or pass --scm-url",
                    )
                )
            descriptor.scm_source_url = url

        if descriptor.scm_relative_path is None:
            descriptor.scm_relative_path = reactor.root_relative_path()

        if self.require_snapshots:
            released = [
                f"{m.key} ({m.resolve_property(m.effective_version)})"
                for m in reactor
                if not m.inherits_version
                and not is_snapshot(m.resolve_property(m.effective_version))
                and m.key not in descriptor.release_versions
            ]
            if released:
                return Err(validation_error("not a snapshot version: " + ", ".join(released)))

        return Ok(PhaseOutput.of(f"{len(reactor)} module(s), scm {descriptor.scm_source_url}"))

    def simulate(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        return self.execute(descriptor, environment, reactor)


class ScmCheckModificationsPhase(ReleasePhase):
    """Refuse to release from a working copy with local modifications.

    Descriptor backups and shadows and the release state file are ignored:
    an interrupted release leaves them behind.
    """

    def __init__(self, scm_manager: ScmManager, name: str = "scm-check-modifications") -> None:
        super().__init__(name)
        self._scm_manager = scm_manager

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        resolved = resolve_provider(self._scm_manager, descriptor)
        if isinstance(resolved, Err):
            return resolved
        repository, provider = resolved.value

        fileset = ScmFileSet(descriptor.base_directory)
        status = call_provider("status", lambda: provider.status(repository, fileset))
        if isinstance(status, Err):
            return status

        descriptor_file = environment.config.descriptor_file
        modified = [f for f in status.value.changed_files if not _is_release_file(f, descriptor_file)]
        if modified:
            return Err(
                validation_error(
                    "cannot prepare the release because you have local modifications: "
                    + ", ".join(sorted(modified)),
                    hint="commit or revert them first",
                )
            )
        return Ok(PhaseOutput.of("working copy is clean"))

    def simulate(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        return self.execute(descriptor, environment, reactor)


def _is_release_file(path: str, descriptor_file: str) -> bool:
    name = PurePath(path).name
    return name == DESCRIPTOR_FILE_NAME or name.startswith(descriptor_file + ".")
