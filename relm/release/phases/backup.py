# SPDX-License-Identifier: MIT
"""Descriptor backups taken before a release and restored by rollback."""

from __future__ import annotations

import shutil
from pathlib import Path

from relm.core.result import Err, Ok, Result
from relm.platform.files import atomic_write_bytes
from relm.release.contracts import ReleaseEnvironment
from relm.release.descriptor import ReleaseDescriptor
from relm.release.errors import ReleaseError, execution_error, validation_error
from relm.release.phases.base import PhaseOutput, ReleasePhase
from relm.release.reactor import Reactor
from relm.release.rewrite import remove_shadows, shadow_path

BACKUP_SUFFIX = ".releaseBackup"


def backup_path(path: Path) -> Path:
    return shadow_path(path, BACKUP_SUFFIX)


class CreateBackupDescriptorsPhase(ReleasePhase):
    def __init__(self, name: str = "create-backup-descriptors") -> None:
        super().__init__(name)

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        paths = reactor.paths()
        for path in paths:
            try:
                shutil.copy2(path, backup_path(path))
            except OSError as e:
                return Err(execution_error(f"failed to back up {path}", e))
        return Ok(PhaseOutput.of(f"backed up {len(paths)} descriptor(s)"))

    def simulate(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        return self.execute(descriptor, environment, reactor)

    def clean(self, reactor: Reactor) -> None:
        remove_shadows(reactor, BACKUP_SUFFIX)


class RestoreBackupDescriptorsPhase(ReleasePhase):
    """Put every descriptor back the way it was before the release."""

    def __init__(self, name: str = "restore-backup-descriptors") -> None:
        super().__init__(name)

    def _missing(self, reactor: Reactor) -> list[Path]:
        return [p for p in reactor.paths() if not backup_path(p).is_file()]

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        missing = self._missing(reactor)
        if missing:
            return Err(
                validation_error(
                    "no backup to restore for: " + ", ".join(str(p) for p in missing),
                    hint="was the release prepared from this working copy?",
                )
            )

        paths = reactor.paths()
        for path in paths:
            try:
                atomic_write_bytes(path, backup_path(path).read_bytes())
            except OSError as e:
                return Err(execution_error(f"failed to restore {path}", e))
        return Ok(PhaseOutput.of(f"restored {len(paths)} descriptor(s)"))

    def simulate(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        missing = self._missing(reactor)
        if missing:
            return Err(validation_error("no backup to restore for: " + ", ".join(str(p) for p in missing)))
        return Ok(PhaseOutput.of(f"would restore {len(reactor.paths())} descriptor(s)"))
