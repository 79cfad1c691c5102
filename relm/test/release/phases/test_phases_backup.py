# SPDX-License-Identifier: MIT
from __future__ import annotations

from pathlib import Path

from relm.core.result import Err, Ok
from relm.release.contracts import ReleaseEnvironment
from relm.release.descriptor import ReleaseDescriptor
from relm.release.phases.backup import (
    CreateBackupDescriptorsPhase,
    RestoreBackupDescriptorsPhase,
    backup_path,
)
from relm.release.reactor import Reactor


def test_backup_path() -> None:
    assert backup_path(Path("core/module.xml")) == Path("core/module.xml.releaseBackup")


def test_backup_then_restore(
    tmp_path: Path, descriptor: ReleaseDescriptor, environment: ReleaseEnvironment, project: Reactor
) -> None:
    original = (tmp_path / "core" / "module.xml").read_bytes()

    created = CreateBackupDescriptorsPhase().execute(descriptor, environment, project)
    (tmp_path / "core" / "module.xml").write_text("<project/>", encoding="utf-8")
    restored = RestoreBackupDescriptorsPhase().execute(descriptor, environment, project)

    assert isinstance(created, Ok)
    assert created.value.messages == ("backed up 2 descriptor(s)",)
    assert isinstance(restored, Ok)
    assert (tmp_path / "core" / "module.xml").read_bytes() == original


def test_clean_removes_backups(
    tmp_path: Path, descriptor: ReleaseDescriptor, environment: ReleaseEnvironment, project: Reactor
) -> None:
    phase = CreateBackupDescriptorsPhase()
    phase.simulate(descriptor, environment, project)
    assert (tmp_path / "module.xml.releaseBackup").is_file()

    phase.clean(project)

    assert list(tmp_path.rglob("*.releaseBackup")) == []


def test_restore_without_backup(
    tmp_path: Path, descriptor: ReleaseDescriptor, environment: ReleaseEnvironment, project: Reactor
) -> None:
    result = RestoreBackupDescriptorsPhase().execute(descriptor, environment, project)

    assert isinstance(result, Err)
    assert result.error.kind == "validation"
    assert str(tmp_path / "module.xml") in result.error.message


def test_restore_simulate_leaves_descriptors(
    tmp_path: Path, descriptor: ReleaseDescriptor, environment: ReleaseEnvironment, project: Reactor
) -> None:
    CreateBackupDescriptorsPhase().execute(descriptor, environment, project)
    (tmp_path / "module.xml").write_text("<project>changed</project>", encoding="utf-8")

    result = RestoreBackupDescriptorsPhase().simulate(descriptor, environment, project)

    assert isinstance(result, Ok)
    assert result.value.messages == ("would restore 2 descriptor(s)",)
    assert (tmp_path / "module.xml").read_text(encoding="utf-8") == "<project>changed</project>"
