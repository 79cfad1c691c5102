# SPDX-License-Identifier: MIT
from __future__ import annotations

from pathlib import Path

from relm.core.result import Err, Ok
from relm.release.contracts import ReleaseEnvironment
from relm.release.descriptor import ReleaseDescriptor, ScmInfo
from relm.release.phases.mapping import MapVersionsPhase
from relm.release.phases.rewrite import RewriteDescriptorsPhase
from relm.release.reactor import Reactor


def _map(descriptor: ReleaseDescriptor, environment: ReleaseEnvironment, project: Reactor) -> None:
    MapVersionsPhase("map-release-versions", "release").execute(descriptor, environment, project)
    MapVersionsPhase("map-development-versions", "development").execute(descriptor, environment, project)


def test_release_rewrite_in_place_records_original_scm(
    tmp_path: Path, descriptor: ReleaseDescriptor, environment: ReleaseEnvironment, project: Reactor
) -> None:
    _map(descriptor, environment, project)

    result = RewriteDescriptorsPhase("rewrite-descriptors-for-release", "release").execute(
        descriptor, environment, project
    )

    assert isinstance(result, Ok)
    root = (tmp_path / "module.xml").read_text(encoding="utf-8")
    assert "<version>1.0</version>" in root
    assert "<tag>app-1.0</tag>" in root
    assert descriptor.original_scm["org.example:app"] == ScmInfo(
        connection="scm:git:https://example.com/app.git",
        developer_connection="scm:git:ssh://git@example.com/app.git",
    )
    assert "org.example:core" not in descriptor.original_scm


def test_simulate_writes_shadows_and_clean_removes_them(
    tmp_path: Path, descriptor: ReleaseDescriptor, environment: ReleaseEnvironment, project: Reactor
) -> None:
    _map(descriptor, environment, project)
    before = (tmp_path / "module.xml").read_bytes()
    phase = RewriteDescriptorsPhase("rewrite-descriptors-for-release", "release")

    result = phase.simulate(descriptor, environment, project)

    assert isinstance(result, Ok)
    assert (tmp_path / "module.xml").read_bytes() == before
    assert (tmp_path / "module.xml.tag").is_file()
    assert (tmp_path / "core" / "module.xml.tag").is_file()

    phase.clean(project)

    assert not (tmp_path / "module.xml.tag").exists()
    assert not (tmp_path / "core" / "module.xml.tag").exists()


def test_development_rewrite_skipped_without_working_copy_update(
    tmp_path: Path, descriptor: ReleaseDescriptor, environment: ReleaseEnvironment, project: Reactor
) -> None:
    descriptor.update_working_copy_versions = False
    before = (tmp_path / "module.xml").read_bytes()

    result = RewriteDescriptorsPhase("rewrite-descriptors-for-development", "development").execute(
        descriptor, environment, project
    )

    assert isinstance(result, Ok)
    assert (tmp_path / "module.xml").read_bytes() == before


def test_branch_rewrite_requires_branch_name(
    descriptor: ReleaseDescriptor, environment: ReleaseEnvironment, project: Reactor
) -> None:
    MapVersionsPhase("map-branch-versions", "branch").execute(descriptor, environment, project)

    result = RewriteDescriptorsPhase("rewrite-descriptors-for-branch", "branch").execute(
        descriptor, environment, project
    )

    assert isinstance(result, Err)
    assert result.error.kind == "validation"


def test_unparseable_descriptor_is_execution_error(
    tmp_path: Path, descriptor: ReleaseDescriptor, environment: ReleaseEnvironment, project: Reactor
) -> None:
    _map(descriptor, environment, project)
    (tmp_path / "core" / "module.xml").write_text("<project>", encoding="utf-8")

    result = RewriteDescriptorsPhase("rewrite-descriptors-for-release", "release").execute(
        descriptor, environment, project
    )

    assert isinstance(result, Err)
    assert result.error.kind == "execution"
