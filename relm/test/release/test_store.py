"""Tests for descriptor persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from relm.release.descriptor import ReleaseDescriptor, ScmInfo
from relm.release.store import (
    DescriptorStoreError,
    JsonDescriptorStore,
    descriptor_from_dict,
    descriptor_to_dict,
    merge_descriptors,
)


def _stored(tmp_path: Path) -> ReleaseDescriptor:
    descriptor = ReleaseDescriptor(
        scm_source_url="scm:git:https://example.com/p.git",
        scm_release_label="p-1.0",
        working_directory=tmp_path,
        completed_phase="scm-tag",
        push_changes=False,
        preparation_goals=("clean", "verify"),
        scm_relative_path="parent",
    )
    descriptor.map_release_version("g:a", "1.0")
    descriptor.map_development_version("g:a", "1.1-SNAPSHOT")
    descriptor.map_resolved_dependency("x:y", "2.0", "2.1-SNAPSHOT")
    descriptor.map_original_scm("g:a", ScmInfo(connection="scm:git:https://example.com/p.git"))
    return descriptor


class TestSerialization:
    def test_dict_round_trip_keeps_state(self, tmp_path: Path) -> None:
        descriptor = _stored(tmp_path)

        restored = descriptor_from_dict(descriptor_to_dict(descriptor))

        assert restored == descriptor

    def test_bad_entries_are_dropped(self) -> None:
        restored = descriptor_from_dict(
            {
                "schema": 1,
                "release_versions": {"g:a": "1.0", "g:b": 3},
                "resolved_dependencies": {"x:y": {"release": "1"}, "x:z": "oops"},
                "use_release_profile": "yes",
            }
        )
        assert restored.release_versions == {"g:a": "1.0"}
        assert restored.resolved_dependencies == {}
        assert restored.use_release_profile is True


class TestJsonDescriptorStore:
    def test_write_then_read(self, tmp_path: Path) -> None:
        store = JsonDescriptorStore()
        store.write(_stored(tmp_path))

        loaded = store.read(ReleaseDescriptor(working_directory=tmp_path))

        assert loaded is not None
        assert loaded.completed_phase == "scm-tag"
        assert loaded.release_versions == {"g:a": "1.0"}
        assert loaded.push_changes is False
        assert loaded.scm_relative_path == "parent"
        assert json.loads((tmp_path / "release.json").read_text(encoding="utf-8"))["schema"] == 1

    def test_read_missing_returns_none(self, tmp_path: Path) -> None:
        assert JsonDescriptorStore().read(ReleaseDescriptor(working_directory=tmp_path)) is None

    def test_read_invalid_json(self, tmp_path: Path) -> None:
        (tmp_path / "release.json").write_text("{", encoding="utf-8")
        with pytest.raises(DescriptorStoreError, match="invalid JSON"):
            JsonDescriptorStore().read(ReleaseDescriptor(working_directory=tmp_path))

    def test_read_unsupported_schema(self, tmp_path: Path) -> None:
        (tmp_path / "release.json").write_text('{"schema": 99}', encoding="utf-8")
        with pytest.raises(DescriptorStoreError, match="schema"):
            JsonDescriptorStore().read(ReleaseDescriptor(working_directory=tmp_path))

    def test_write_failure(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")

        with pytest.raises(DescriptorStoreError, match="failed to write"):
            JsonDescriptorStore().write(ReleaseDescriptor(working_directory=blocker))

    def test_delete(self, tmp_path: Path) -> None:
        store = JsonDescriptorStore()
        descriptor = _stored(tmp_path)
        store.write(descriptor)

        store.delete(descriptor)
        store.delete(descriptor)

        assert not (tmp_path / "release.json").exists()


class TestMergeDescriptors:
    def test_supplied_values_win_over_stored(self, tmp_path: Path) -> None:
        supplied = ReleaseDescriptor(scm_release_label="p-1.0-rc", working_directory=tmp_path)
        supplied.map_release_version("g:b", "2.0")
        supplied.map_release_version("g:a", "1.0.1")

        merged = merge_descriptors(supplied, _stored(tmp_path))

        assert merged is supplied
        assert merged.scm_release_label == "p-1.0-rc"
        assert merged.scm_source_url == "scm:git:https://example.com/p.git"
        assert merged.completed_phase == "scm-tag"
        assert merged.release_versions == {"g:a": "1.0.1", "g:b": "2.0"}
        assert merged.preparation_goals == ("clean", "verify")
        assert merged.push_changes is False
