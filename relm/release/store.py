"""Descriptor persistence.

The release manager talks to a DescriptorStore; JsonDescriptorStore keeps
the descriptor as ``release.json`` in the working directory so an
interrupted ``prepare`` can be resumed and ``perform`` can pick up where
``prepare`` stopped.

Store failures are raised as DescriptorStoreError; the release manager wraps
them into execution errors.
"""

from __future__ import annotations

import json
from dataclasses import MISSING, fields
from pathlib import Path
from typing import Protocol

from relm.core.structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_int,
    get_str,
    get_str_list,
    get_str_map,
    get_table,
)
from relm.platform.files import atomic_write_text
from relm.release.descriptor import ReleaseDescriptor, ResolvedDependency, ScmInfo

__all__ = [
    "DESCRIPTOR_SCHEMA",
    "DESCRIPTOR_FILE_NAME",
    "DescriptorStore",
    "DescriptorStoreError",
    "JsonDescriptorStore",
    "descriptor_from_dict",
    "descriptor_to_dict",
    "merge_descriptors",
]

DESCRIPTOR_SCHEMA = 1
DESCRIPTOR_FILE_NAME = "release.json"

_MAP_FIELDS = (
    "release_versions",
    "development_versions",
    "original_versions",
    "dependency_versions",
    "resolved_dependencies",
    "original_scm",
)


class DescriptorStoreError(Exception):
    """The descriptor could not be read, written or deleted."""


class DescriptorStore(Protocol):
    """Keyed persistence for release descriptors."""

    def read(self, descriptor: ReleaseDescriptor) -> ReleaseDescriptor | None:
        """Return the stored descriptor merged under ``descriptor``, or None if absent."""
        ...

    def write(self, descriptor: ReleaseDescriptor) -> None: ...

    def delete(self, descriptor: ReleaseDescriptor) -> None: ...


class JsonDescriptorStore:
    """Stores the descriptor as JSON next to the root module descriptor.

    Attributes:
        file_name: Name of the state file inside the working directory.
    """

    def __init__(self, file_name: str = DESCRIPTOR_FILE_NAME) -> None:
        self.file_name = file_name

    def path_for(self, descriptor: ReleaseDescriptor) -> Path:
        return descriptor.base_directory / self.file_name

    def read(self, descriptor: ReleaseDescriptor) -> ReleaseDescriptor | None:
        path = self.path_for(descriptor)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise DescriptorStoreError(f"failed to read {path}: {e}") from e

        try:
            obj: object = json.loads(text)
        except json.JSONDecodeError as e:
            raise DescriptorStoreError(f"invalid JSON in {path}: {e}") from e

        data = as_str_dict(obj)
        if data is None:
            raise DescriptorStoreError(f"{path}: root must be a JSON object")
        schema = get_int(data, "schema")
        if schema != DESCRIPTOR_SCHEMA:
            raise DescriptorStoreError(f"{path}: unsupported descriptor schema: {schema}")

        return merge_descriptors(descriptor, descriptor_from_dict(data))

    def write(self, descriptor: ReleaseDescriptor) -> None:
        path = self.path_for(descriptor)
        payload = json.dumps(descriptor_to_dict(descriptor), indent=2, sort_keys=True) + "\n"
        try:
            atomic_write_text(path, payload)
        except OSError as e:
            raise DescriptorStoreError(f"failed to write {path}: {e}") from e

    def delete(self, descriptor: ReleaseDescriptor) -> None:
        path = self.path_for(descriptor)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise DescriptorStoreError(f"failed to delete {path}: {e}") from e


def descriptor_to_dict(descriptor: ReleaseDescriptor) -> StrDict:
    def path_str(p: Path | None) -> str | None:
        return str(p) if p is not None else None

    return {
        "schema": DESCRIPTOR_SCHEMA,
        "scm_source_url": descriptor.scm_source_url,
        "scm_tag_base": descriptor.scm_tag_base,
        "scm_branch_base": descriptor.scm_branch_base,
        "scm_release_label": descriptor.scm_release_label,
        "scm_comment_prefix": descriptor.scm_comment_prefix,
        "working_directory": path_str(descriptor.working_directory),
        "checkout_directory": path_str(descriptor.checkout_directory),
        "use_release_profile": descriptor.use_release_profile,
        "preparation_goals": list(descriptor.preparation_goals),
        "perform_goals": list(descriptor.perform_goals),
        "additional_arguments": list(descriptor.additional_arguments),
        "update_working_copy_versions": descriptor.update_working_copy_versions,
        "push_changes": descriptor.push_changes,
        "branch_name": descriptor.branch_name,
        "scm_relative_path": descriptor.scm_relative_path,
        "completed_phase": descriptor.completed_phase,
        "release_versions": dict(descriptor.release_versions),
        "development_versions": dict(descriptor.development_versions),
        "original_versions": dict(descriptor.original_versions),
        "dependency_versions": dict(descriptor.dependency_versions),
        "resolved_dependencies": {
            key: {"release": dep.release, "snapshot": dep.snapshot}
            for key, dep in descriptor.resolved_dependencies.items()
        },
        "original_scm": {
            key: {
                "connection": scm.connection,
                "developer_connection": scm.developer_connection,
                "url": scm.url,
                "tag": scm.tag,
            }
            for key, scm in descriptor.original_scm.items()
        },
    }


def descriptor_from_dict(data: StrDict) -> ReleaseDescriptor:
    descriptor = ReleaseDescriptor()

    descriptor.scm_source_url = get_str(data, "scm_source_url")
    descriptor.scm_tag_base = get_str(data, "scm_tag_base")
    descriptor.scm_branch_base = get_str(data, "scm_branch_base")
    descriptor.scm_release_label = get_str(data, "scm_release_label")
    prefix = data.get("scm_comment_prefix")
    if isinstance(prefix, str):
        descriptor.scm_comment_prefix = prefix

    working = get_str(data, "working_directory")
    descriptor.working_directory = Path(working) if working else None
    checkout = get_str(data, "checkout_directory")
    descriptor.checkout_directory = Path(checkout) if checkout else None

    use_profile = get_bool(data, "use_release_profile")
    if use_profile is not None:
        descriptor.use_release_profile = use_profile
    update_wc = get_bool(data, "update_working_copy_versions")
    if update_wc is not None:
        descriptor.update_working_copy_versions = update_wc
    push_changes = get_bool(data, "push_changes")
    if push_changes is not None:
        descriptor.push_changes = push_changes

    descriptor.preparation_goals = tuple(get_str_list(data, "preparation_goals") or ())
    descriptor.perform_goals = tuple(get_str_list(data, "perform_goals") or ())
    descriptor.additional_arguments = tuple(get_str_list(data, "additional_arguments") or ())
    descriptor.branch_name = get_str(data, "branch_name")
    descriptor.scm_relative_path = get_str(data, "scm_relative_path")
    descriptor.completed_phase = get_str(data, "completed_phase")

    descriptor.release_versions = get_str_map(data, "release_versions")
    descriptor.development_versions = get_str_map(data, "development_versions")
    descriptor.original_versions = get_str_map(data, "original_versions")
    descriptor.dependency_versions = get_str_map(data, "dependency_versions")

    for key, value in (get_table(data, "resolved_dependencies") or {}).items():
        entry = as_str_dict(value)
        if entry is None:
            continue
        release = get_str(entry, "release")
        snapshot = get_str(entry, "snapshot")
        if release is None or snapshot is None:
            continue
        descriptor.resolved_dependencies[key] = ResolvedDependency(release, snapshot)

    for key, value in (get_table(data, "original_scm") or {}).items():
        entry = as_str_dict(value)
        if entry is None:
            continue
        descriptor.original_scm[key] = ScmInfo(
            connection=get_str(entry, "connection"),
            developer_connection=get_str(entry, "developer_connection"),
            url=get_str(entry, "url"),
            tag=get_str(entry, "tag"),
        )

    return descriptor


def merge_descriptors(supplied: ReleaseDescriptor, stored: ReleaseDescriptor) -> ReleaseDescriptor:
    """Overlay the settings given on this invocation onto the stored state.

    A field of ``supplied`` wins when it differs from its default; otherwise
    the stored value is kept. Version maps are unioned with ``supplied``
    entries taking precedence. The returned descriptor is ``supplied``,
    updated in place, so callers holding a reference see the merged state.
    """
    for f in fields(ReleaseDescriptor):
        if f.name in _MAP_FIELDS:
            merged = dict(getattr(stored, f.name))
            merged.update(getattr(supplied, f.name))
            setattr(supplied, f.name, merged)
            continue

        if f.default is not MISSING:
            default = f.default
        elif f.default_factory is not MISSING:
            default = f.default_factory()
        else:
            default = None

        if getattr(supplied, f.name) == default:
            setattr(supplied, f.name, getattr(stored, f.name))
    return supplied
