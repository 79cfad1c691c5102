"""Release descriptor: the durable state of one release attempt."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

__all__ = [
    "ReleaseDescriptor",
    "ResolvedDependency",
    "ScmInfo",
]


@dataclass(frozen=True, slots=True)
class ScmInfo:
    """The ``<scm>`` block of a module descriptor."""

    connection: str | None = None
    developer_connection: str | None = None
    url: str | None = None
    tag: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.connection or self.developer_connection or self.url or self.tag)


@dataclass(frozen=True, slots=True)
class ResolvedDependency:
    """A coordinate outside the reactor that was already released elsewhere.

    Attributes:
        release: The released version to depend on while releasing.
        snapshot: The snapshot version to go back to for development.
    """

    release: str
    snapshot: str


def _str_map() -> dict[str, str]:
    return {}


def _resolved_map() -> dict[str, ResolvedDependency]:
    return {}


def _scm_map() -> dict[str, ScmInfo]:
    return {}


@dataclass(slots=True)
class ReleaseDescriptor:
    """Configuration and progress of one release.

    Phases fill in the version maps; the release manager advances
    ``completed_phase`` after each successful phase and persists the
    descriptor through the store. All version maps are keyed by the module
    coordinate key ``group:artifact``.

    ``scm_relative_path`` is the root module directory relative to the
    directory released as a whole (``""`` for a nested layout, ``"parent"``
    when the root sits beside its modules). Perform builds there inside the
    checkout.
    """

    scm_source_url: str | None = None
    scm_tag_base: str | None = None
    scm_branch_base: str | None = None
    scm_release_label: str | None = None
    scm_comment_prefix: str = "[relm] "
    working_directory: Path | None = None
    checkout_directory: Path | None = None
    use_release_profile: bool = True
    dry_run: bool = False
    preparation_goals: tuple[str, ...] = ()
    perform_goals: tuple[str, ...] = ()
    additional_arguments: tuple[str, ...] = ()
    update_working_copy_versions: bool = True
    push_changes: bool = True
    branch_name: str | None = None
    scm_relative_path: str | None = None

    completed_phase: str | None = None

    release_versions: dict[str, str] = field(default_factory=_str_map)
    development_versions: dict[str, str] = field(default_factory=_str_map)
    original_versions: dict[str, str] = field(default_factory=_str_map)
    dependency_versions: dict[str, str] = field(default_factory=_str_map)
    resolved_dependencies: dict[str, ResolvedDependency] = field(default_factory=_resolved_map)
    original_scm: dict[str, ScmInfo] = field(default_factory=_scm_map)

    def map_release_version(self, key: str, version: str) -> None:
        self.release_versions[key] = version

    def map_development_version(self, key: str, version: str) -> None:
        self.development_versions[key] = version

    def map_dependency_version(self, key: str, version: str) -> None:
        """Pin the release version used wherever ``key`` is referenced as a dependency."""
        self.dependency_versions[key] = version

    def map_resolved_dependency(self, key: str, release: str, snapshot: str) -> None:
        self.resolved_dependencies[key] = ResolvedDependency(release=release, snapshot=snapshot)

    def map_original_scm(self, key: str, scm: ScmInfo) -> None:
        self.original_scm[key] = scm

    @property
    def base_directory(self) -> Path:
        """Directory holding the root module descriptor."""
        return self.working_directory or Path.cwd()
