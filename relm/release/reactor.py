"""Reactor: the set of modules released together.

A reactor is loaded by walking ``<modules>`` from the root descriptor and
keeps one ModuleRecord per descriptor file, in declaration order (parents
before children). Records hold what the mapping phases and the rewrite
engine need to decide; the engine re-reads file bytes itself.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from relm.release.descriptor import ScmInfo
from relm.release.xmldoc import DescriptorParseError, XmlDocument, XmlElement

__all__ = [
    "Coordinate",
    "ModuleRecord",
    "Reactor",
    "load_reactor",
    "module_from_document",
    "read_module",
]


@dataclass(frozen=True, slots=True, order=True)
class Coordinate:
    group: str
    artifact: str

    @property
    def key(self) -> str:
        return f"{self.group}:{self.artifact}"

    @classmethod
    def parse(cls, key: str) -> Coordinate:
        group, sep, artifact = key.partition(":")
        if not sep or not group or not artifact:
            raise ValueError(f"invalid coordinate key: {key!r} (expected group:artifact)")
        return cls(group, artifact)

    def __str__(self) -> str:
        return self.key


def _no_properties() -> dict[str, str]:
    return {}


@dataclass(frozen=True, slots=True)
class ModuleRecord:
    """One module descriptor as seen at load time.

    Attributes:
        version: Declared version text (literal or ``${...}``), None when
            inherited from the parent.
        parent_relative_path: ``<relativePath>`` when declared.
        scm: Explicitly declared ``<scm>`` block, None when inherited.
        modules: ``<module>`` entries, as written.
    """

    coordinate: Coordinate
    path: Path
    version: str | None = None
    parent: Coordinate | None = None
    parent_version: str | None = None
    parent_relative_path: str | None = None
    scm: ScmInfo | None = None
    properties: Mapping[str, str] = field(default_factory=_no_properties)
    modules: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return self.coordinate.key

    @property
    def effective_version(self) -> str:
        return self.version or self.parent_version or ""

    @property
    def inherits_version(self) -> bool:
        return self.version is None

    @property
    def directory(self) -> Path:
        return self.path.parent

    def resolve_property(self, text: str) -> str:
        """Resolve a single ``${name}`` reference against this module's properties."""
        if text.startswith("${") and text.endswith("}"):
            return self.properties.get(text[2:-1], text)
        return text


class Reactor:
    """Modules of one release, keyed by coordinate and kept in load order."""

    def __init__(self, modules: Iterable[ModuleRecord] = ()) -> None:
        self._modules = tuple(modules)
        self._by_key: dict[str, ModuleRecord] = {}
        for module in self._modules:
            self._by_key.setdefault(module.key, module)

    def __iter__(self) -> Iterator[ModuleRecord]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    @property
    def modules(self) -> tuple[ModuleRecord, ...]:
        return self._modules

    @property
    def root(self) -> ModuleRecord | None:
        return self._modules[0] if self._modules else None

    def get(self, key: str) -> ModuleRecord | None:
        return self._by_key.get(key)

    def parent_of(self, module: ModuleRecord) -> ModuleRecord | None:
        if module.parent is None:
            return None
        return self._by_key.get(module.parent.key)

    def root_relative_path(self) -> str:
        """Root module directory relative to the directory holding every module.

        ``""`` when all modules sit below the root (nested layout).
        """
        root = self.root
        if root is None:
            return ""
        base = Path(os.path.commonpath([m.directory.resolve() for m in self._modules]))
        relative = root.directory.resolve().relative_to(base).as_posix()
        return "" if relative == "." else relative

    def paths(self) -> list[Path]:
        """Distinct descriptor paths, in load order."""
        seen: dict[Path, None] = {}
        for module in self._modules:
            seen.setdefault(module.path, None)
        return list(seen)

    def validate(self) -> list[str]:
        """Return the reactor invariant violations (empty when consistent)."""
        problems: list[str] = []

        seen: dict[str, Path] = {}
        for module in self._modules:
            first = seen.get(module.key)
            if first is not None:
                problems.append(f"duplicate module {module.key}: {first} and {module.path}")
            else:
                seen[module.key] = module.path

        by_path = {m.path.resolve(): m for m in self._modules}
        for module in self._modules:
            if module.parent is None or module.parent.key in self._by_key:
                continue
            if module.parent_relative_path is None:
                continue
            target = (module.directory / module.parent_relative_path).resolve()
            if target.is_dir():
                target = target / module.path.name
            found = by_path.get(target)
            if found is not None:
                problems.append(
                    f"{module.key}: parent {module.parent.key} does not match "
                    f"{found.key} at {module.parent_relative_path}"
                )

        for module in self._modules:
            if not module.effective_version:
                problems.append(f"{module.key}: no version declared or inherited")
        return problems


def _scm_from(element: XmlElement | None) -> ScmInfo | None:
    if element is None:
        return None
    info = ScmInfo(
        connection=element.child_text("connection"),
        developer_connection=element.child_text("developerConnection"),
        url=element.child_text("url"),
        tag=element.child_text("tag"),
    )
    return None if info.is_empty else info


def module_from_document(doc: XmlDocument, path: Path) -> ModuleRecord:
    """Build a ModuleRecord from a parsed descriptor."""
    root = doc.root
    parent_el = root.child("parent")

    parent: Coordinate | None = None
    parent_version: str | None = None
    parent_relative_path: str | None = None
    if parent_el is not None:
        p_group = parent_el.child_text("groupId")
        p_artifact = parent_el.child_text("artifactId")
        if p_group and p_artifact:
            parent = Coordinate(p_group, p_artifact)
        parent_version = parent_el.child_text("version")
        parent_relative_path = parent_el.child_text("relativePath")

    group = root.child_text("groupId") or (parent.group if parent else None)
    artifact = root.child_text("artifactId")
    if not group or not artifact:
        raise DescriptorParseError(str(path), "groupId and artifactId are required")

    properties: dict[str, str] = {}
    props_el = root.child("properties")
    if props_el is not None:
        for prop in props_el.children:
            properties[prop.name] = prop.text

    modules: tuple[str, ...] = ()
    modules_el = root.child("modules")
    if modules_el is not None:
        modules = tuple(m.text for m in modules_el.children_named("module") if m.text)

    return ModuleRecord(
        coordinate=Coordinate(group, artifact),
        path=path,
        version=root.child_text("version"),
        parent=parent,
        parent_version=parent_version,
        parent_relative_path=parent_relative_path,
        scm=_scm_from(root.child("scm")),
        properties=properties,
        modules=modules,
    )


def read_module(path: Path) -> ModuleRecord:
    """Parse one descriptor file; raises OSError or DescriptorParseError."""
    doc = XmlDocument.parse(path.read_bytes(), source=str(path))
    return module_from_document(doc, path)


def load_reactor(root: Path, descriptor_file: str = "module.xml") -> Reactor:
    """Load the root descriptor and every module reachable through ``<modules>``.

    ``root`` may be the descriptor file itself or the directory holding it.
    Module entries may point at a directory (``child``, ``../sibling``) or a
    descriptor file.
    """
    root_path = root / descriptor_file if root.is_dir() else root
    records: list[ModuleRecord] = []
    visited: set[Path] = set()
    queue: list[Path] = [root_path]

    while queue:
        path = queue.pop(0)
        resolved = path.resolve()
        if resolved in visited:
            continue
        visited.add(resolved)

        record = read_module(path)
        records.append(record)
        for entry in record.modules:
            child = record.directory / entry
            queue.append(child / descriptor_file if child.is_dir() or not child.suffix else child)

    return Reactor(records)
