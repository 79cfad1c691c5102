"""Manifest rewrite engine.

Computes the new content of every module descriptor of a reactor for one
rewrite mode and writes it either in place (execute) or to a shadow sibling
(simulate). Only the bytes of changed values are replaced; see
``relm.release.xmldoc``.

Modes:
    release: mapped release versions, SCM moved to the tag.
    development: next development versions, SCM restored.
    branch: branch versions, SCM moved to the branch.
    versions: development versions only (update-versions), SCM untouched.

Usage:
    mapping = VersionMapping.from_descriptor(descriptor, reactor, "release")
    rewriter = DescriptorRewriter(RewriteOptions(mode="release", mapping=mapping, label="v1"))
    result = rewriter.plan(reactor)
    if isinstance(result, Ok):
        write_plan(result.value, simulate=False)
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from relm.core.result import Err, Ok, Result
from relm.platform.files import atomic_write_bytes
from relm.release.descriptor import ReleaseDescriptor, ScmInfo
from relm.release.errors import ReleaseError, execution_error, validation_error
from relm.release.reactor import ModuleRecord, Reactor
from relm.release.scm_translate import (
    LabelScmTranslator,
    common_scm_root,
    provider_of,
    translator_for,
)
from relm.release.xmldoc import (
    DescriptorParseError,
    XmlDocument,
    XmlElement,
    XmlPatch,
    normalize_line_endings,
)

__all__ = [
    "SHADOW_SUFFIXES",
    "DescriptorRewriter",
    "FileRewrite",
    "RewriteMode",
    "RewriteOptions",
    "RewritePlan",
    "VersionMapping",
    "VersionUpdateError",
    "remove_shadows",
    "shadow_path",
    "write_plan",
]

RewriteMode = Literal["release", "development", "branch", "versions"]

SHADOW_SUFFIXES: dict[RewriteMode, str] = {
    "release": ".tag",
    "development": ".next",
    "branch": ".branch",
    "versions": ".next",
}

_REFERENCE_PATHS = (
    "dependencies/dependency",
    "dependencyManagement/dependencies/dependency",
    "build/plugins/plugin",
    "build/plugins/plugin/dependencies/dependency",
    "build/pluginManagement/plugins/plugin",
    "build/pluginManagement/plugins/plugin/dependencies/dependency",
    "build/extensions/extension",
    "reporting/plugins/plugin",
)

_PROJECT_EXPRESSION_RE = re.compile(r"^\$\{(?:version|(?:project|pom)\.[^}]+)\}$")
_PROPERTY_RE = re.compile(r"^\$\{([^}]+)\}$")
_GROUP_EXPRESSIONS = ("${project.groupId}", "${pom.groupId}", "${groupId}")


class VersionUpdateError(Exception):
    """A version reference cannot be rewritten consistently."""


def _no_scm() -> dict[str, ScmInfo]:
    return {}


@dataclass(frozen=True, slots=True)
class VersionMapping:
    """Immutable snapshot of the version decisions applied by one rewrite pass.

    Attributes:
        targets: Module key -> version to write.
        known: Module key -> versions a reference to that module may hold
            before the rewrite (anything else is a mismatch).
        dependency_overrides: Dependency key -> version written on
            dependency references instead of ``targets``.
        resolved: Key outside the reactor -> version to write.
    """

    targets: Mapping[str, str]
    known: Mapping[str, frozenset[str]]
    dependency_overrides: Mapping[str, str]
    resolved: Mapping[str, str]

    def target(self, key: str) -> str | None:
        return self.targets.get(key)

    def dependency_target(self, key: str) -> str | None:
        return self.dependency_overrides.get(key) or self.targets.get(key)

    def accepts(self, key: str, version: str) -> bool:
        return version in self.known.get(key, frozenset()) or version == self.dependency_target(key)

    @classmethod
    def from_descriptor(
        cls, descriptor: ReleaseDescriptor, reactor: Reactor, mode: RewriteMode
    ) -> VersionMapping:
        if mode in ("release", "branch"):
            targets = dict(descriptor.release_versions)
        else:
            targets = dict(descriptor.development_versions)

        overrides: dict[str, str] = {}
        resolved: dict[str, str] = {}
        if mode == "release":
            overrides = dict(descriptor.dependency_versions)
            resolved = {k: r.release for k, r in descriptor.resolved_dependencies.items()}
        elif mode == "development":
            resolved = {k: r.snapshot for k, r in descriptor.resolved_dependencies.items()}

        known: dict[str, frozenset[str]] = {}
        for module in reactor:
            candidates = {
                module.resolve_property(module.effective_version),
                descriptor.original_versions.get(module.key),
                descriptor.release_versions.get(module.key),
                descriptor.dependency_versions.get(module.key),
            }
            known[module.key] = frozenset(v for v in candidates if v)

        return cls(targets=targets, known=known, dependency_overrides=overrides, resolved=resolved)


@dataclass(frozen=True, slots=True)
class RewriteOptions:
    """What one rewrite pass does.

    Attributes:
        label: Tag (release) or branch name (branch) recorded in ``<scm>``.
        scm_base: Tag base or branch base for URL-based providers.
        original_scm: ``<scm>`` blocks restored by the development rewrite.
        line_separator: When set, every line ending of the output.
    """

    mode: RewriteMode
    mapping: VersionMapping
    label: str | None = None
    scm_base: str | None = None
    original_scm: Mapping[str, ScmInfo] = field(default_factory=_no_scm)
    line_separator: str | None = None

    @property
    def shadow_suffix(self) -> str:
        return SHADOW_SUFFIXES[self.mode]


@dataclass(frozen=True, slots=True)
class FileRewrite:
    path: Path
    original: bytes
    content: bytes

    @property
    def changed(self) -> bool:
        return self.original != self.content


@dataclass(frozen=True, slots=True)
class RewritePlan:
    """Contents computed for every descriptor, ready to be written."""

    mode: RewriteMode
    files: tuple[FileRewrite, ...]
    warnings: tuple[str, ...] = ()

    @property
    def shadow_suffix(self) -> str:
        return SHADOW_SUFFIXES[self.mode]


@dataclass(slots=True)
class _ModuleEdit:
    module: ModuleRecord
    doc: XmlDocument
    patch: XmlPatch
    warnings: list[str]

    @property
    def properties(self) -> XmlElement | None:
        return self.doc.root.child("properties")


_SCM_FIELDS: dict[str, Callable[[ScmInfo], str | None]] = {
    "connection": lambda scm: scm.connection,
    "developerConnection": lambda scm: scm.developer_connection,
    "url": lambda scm: scm.url,
}


def _scm_root(reactor: Reactor, name: str) -> str | None:
    """Location shared by one <scm> field across every module declaring it."""
    getter = _SCM_FIELDS[name]
    return common_scm_root(
        value for module in reactor if module.scm is not None and (value := getter(module.scm))
    )


def _references(root: XmlElement) -> Iterator[XmlElement]:
    for path in _REFERENCE_PATHS:
        yield from root.iterfind(path)
    for profile in root.iterfind("profiles/profile"):
        for path in _REFERENCE_PATHS:
            yield from profile.iterfind(path)


class DescriptorRewriter:
    """Computes rewritten descriptor contents for one mode."""

    def __init__(self, options: RewriteOptions) -> None:
        self.options = options

    def plan(self, reactor: Reactor) -> Result[RewritePlan, ReleaseError]:
        """Compute the new content of every descriptor; nothing is written."""
        files: list[FileRewrite] = []
        warnings: list[str] = []

        grouped: dict[Path, list[ModuleRecord]] = {}
        for module in reactor:
            grouped.setdefault(module.path, []).append(module)

        for path, modules in grouped.items():
            try:
                original = path.read_bytes()
            except OSError as e:
                return Err(execution_error(f"failed to read {path}", e))

            content = original
            for module in modules:
                try:
                    content = self.rewrite_module(module, reactor, content, warnings)
                except DescriptorParseError as e:
                    return Err(execution_error(f"failed to parse {path}", e))
                except VersionUpdateError as e:
                    return Err(validation_error(str(e)))
                except ValueError as e:
                    return Err(validation_error(f"{module.key}: {e}"))
            files.append(FileRewrite(path=path, original=original, content=content))

        return Ok(RewritePlan(mode=self.options.mode, files=tuple(files), warnings=tuple(warnings)))

    def rewrite_module(
        self,
        module: ModuleRecord,
        reactor: Reactor,
        data: bytes,
        warnings: list[str] | None = None,
    ) -> bytes:
        """Return ``data`` rewritten for ``module``.

        Raises DescriptorParseError, VersionUpdateError, or ValueError when
        two references demand different values for the same element.
        """
        doc = XmlDocument.parse(data, source=str(module.path))
        edit = _ModuleEdit(module=module, doc=doc, patch=XmlPatch(doc), warnings=[])

        self._rewrite_parent(edit, reactor)
        self._rewrite_own_version(edit, reactor)
        for reference in _references(doc.root):
            self._rewrite_reference(edit, reference, reactor)

        mode = self.options.mode
        if mode in ("release", "branch"):
            self._translate_scm(edit, reactor)
        elif mode == "development":
            self._restore_scm(edit)

        if warnings is not None:
            warnings.extend(edit.warnings)

        content = edit.patch.apply() if len(edit.patch) else data
        if self.options.line_separator:
            content = normalize_line_endings(content, self.options.line_separator)
        return content

    def _parent_target(self, module: ModuleRecord, reactor: Reactor) -> str | None:
        if module.parent is None:
            return None
        key = module.parent.key
        if key in reactor:
            return self.options.mapping.target(key)
        return self.options.mapping.resolved.get(key)

    def _rewrite_parent(self, edit: _ModuleEdit, reactor: Reactor) -> None:
        module = edit.module
        parent_el = edit.doc.root.child("parent")
        if parent_el is None or module.parent is None:
            return
        version_el = parent_el.child("version")
        if version_el is None:
            return
        target = self._parent_target(module, reactor)
        if target is None:
            if module.parent.key in reactor:
                raise VersionUpdateError(f"{module.key}: no version mapped for parent {module.parent.key}")
            return
        if version_el.text != target:
            edit.patch.set_text(version_el, target)

    def _rewrite_own_version(self, edit: _ModuleEdit, reactor: Reactor) -> None:
        module = edit.module
        root = edit.doc.root
        target = self.options.mapping.target(module.key)
        version_el = root.child("version")

        if version_el is not None:
            if target is None:
                raise VersionUpdateError(f"{module.key}: no version mapped")
            self._set_version(edit, version_el, target, None, module.key)
            return

        parent_target = self._parent_target(module, reactor) or module.parent_version
        if target is None or parent_target is None or target == parent_target:
            return
        artifact_el = root.child("artifactId")
        if artifact_el is not None:
            edit.patch.insert_after(artifact_el, "version", target)

    def _rewrite_reference(self, edit: _ModuleEdit, reference: XmlElement, reactor: Reactor) -> None:
        group = reference.child_text("groupId")
        artifact = reference.child_text("artifactId")
        version_el = reference.child("version")
        if not group or not artifact or version_el is None:
            return
        if group in _GROUP_EXPRESSIONS:
            group = edit.module.coordinate.group

        key = f"{group}:{artifact}"
        mapping = self.options.mapping
        what = f"{edit.module.key}: dependency {key}"
        if key in reactor:
            target = mapping.dependency_target(key)
            if target is None:
                raise VersionUpdateError(f"{what}: no version mapped")
            self._set_version(edit, version_el, target, lambda v: mapping.accepts(key, v), what)
        elif key in mapping.resolved:
            self._set_version(edit, version_el, mapping.resolved[key], None, what)

    def _set_version(
        self,
        edit: _ModuleEdit,
        element: XmlElement,
        target: str,
        accepts: Callable[[str], bool] | None,
        what: str,
    ) -> None:
        text = element.text
        if text == target or _PROJECT_EXPRESSION_RE.match(text):
            return

        prop = _PROPERTY_RE.match(text)
        if prop is not None:
            name = prop.group(1)
            props = edit.properties
            prop_el = props.child(name) if props is not None else None
            if prop_el is None:
                edit.warnings.append(f"{what}: property {name} is not defined in {edit.module.path}")
                return
            value = prop_el.text
            if value == target:
                return
            if accepts is not None and not accepts(value):
                raise VersionUpdateError(
                    f"{what}: version {value} of property {name} could not be updated to {target}"
                )
            edit.patch.set_text(prop_el, target)
            return

        if "${" in text:
            edit.warnings.append(f"{what}: expression {text} left unchanged")
            return
        if accepts is not None and not accepts(text):
            raise VersionUpdateError(f"{what}: version {text} could not be updated to {target}")
        edit.patch.set_text(element, target)

    def _translate_scm(self, edit: _ModuleEdit, reactor: Reactor) -> None:
        scm_el = edit.doc.root.child("scm")
        label = self.options.label
        if scm_el is None or not scm_el.children or not label:
            return

        provider = provider_of(scm_el.child_text("connection")) or provider_of(
            scm_el.child_text("developerConnection")
        )
        translator = translator_for(provider)
        if translator is None:
            edit.warnings.append(
                f"{edit.module.key}: unsupported SCM provider {provider or '(none)'}, <scm> left unchanged"
            )
            return

        branch = self.options.mode == "branch"
        base = self.options.scm_base
        for name in ("connection", "developerConnection", "url"):
            el = scm_el.child(name)
            if el is None or not el.text:
                continue
            # the browse URL never lives under the tag base
            field_base = None if name == "url" else base
            root = _scm_root(reactor, name)
            if branch:
                value = translator.translate_branch(el.text, label, field_base, root)
            else:
                value = translator.translate_tag(el.text, label, field_base, root)
            if value != el.text:
                edit.patch.set_text(el, value)

        resolved = translator.resolve_branch(label) if branch else translator.resolve_tag(label)
        if resolved is None:
            return
        tag_el = scm_el.child("tag")
        if tag_el is not None:
            if tag_el.text != resolved:
                edit.patch.set_text(tag_el, resolved)
        elif isinstance(translator, LabelScmTranslator):
            edit.patch.insert_after(scm_el.children[-1], "tag", resolved)

    def _restore_scm(self, edit: _ModuleEdit) -> None:
        scm_el = edit.doc.root.child("scm")
        original = self.options.original_scm.get(edit.module.key)
        if scm_el is None or original is None:
            return
        for name, value in (
            ("connection", original.connection),
            ("developerConnection", original.developer_connection),
            ("url", original.url),
            ("tag", original.tag),
        ):
            el = scm_el.child(name)
            if el is None:
                continue
            if value is None:
                edit.patch.remove(el)
            elif el.text != value:
                edit.patch.set_text(el, value)


def shadow_path(path: Path, suffix: str) -> Path:
    """``module.xml`` + ``.tag`` -> ``module.xml.tag``."""
    return path.with_name(path.name + suffix)


def write_plan(plan: RewritePlan, *, simulate: bool) -> Result[list[Path], ReleaseError]:
    """Write a computed plan.

    Execute writes changed descriptors in place. Simulate writes every
    descriptor's content to its shadow sibling and leaves the descriptor
    untouched.
    """
    written: list[Path] = []
    for rewrite in plan.files:
        if simulate:
            target = shadow_path(rewrite.path, plan.shadow_suffix)
        elif rewrite.changed:
            target = rewrite.path
        else:
            continue
        try:
            atomic_write_bytes(target, rewrite.content)
        except OSError as e:
            return Err(execution_error(f"failed to write {target}", e))
        written.append(target)
    return Ok(written)


def remove_shadows(reactor: Reactor, suffix: str) -> list[Path]:
    """Delete the shadow siblings of every descriptor; returns what was removed."""
    removed: list[Path] = []
    for path in reactor.paths():
        shadow = shadow_path(path, suffix)
        if shadow.is_file():
            shadow.unlink()
            removed.append(shadow)
    return removed
