"""SCM provider contract.

A provider performs source-control operations against a repository URL.
Outcomes are reported two ways, and callers treat them differently:

- ``ScmResult(success=False, ...)``: the command ran and reported failure.
- ``ScmException``: something unexpected happened (executable missing,
  protocol error). Always raised, never returned.

Repository URLs use the ``scm:<provider>:<provider specific part>`` form,
for example ``scm:git:https://example.com/repo.git`` or
``scm:svn:https://svn.example.com/repo/trunk``. ``|`` may replace ``:`` as
the delimiter right after ``scm`` (``scm|cvs|pserver:...``).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from relm.core.result import Err, Ok, Result

__all__ = [
    "MockScmProvider",
    "ScmException",
    "ScmFileSet",
    "ScmManager",
    "ScmProvider",
    "ScmRepository",
    "ScmResult",
    "parse_scm_url",
]


class ScmException(Exception):
    """Unexpected provider failure."""


@dataclass(frozen=True, slots=True)
class ScmRepository:
    """Parsed repository URL.

    Attributes:
        provider: Provider id (e.g. "git", "svn").
        url: Provider specific part of the URL.
        raw: The URL as configured.
    """

    provider: str
    url: str
    raw: str


@dataclass(frozen=True, slots=True)
class ScmFileSet:
    """Scope of an SCM operation: a base directory plus optional files.

    An empty ``files`` tuple means "everything under basedir".
    """

    basedir: Path
    files: tuple[Path, ...] = ()

    def relative_files(self) -> list[str]:
        out: list[str] = []
        for f in self.files:
            try:
                out.append(str(f.relative_to(self.basedir)))
            except ValueError:
                out.append(str(f))
        return out


@dataclass(frozen=True, slots=True)
class ScmResult:
    """Outcome of a provider command that ran to completion.

    Attributes:
        success: Whether the provider considers the command successful.
        output: Combined command output.
        provider_message: Short failure description, if any.
        changed_files: Paths reported by a status query, relative to basedir.
    """

    success: bool
    output: str = ""
    provider_message: str | None = None
    changed_files: tuple[str, ...] = field(default_factory=tuple)


class ScmProvider(Protocol):
    """Operations a release needs from a source-control backend."""

    def status(self, repository: ScmRepository, fileset: ScmFileSet) -> ScmResult: ...

    def checkout(
        self, repository: ScmRepository, fileset: ScmFileSet, tag: str | None
    ) -> ScmResult: ...

    def commit(self, repository: ScmRepository, fileset: ScmFileSet, message: str) -> ScmResult: ...

    def tag(
        self, repository: ScmRepository, fileset: ScmFileSet, tag: str, message: str
    ) -> ScmResult: ...

    def branch(
        self, repository: ScmRepository, fileset: ScmFileSet, branch: str, message: str
    ) -> ScmResult: ...


def parse_scm_url(url: str) -> Result[ScmRepository, str]:
    """Split ``scm:<provider>:<rest>`` into its parts."""
    raw = url.strip()
    if not raw.startswith("scm") or len(raw) < 5:
        return Err(f"SCM URL must start with 'scm:': {url!r}")

    delimiter = raw[3]
    if delimiter not in (":", "|"):
        return Err(f"invalid SCM URL delimiter {delimiter!r}: {url!r}")

    parts = raw[4:].split(delimiter, 1)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return Err(f"SCM URL has no provider part: {url!r}")

    provider, rest = parts
    if delimiter == "|":
        rest = rest.replace("|", ":")
    return Ok(ScmRepository(provider=provider.lower(), url=rest, raw=raw))


class ScmManager:
    """Looks up the provider responsible for a repository URL."""

    def __init__(self, providers: Mapping[str, ScmProvider]) -> None:
        self._providers = dict(providers)

    @property
    def provider_ids(self) -> tuple[str, ...]:
        return tuple(sorted(self._providers))

    def repository(self, url: str) -> Result[ScmRepository, str]:
        parsed = parse_scm_url(url)
        if isinstance(parsed, Err):
            return parsed
        if parsed.value.provider not in self._providers:
            return Err(f"no SCM provider registered for '{parsed.value.provider}'")
        return parsed

    def provider(self, repository: ScmRepository) -> ScmProvider:
        """Return the provider for an already validated repository."""
        try:
            return self._providers[repository.provider]
        except KeyError:
            raise ScmException(f"no SCM provider registered for '{repository.provider}'") from None


class MockScmProvider:
    """Mock SCM provider for testing.

    Records every call; any operation can be made to fail (``set_failure``)
    or to raise (``set_exception``).

    Usage:
        provider = MockScmProvider()
        provider.set_failure("tag", "tag already exists")
        manager = ScmManager({"git": provider})
    """

    def __init__(self, changed_files: tuple[str, ...] = ()) -> None:
        self.changed_files = changed_files
        self.calls: list[tuple[str, ScmFileSet, str | None]] = []
        self._failures: dict[str, ScmResult] = {}
        self._exceptions: dict[str, ScmException] = {}

    def set_failure(self, operation: str, message: str, output: str = "") -> None:
        self._failures[operation] = ScmResult(
            success=False, output=output or message, provider_message=message
        )

    def set_exception(self, operation: str, message: str) -> None:
        self._exceptions[operation] = ScmException(message)

    @property
    def operations(self) -> list[str]:
        return [op for op, _, _ in self.calls]

    def _call(self, operation: str, fileset: ScmFileSet, detail: str | None = None) -> ScmResult:
        self.calls.append((operation, fileset, detail))
        if operation in self._exceptions:
            raise self._exceptions[operation]
        if operation in self._failures:
            return self._failures[operation]
        if operation == "status":
            return ScmResult(success=True, changed_files=self.changed_files)
        return ScmResult(success=True, output=f"{operation} ok")

    def status(self, repository: ScmRepository, fileset: ScmFileSet) -> ScmResult:
        return self._call("status", fileset)

    def checkout(
        self, repository: ScmRepository, fileset: ScmFileSet, tag: str | None
    ) -> ScmResult:
        return self._call("checkout", fileset, tag)

    def commit(self, repository: ScmRepository, fileset: ScmFileSet, message: str) -> ScmResult:
        return self._call("commit", fileset, message)

    def tag(
        self, repository: ScmRepository, fileset: ScmFileSet, tag: str, message: str
    ) -> ScmResult:
        return self._call("tag", fileset, tag)

    def branch(
        self, repository: ScmRepository, fileset: ScmFileSet, branch: str, message: str
    ) -> ScmResult:
        return self._call("branch", fileset, branch)
