"""Provider-specific translation of ``<scm>`` locations for tags and branches.

URL-based providers (svn) move the connection URLs to the tag or branch
location. Label-based providers (git, hg, cvs) keep the URLs and only record
the label in ``<tag>``.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable

__all__ = [
    "LabelScmTranslator",
    "ScmTranslator",
    "SvnScmTranslator",
    "common_scm_root",
    "provider_of",
    "translator_for",
]

_SVN_LAYOUT_RE = re.compile(r"/(trunk|branches/[^/]+|tags/[^/]+)(/.*)?$")
_SCM_PREFIX_RE = re.compile(r"^scm:([A-Za-z0-9_-]+)[:|](.*)$")


class ScmTranslator(ABC):
    """Computes tag/branch versions of the fields of an ``<scm>`` block."""

    @abstractmethod
    def translate_tag(
        self, url: str, tag: str, tag_base: str | None, scm_root: str | None = None
    ) -> str: ...

    @abstractmethod
    def translate_branch(
        self, url: str, branch: str, branch_base: str | None, scm_root: str | None = None
    ) -> str: ...

    @abstractmethod
    def resolve_tag(self, tag: str) -> str | None:
        """Value for ``<tag>`` (None keeps the element as is)."""

    @abstractmethod
    def resolve_branch(self, branch: str) -> str | None: ...


class SvnScmTranslator(ScmTranslator):
    """Subversion: tags and branches are directories of the repository.

    ``.../trunk/sub`` tagged ``rel-1`` becomes ``<tag_base>/rel-1/sub``. With
    no tag base the repository root's ``tags`` directory is used.

    ``scm_root`` is the location shared by every module of the release (see
    ``common_scm_root``). A module below it keeps its path relative to it,
    so nested and flat layouts without ``trunk`` still tag each module in
    its own directory. Without a usable root the ``trunk``, ``branches/x``
    or ``tags/x`` segment of the URL decides what the module path is.
    """

    def translate_tag(
        self, url: str, tag: str, tag_base: str | None, scm_root: str | None = None
    ) -> str:
        return self._translate(url, tag, tag_base, "tags", scm_root)

    def translate_branch(
        self, url: str, branch: str, branch_base: str | None, scm_root: str | None = None
    ) -> str:
        return self._translate(url, branch, branch_base, "branches", scm_root)

    def resolve_tag(self, tag: str) -> str | None:
        return tag

    def resolve_branch(self, branch: str) -> str | None:
        return branch

    def _translate(
        self, url: str, label: str, base: str | None, folder: str, scm_root: str | None
    ) -> str:
        prefix = ""
        match = _SCM_PREFIX_RE.match(url)
        if match is not None:
            prefix = url[: match.start(2)]
            url = match.group(2)
        url = url.rstrip("/")

        released = url
        if scm_root:
            candidate = _strip_prefix(scm_root).rstrip("/")
            if url == candidate or url.startswith(candidate + "/"):
                released = candidate
        relative = url[len(released) :]

        layout = _SVN_LAYOUT_RE.search(released)
        if layout is not None:
            suffix = (layout.group(2) or "") + relative
            root = released[: layout.start()]
        else:
            suffix = relative
            root = released

        if base:
            base_url = _strip_prefix(base).rstrip("/")
        else:
            base_url = f"{root}/{folder}"
        return f"{prefix}{base_url}/{label}{suffix}"


class LabelScmTranslator(ScmTranslator):
    """git, hg, cvs: locations stay, the label goes into ``<tag>``."""

    def translate_tag(
        self, url: str, tag: str, tag_base: str | None, scm_root: str | None = None
    ) -> str:
        del tag, tag_base, scm_root
        return url

    def translate_branch(
        self, url: str, branch: str, branch_base: str | None, scm_root: str | None = None
    ) -> str:
        del branch, branch_base, scm_root
        return url

    def resolve_tag(self, tag: str) -> str | None:
        return tag

    def resolve_branch(self, branch: str) -> str | None:
        return branch


_TRANSLATORS: dict[str, ScmTranslator] = {
    "svn": SvnScmTranslator(),
    "git": LabelScmTranslator(),
    "hg": LabelScmTranslator(),
    "cvs": LabelScmTranslator(),
}


def provider_of(url: str | None) -> str | None:
    """``scm:svn:http://...`` -> ``svn``; None when ``url`` is not an SCM URL."""
    if not url:
        return None
    match = _SCM_PREFIX_RE.match(url)
    return match.group(1) if match else None


def translator_for(provider: str | None) -> ScmTranslator | None:
    if provider is None:
        return None
    return _TRANSLATORS.get(provider.lower())


def _strip_prefix(url: str) -> str:
    match = _SCM_PREFIX_RE.match(url)
    return match.group(2) if match else url


# scheme, empty authority separator, host: anything shorter names no directory
_MIN_ROOT_SEGMENTS = 4


def common_scm_root(urls: Iterable[str]) -> str | None:
    """Longest directory shared by ``urls`` (compared segment by segment).

    ``.../proj`` and ``.../proj/child`` share ``.../proj``; the flat siblings
    ``.../proj/parent`` and ``.../proj/child`` share ``.../proj`` as well.
    None when there is no URL or the URLs share no more than their host.
    """
    split = [url.rstrip("/").split("/") for url in urls if url]
    if not split:
        return None
    common = split[0]
    for segments in split[1:]:
        size = 0
        for a, b in zip(common, segments):
            if a != b:
                break
            size += 1
        common = common[:size]
    if len(common) < _MIN_ROOT_SEGMENTS:
        return None
    return "/".join(common)
