"""Version arithmetic for release and development versions."""

from __future__ import annotations

import re

__all__ = [
    "SNAPSHOT_SUFFIX",
    "is_snapshot",
    "next_development_version",
    "release_version",
]

SNAPSHOT_SUFFIX = "-SNAPSHOT"

_LAST_NUMBER_RE = re.compile(r"(\d+)(?!.*\d)")


def is_snapshot(version: str) -> bool:
    return version.endswith(SNAPSHOT_SUFFIX)


def release_version(version: str) -> str:
    """``1.2-SNAPSHOT`` -> ``1.2``; non-snapshot versions are returned as is."""
    if is_snapshot(version):
        return version[: -len(SNAPSHOT_SUFFIX)]
    return version


def next_development_version(version: str) -> str:
    """Increment the last numeric component and mark the result as a snapshot.

    ``1.0`` -> ``1.1-SNAPSHOT``, ``2`` -> ``3-SNAPSHOT``,
    ``1.0-beta-1`` -> ``1.0-beta-2-SNAPSHOT``. A version without any number
    only gains the suffix.
    """
    base = release_version(version)
    match = _LAST_NUMBER_RE.search(base)
    if match is None:
        return base + SNAPSHOT_SUFFIX
    digits = match.group(1)
    bumped = str(int(digits) + 1).zfill(len(digits))
    return base[: match.start()] + bumped + base[match.end() :] + SNAPSHOT_SUFFIX
