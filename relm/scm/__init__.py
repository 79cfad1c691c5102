"""Source-control collaborators.

- provider: the ScmProvider contract, URL parsing and provider lookup
- git: provider backed by the git executable

Usage:
    from relm.scm import GitScmProvider, ScmManager

    manager = ScmManager({"git": GitScmProvider()})
    repo = manager.repository("scm:git:https://example.com/project.git")
"""

from relm.scm.git import GitScmProvider, parse_porcelain_status
from relm.scm.provider import (
    MockScmProvider,
    ScmException,
    ScmFileSet,
    ScmManager,
    ScmProvider,
    ScmRepository,
    ScmResult,
    parse_scm_url,
)

__all__ = [
    "GitScmProvider",
    "MockScmProvider",
    "ScmException",
    "ScmFileSet",
    "ScmManager",
    "ScmProvider",
    "ScmRepository",
    "ScmResult",
    "parse_porcelain_status",
    "parse_scm_url",
]
