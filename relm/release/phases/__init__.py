# SPDX-License-Identifier: MIT
"""Release phases.

Every phase implements ReleasePhase (execute, simulate, clean). Phases are
instantiated once per registry and looked up by name by the release
manager.
"""

from relm.release.phases.backup import (
    BACKUP_SUFFIX,
    CreateBackupDescriptorsPhase,
    RestoreBackupDescriptorsPhase,
)
from relm.release.phases.base import PhaseOutput, ReleasePhase
from relm.release.phases.checks import CheckDescriptorsPhase, ScmCheckModificationsPhase
from relm.release.phases.goals import RunGoalsPhase
from relm.release.phases.mapping import MapVersionsPhase
from relm.release.phases.perform import (
    CleanupPhase,
    EndReleasePhase,
    RemoveReleaseDescriptorsPhase,
    VerifyCompletedPreparePhasesPhase,
    VerifyReleaseConfigurationPhase,
)
from relm.release.phases.rewrite import RewriteDescriptorsPhase
from relm.release.phases.scm import (
    CheckoutProjectFromScmPhase,
    ScmBranchPhase,
    ScmCommitPhase,
    ScmTagPhase,
)

__all__ = [
    "BACKUP_SUFFIX",
    "PhaseOutput",
    "ReleasePhase",
    "CheckDescriptorsPhase",
    "ScmCheckModificationsPhase",
    "CreateBackupDescriptorsPhase",
    "RestoreBackupDescriptorsPhase",
    "MapVersionsPhase",
    "RewriteDescriptorsPhase",
    "RunGoalsPhase",
    "ScmCommitPhase",
    "ScmTagPhase",
    "ScmBranchPhase",
    "CheckoutProjectFromScmPhase",
    "VerifyReleaseConfigurationPhase",
    "VerifyCompletedPreparePhasesPhase",
    "CleanupPhase",
    "RemoveReleaseDescriptorsPhase",
    "EndReleasePhase",
]
