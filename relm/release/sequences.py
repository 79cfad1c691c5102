"""Phase sequences and the registry resolving them to phase instances.

Usage:
    registry = build_default_registry(scm_manager, CommandGoalRunner(["mvn"]))
    for phase in registry.resolve("prepare"):
        print(phase.name)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Literal

from relm.release.goals import GoalRunner
from relm.release.phases import (
    CheckDescriptorsPhase,
    CheckoutProjectFromScmPhase,
    CleanupPhase,
    CreateBackupDescriptorsPhase,
    EndReleasePhase,
    MapVersionsPhase,
    ReleasePhase,
    RemoveReleaseDescriptorsPhase,
    RestoreBackupDescriptorsPhase,
    RewriteDescriptorsPhase,
    RunGoalsPhase,
    ScmBranchPhase,
    ScmCheckModificationsPhase,
    ScmCommitPhase,
    ScmTagPhase,
    VerifyCompletedPreparePhasesPhase,
    VerifyReleaseConfigurationPhase,
)
from relm.release.rewrite import SHADOW_SUFFIXES
from relm.scm.provider import ScmManager

__all__ = [
    "BRANCH_PHASES",
    "CLEAN_PHASES",
    "DEFAULT_SEQUENCES",
    "PERFORM_PHASES",
    "PREPARE_PHASES",
    "ROLLBACK_PHASES",
    "UPDATE_VERSIONS_PHASES",
    "PhaseRegistry",
    "SequenceKind",
    "UnknownPhaseError",
    "build_default_registry",
    "ordered_union",
]

SequenceKind = Literal["prepare", "perform", "rollback", "branch", "update-versions", "clean"]

PREPARE_PHASES: tuple[str, ...] = (
    "check-descriptors",
    "scm-check-modifications",
    "create-backup-descriptors",
    "map-release-versions",
    "map-development-versions",
    "rewrite-descriptors-for-release",
    "run-preparation-goals",
    "scm-commit-release",
    "scm-tag",
    "rewrite-descriptors-for-development",
    "remove-release-descriptors",
    "scm-commit-development",
    "end-release",
)

PERFORM_PHASES: tuple[str, ...] = (
    "verify-release-configuration",
    "verify-completed-prepare-phases",
    "checkout-project-from-scm",
    "run-perform-goals",
    "cleanup",
)

ROLLBACK_PHASES: tuple[str, ...] = (
    "restore-backup-descriptors",
    "scm-commit-rollback",
)

BRANCH_PHASES: tuple[str, ...] = (
    "check-descriptors",
    "scm-check-modifications",
    "create-backup-descriptors",
    "map-branch-versions",
    "rewrite-descriptors-for-branch",
    "scm-commit-branch",
    "scm-branch",
    "end-release",
)

UPDATE_VERSIONS_PHASES: tuple[str, ...] = (
    "map-development-versions",
    "rewrite-descriptor-versions",
)


def ordered_union(*sequences: Sequence[str]) -> tuple[str, ...]:
    """Concatenate sequences keeping the first occurrence of each name."""
    seen: dict[str, None] = {}
    for sequence in sequences:
        for name in sequence:
            seen.setdefault(name, None)
    return tuple(seen)


CLEAN_PHASES: tuple[str, ...] = ordered_union(PREPARE_PHASES, BRANCH_PHASES)

DEFAULT_SEQUENCES: Mapping[str, tuple[str, ...]] = {
    "prepare": PREPARE_PHASES,
    "perform": PERFORM_PHASES,
    "rollback": ROLLBACK_PHASES,
    "branch": BRANCH_PHASES,
    "update-versions": UPDATE_VERSIONS_PHASES,
    "clean": CLEAN_PHASES,
}


class UnknownPhaseError(Exception):
    """A sequence names phases the registry does not know."""

    def __init__(self, kind: str, names: Sequence[str]) -> None:
        super().__init__(f"{kind} sequence names unknown phase(s): {', '.join(names)}")
        self.kind = kind
        self.names = tuple(names)


class PhaseRegistry:
    """Phase instances by name plus the named sequences over them."""

    def __init__(
        self,
        phases: Iterable[ReleasePhase],
        sequences: Mapping[str, Sequence[str]] | None = None,
    ) -> None:
        self._phases: dict[str, ReleasePhase] = {}
        for phase in phases:
            self.register(phase)
        source = DEFAULT_SEQUENCES if sequences is None else sequences
        self._sequences = {kind: tuple(names) for kind, names in source.items()}

    def register(self, phase: ReleasePhase) -> None:
        if phase.name in self._phases:
            raise ValueError(f"phase already registered: {phase.name}")
        self._phases[phase.name] = phase

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._phases)

    def get(self, name: str) -> ReleasePhase | None:
        return self._phases.get(name)

    def sequence(self, kind: str) -> tuple[str, ...]:
        try:
            return self._sequences[kind]
        except KeyError:
            raise UnknownPhaseError(kind, [f"<no {kind} sequence>"]) from None

    def resolve(self, kind: str) -> list[ReleasePhase]:
        """Phase instances of a sequence, in order.

        Raises UnknownPhaseError before anything runs when a name is missing.
        """
        names = self.sequence(kind)
        missing = [n for n in names if n not in self._phases]
        if missing:
            raise UnknownPhaseError(kind, missing)
        return [self._phases[n] for n in names]

    def validate(self) -> list[str]:
        """Names referenced by any sequence but not registered."""
        problems: list[str] = []
        for kind, names in self._sequences.items():
            problems.extend(f"{kind}: {n}" for n in names if n not in self._phases)
        return problems


def build_default_registry(scm_manager: ScmManager, goal_runner: GoalRunner) -> PhaseRegistry:
    """Registry with every built-in phase wired to the given collaborators."""
    phases: list[ReleasePhase] = [
        CheckDescriptorsPhase(),
        ScmCheckModificationsPhase(scm_manager),
        CreateBackupDescriptorsPhase(),
        MapVersionsPhase("map-release-versions", "release"),
        MapVersionsPhase("map-development-versions", "development"),
        MapVersionsPhase("map-branch-versions", "branch"),
        RewriteDescriptorsPhase("rewrite-descriptors-for-release", "release"),
        RewriteDescriptorsPhase("rewrite-descriptors-for-development", "development"),
        RewriteDescriptorsPhase("rewrite-descriptors-for-branch", "branch"),
        RewriteDescriptorsPhase("rewrite-descriptor-versions", "versions"),
        RunGoalsPhase("run-preparation-goals", goal_runner, "preparation"),
        RunGoalsPhase("run-perform-goals", goal_runner, "perform"),
        ScmCommitPhase("scm-commit-release", scm_manager, "release"),
        ScmCommitPhase("scm-commit-development", scm_manager, "development"),
        ScmCommitPhase("scm-commit-branch", scm_manager, "branch"),
        ScmCommitPhase("scm-commit-rollback", scm_manager, "rollback"),
        ScmTagPhase(scm_manager),
        ScmBranchPhase(scm_manager),
        RemoveReleaseDescriptorsPhase(SHADOW_SUFFIXES["release"]),
        EndReleasePhase(),
        VerifyReleaseConfigurationPhase(),
        VerifyCompletedPreparePhasesPhase(PREPARE_PHASES[-1]),
        CheckoutProjectFromScmPhase(scm_manager),
        CleanupPhase(),
        RestoreBackupDescriptorsPhase(),
    ]
    return PhaseRegistry(phases)
