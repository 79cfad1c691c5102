# SPDX-License-Identifier: MIT
"""Phases talking to the SCM provider: commit, tag, branch, checkout."""

from __future__ import annotations

from collections.abc import Callable
from typing import Literal

from relm.core.result import Err, Ok, Result
from relm.release.contracts import ReleaseEnvironment
from relm.release.descriptor import ReleaseDescriptor
from relm.release.errors import ReleaseError, command_error, execution_error, validation_error
from relm.release.phases.base import PhaseOutput, ReleasePhase
from relm.release.reactor import Reactor
from relm.scm.provider import (
    ScmException,
    ScmFileSet,
    ScmManager,
    ScmProvider,
    ScmRepository,
    ScmResult,
)

DEFAULT_CHECKOUT_DIRECTORY = "target/checkout"

CommitKind = Literal["release", "development", "branch", "rollback"]


def resolve_provider(
    scm_manager: ScmManager, descriptor: ReleaseDescriptor
) -> Result[tuple[ScmRepository, ScmProvider], ReleaseError]:
    """Repository and provider for the descriptor's SCM URL."""
    url = descriptor.scm_source_url
    if not url:
        return Err(validation_error("no SCM URL was provided"))
    repository = scm_manager.repository(url)
    if isinstance(repository, Err):
        return Err(validation_error(repository.error))
    try:
        provider = scm_manager.provider(repository.value)
    except ScmException as e:
        return Err(execution_error("SCM provider lookup failed", e))
    return Ok((repository.value, provider))


def call_provider(what: str, call: Callable[[], ScmResult]) -> Result[ScmResult, ReleaseError]:
    """Run one provider call.

    A raised ScmException is an execution failure; an unsuccessful result is
    a command failure carrying the provider output.
    """
    try:
        result = call()
    except ScmException as e:
        return Err(execution_error(f"SCM {what} failed", e))
    if not result.success:
        message = f"SCM {what} failed"
        if result.provider_message:
            message = f"{message}: {result.provider_message}"
        return Err(command_error(message, result.output))
    return Ok(result)


def _descriptor_fileset(descriptor: ReleaseDescriptor, reactor: Reactor) -> ScmFileSet:
    return ScmFileSet(descriptor.base_directory, tuple(reactor.paths()))


class ScmCommitPhase(ReleasePhase):
    """Commit the module descriptors."""

    def __init__(self, name: str, scm_manager: ScmManager, kind: CommitKind) -> None:
        super().__init__(name)
        self._scm_manager = scm_manager
        self.kind = kind

    def message(self, descriptor: ReleaseDescriptor) -> str:
        prefix = descriptor.scm_comment_prefix
        label = descriptor.scm_release_label or ""
        match self.kind:
            case "release":
                return f"{prefix}prepare release {label}"
            case "development":
                return f"{prefix}prepare for next development iteration"
            case "branch":
                return f"{prefix}prepare branch {descriptor.branch_name or ''}"
            case "rollback":
                return f"{prefix}rollback the release of {label}"

    def _skipped(self, descriptor: ReleaseDescriptor) -> bool:
        return self.kind == "development" and not descriptor.update_working_copy_versions

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        if self._skipped(descriptor):
            return Ok(PhaseOutput.of("working copy versions are not updated, nothing to commit"))

        resolved = resolve_provider(self._scm_manager, descriptor)
        if isinstance(resolved, Err):
            return resolved
        repository, provider = resolved.value

        fileset = _descriptor_fileset(descriptor, reactor)
        message = self.message(descriptor)
        result = call_provider("commit", lambda: provider.commit(repository, fileset, message))
        if isinstance(result, Err):
            return result
        return Ok(PhaseOutput.of(f"committed {len(fileset.files)} file(s): {message}"))

    def simulate(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        if self._skipped(descriptor):
            return Ok(PhaseOutput.of("working copy versions are not updated, nothing to commit"))
        return Ok(
            PhaseOutput.of(
                f"would commit {len(reactor.paths())} file(s): {self.message(descriptor)}"
            )
        )


class ScmTagPhase(ReleasePhase):
    """Tag the committed release."""

    def __init__(self, scm_manager: ScmManager, name: str = "scm-tag") -> None:
        super().__init__(name)
        self._scm_manager = scm_manager

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        label = descriptor.scm_release_label
        if not label:
            return Err(validation_error("no release label (tag) was mapped"))

        resolved = resolve_provider(self._scm_manager, descriptor)
        if isinstance(resolved, Err):
            return resolved
        repository, provider = resolved.value

        fileset = _descriptor_fileset(descriptor, reactor)
        message = f"{descriptor.scm_comment_prefix}copy for tag {label}"
        result = call_provider("tag", lambda: provider.tag(repository, fileset, label, message))
        if isinstance(result, Err):
            return result
        return Ok(PhaseOutput.of(f"tagged {label}"))

    def simulate(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        return Ok(PhaseOutput.of(f"would tag {descriptor.scm_release_label}"))


class ScmBranchPhase(ReleasePhase):
    """Create the release branch."""

    def __init__(self, scm_manager: ScmManager, name: str = "scm-branch") -> None:
        super().__init__(name)
        self._scm_manager = scm_manager

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        branch = descriptor.branch_name
        if not branch:
            return Err(validation_error("no branch name was given"))

        resolved = resolve_provider(self._scm_manager, descriptor)
        if isinstance(resolved, Err):
            return resolved
        repository, provider = resolved.value

        fileset = _descriptor_fileset(descriptor, reactor)
        message = f"{descriptor.scm_comment_prefix}copy for branch {branch}"
        result = call_provider("branch", lambda: provider.branch(repository, fileset, branch, message))
        if isinstance(result, Err):
            return result
        return Ok(PhaseOutput.of(f"branched {branch}"))

    def simulate(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        return Ok(PhaseOutput.of(f"would branch {descriptor.branch_name}"))


class CheckoutProjectFromScmPhase(ReleasePhase):
    """Check the release tag out into the checkout directory."""

    def __init__(self, scm_manager: ScmManager, name: str = "checkout-project-from-scm") -> None:
        super().__init__(name)
        self._scm_manager = scm_manager

    def execute(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        resolved = resolve_provider(self._scm_manager, descriptor)
        if isinstance(resolved, Err):
            return resolved
        repository, provider = resolved.value

        target = descriptor.checkout_directory or descriptor.base_directory / DEFAULT_CHECKOUT_DIRECTORY
        descriptor.checkout_directory = target
        tag = descriptor.scm_release_label
        result = call_provider(
            "checkout", lambda: provider.checkout(repository, ScmFileSet(target), tag)
        )
        if isinstance(result, Err):
            return result
        return Ok(PhaseOutput.of(f"checked out {tag or 'HEAD'} into {target}"))

    def simulate(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        reactor: Reactor,
    ) -> Result[PhaseOutput, ReleaseError]:
        target = descriptor.checkout_directory or descriptor.base_directory / DEFAULT_CHECKOUT_DIRECTORY
        return Ok(
            PhaseOutput.of(f"would check out {descriptor.scm_release_label or 'HEAD'} into {target}")
        )
