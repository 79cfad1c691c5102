# SPDX-License-Identifier: MIT
"""Tests for the commit, tag, branch and checkout phases."""

from __future__ import annotations

from pathlib import Path

import pytest

from relm.core.result import Err, Ok
from relm.release.contracts import ReleaseEnvironment
from relm.release.descriptor import ReleaseDescriptor
from relm.release.phases.scm import (
    CheckoutProjectFromScmPhase,
    ScmBranchPhase,
    ScmCommitPhase,
    ScmTagPhase,
)
from relm.release.reactor import Reactor
from relm.scm.provider import MockScmProvider, ScmManager

SCM_URL = "scm:git:ssh://git@example.com/app.git"


@pytest.fixture
def release(descriptor: ReleaseDescriptor) -> ReleaseDescriptor:
    descriptor.scm_source_url = SCM_URL
    descriptor.scm_release_label = "app-1.0"
    return descriptor


class TestScmCommitPhase:
    @pytest.mark.parametrize(
        ("kind", "expected"),
        [
            ("release", "[relm] prepare release app-1.0"),
            ("development", "[relm] prepare for next development iteration"),
            ("rollback", "[relm] rollback the release of app-1.0"),
        ],
    )
    def test_message(self, kind: str, expected: str, release: ReleaseDescriptor, scm_manager: ScmManager) -> None:
        phase = ScmCommitPhase(f"scm-commit-{kind}", scm_manager, kind)  # type: ignore[arg-type]
        assert phase.message(release) == expected

    def test_commits_every_descriptor(
        self,
        tmp_path: Path,
        release: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        project: Reactor,
        scm_manager: ScmManager,
        scm_provider: MockScmProvider,
    ) -> None:
        result = ScmCommitPhase("scm-commit-release", scm_manager, "release").execute(
            release, environment, project
        )

        assert isinstance(result, Ok)
        operation, fileset, message = scm_provider.calls[0]
        assert operation == "commit"
        assert message == "[relm] prepare release app-1.0"
        assert fileset.files == (tmp_path / "module.xml", tmp_path / "core" / "module.xml")

    def test_development_commit_skipped_without_working_copy_update(
        self,
        release: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        project: Reactor,
        scm_manager: ScmManager,
        scm_provider: MockScmProvider,
    ) -> None:
        release.update_working_copy_versions = False
        phase = ScmCommitPhase("scm-commit-development", scm_manager, "development")

        assert isinstance(phase.execute(release, environment, project), Ok)
        assert scm_provider.calls == []

    def test_failed_commit_is_command_error(
        self,
        release: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        project: Reactor,
        scm_manager: ScmManager,
        scm_provider: MockScmProvider,
    ) -> None:
        scm_provider.set_failure("commit", "nothing to commit", output="On branch main\nnothing to commit\n")

        result = ScmCommitPhase("scm-commit-release", scm_manager, "release").execute(
            release, environment, project
        )

        assert isinstance(result, Err)
        assert result.error.kind == "command"
        assert result.error.message == "SCM commit failed: nothing to commit"
        assert result.error.output == "On branch main\nnothing to commit\n"

    def test_simulate_does_not_call_provider(
        self,
        release: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        project: Reactor,
        scm_manager: ScmManager,
        scm_provider: MockScmProvider,
    ) -> None:
        result = ScmCommitPhase("scm-commit-release", scm_manager, "release").simulate(
            release, environment, project
        )

        assert isinstance(result, Ok)
        assert result.value.messages == ("would commit 2 file(s): [relm] prepare release app-1.0",)
        assert scm_provider.calls == []


class TestScmTagPhase:
    def test_tags_label(
        self,
        release: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        project: Reactor,
        scm_manager: ScmManager,
        scm_provider: MockScmProvider,
    ) -> None:
        result = ScmTagPhase(scm_manager).execute(release, environment, project)

        assert isinstance(result, Ok)
        assert scm_provider.calls[0][0] == "tag"
        assert scm_provider.calls[0][2] == "app-1.0"

    def test_missing_label(
        self,
        release: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        project: Reactor,
        scm_manager: ScmManager,
    ) -> None:
        release.scm_release_label = None

        result = ScmTagPhase(scm_manager).execute(release, environment, project)

        assert isinstance(result, Err)
        assert result.error.kind == "validation"

    def test_provider_exception_vs_failure(
        self,
        release: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        project: Reactor,
        scm_manager: ScmManager,
        scm_provider: MockScmProvider,
    ) -> None:
        scm_provider.set_failure("tag", "tag exists")
        failed = ScmTagPhase(scm_manager).execute(release, environment, project)

        scm_provider.set_exception("tag", "connection reset")
        raised = ScmTagPhase(scm_manager).execute(release, environment, project)

        assert isinstance(failed, Err) and failed.error.kind == "command"
        assert isinstance(raised, Err) and raised.error.kind == "execution"


class TestScmBranchPhase:
    def test_branches(
        self,
        release: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        project: Reactor,
        scm_manager: ScmManager,
        scm_provider: MockScmProvider,
    ) -> None:
        release.branch_name = "app-1.x"

        result = ScmBranchPhase(scm_manager).execute(release, environment, project)

        assert isinstance(result, Ok)
        assert scm_provider.calls[0][0] == "branch"
        assert scm_provider.calls[0][2] == "app-1.x"

    def test_requires_branch_name(
        self,
        release: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        project: Reactor,
        scm_manager: ScmManager,
    ) -> None:
        result = ScmBranchPhase(scm_manager).execute(release, environment, project)
        assert isinstance(result, Err)


class TestCheckoutProjectFromScmPhase:
    def test_default_checkout_directory(
        self,
        tmp_path: Path,
        release: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        project: Reactor,
        scm_manager: ScmManager,
        scm_provider: MockScmProvider,
    ) -> None:
        result = CheckoutProjectFromScmPhase(scm_manager).execute(release, environment, project)

        assert isinstance(result, Ok)
        assert release.checkout_directory == tmp_path / "target" / "checkout"
        _, fileset, tag = scm_provider.calls[0]
        assert fileset.basedir == tmp_path / "target" / "checkout"
        assert tag == "app-1.0"

    def test_missing_url(
        self,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        project: Reactor,
        scm_manager: ScmManager,
    ) -> None:
        result = CheckoutProjectFromScmPhase(scm_manager).execute(descriptor, environment, project)

        assert isinstance(result, Err)
        assert result.error.message == "no SCM URL was provided"
