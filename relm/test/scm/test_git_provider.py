"""Tests for the git SCM provider (git itself is never invoked)."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

import pytest

import relm.scm.git as git_module
from relm.core.result import Err, Ok, Result
from relm.platform.process import ProcessError
from relm.scm.git import GitScmProvider, parse_porcelain_status
from relm.scm.provider import ScmException, ScmFileSet, ScmRepository

REPO = ScmRepository(provider="git", url="https://example.com/p.git", raw="scm:git:https://example.com/p.git")


class FakeGit:
    def __init__(self, failures: Mapping[str, ProcessError] | None = None) -> None:
        self.calls: list[list[str]] = []
        self.failures = dict(failures or {})

    def __call__(
        self, cmd: Sequence[str], cwd: Path, env: object = None, *, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        args = list(cmd)
        self.calls.append(args)
        sub = args[3] if args[1] == "-C" else args[1]
        if sub in self.failures:
            return Err(self.failures[sub])
        return Ok(f"{sub} ok\n")

    def subcommands(self) -> list[str]:
        return [c[3] if c[1] == "-C" else c[1] for c in self.calls]


@pytest.fixture
def fake_git(monkeypatch: pytest.MonkeyPatch) -> FakeGit:
    fake = FakeGit()
    monkeypatch.setattr(git_module, "run_process", fake)
    return fake


def test_parse_porcelain_status() -> None:
    output = " M module.xml\n?? notes.txt\nA  core/module.xml\nR  old.xml -> new.xml\n!! build/\n"
    assert parse_porcelain_status(output) == ("module.xml", "core/module.xml", "new.xml")


def test_commit_adds_files_and_pushes(tmp_path: Path, fake_git: FakeGit) -> None:
    provider = GitScmProvider()
    fileset = ScmFileSet(tmp_path, (tmp_path / "module.xml", tmp_path / "core" / "module.xml"))

    result = provider.commit(REPO, fileset, "[relm] prepare release p-1.0")

    assert result.success
    assert fake_git.subcommands() == ["add", "commit", "push"]
    assert fake_git.calls[1][-2:] == ["module.xml", str(Path("core/module.xml"))]
    assert fake_git.calls[2][-2:] == ["origin", "HEAD"]


def test_commit_without_push(tmp_path: Path, fake_git: FakeGit) -> None:
    provider = GitScmProvider(push_changes=False)

    result = provider.commit(REPO, ScmFileSet(tmp_path), "msg")

    assert result.success
    assert fake_git.subcommands() == ["commit"]
    assert "-a" in fake_git.calls[0]


def test_tag_failure_is_unsuccessful_result(tmp_path: Path, fake_git: FakeGit) -> None:
    fake_git.failures["tag"] = ProcessError(
        command=("git", "tag"), returncode=128, stdout="", stderr="fatal: tag 'p-1.0' already exists\n"
    )

    result = GitScmProvider().tag(REPO, ScmFileSet(tmp_path), "p-1.0", "msg")

    assert result.success is False
    assert result.provider_message == "fatal: tag 'p-1.0' already exists"
    assert "already exists" in result.output
    assert fake_git.subcommands() == ["tag"]


def test_push_failure_keeps_prior_output(tmp_path: Path, fake_git: FakeGit) -> None:
    fake_git.failures["push"] = ProcessError(
        command=("git", "push"), returncode=1, stdout="", stderr="rejected\n"
    )

    result = GitScmProvider().branch(REPO, ScmFileSet(tmp_path), "p-1.x", "msg")

    assert result.success is False
    assert result.output.startswith("branch ok\n")
    assert fake_git.calls[-1][-2:] == ["origin", "p-1.x"]


def test_missing_executable_raises(tmp_path: Path, fake_git: FakeGit) -> None:
    fake_git.failures["status"] = ProcessError(
        command=("git",), returncode=-1, stdout="", stderr="No such file or directory: 'git'"
    )

    with pytest.raises(ScmException, match="git status"):
        GitScmProvider().status(REPO, ScmFileSet(tmp_path))


def test_status_reports_changed_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fake(cmd: Sequence[str], cwd: Path, env: object = None, *, timeout: float | None = None):
        return Ok(" M module.xml\n")

    monkeypatch.setattr(git_module, "run_process", fake)

    result = GitScmProvider().status(REPO, ScmFileSet(tmp_path))

    assert result.success
    assert result.changed_files == ("module.xml",)


def test_checkout_clones_tag(tmp_path: Path, fake_git: FakeGit) -> None:
    target = tmp_path / "target" / "checkout"

    result = GitScmProvider().checkout(REPO, ScmFileSet(target), "p-1.0")

    assert result.success
    assert fake_git.calls[0] == ["git", "clone", "--branch", "p-1.0", REPO.url, str(target)]


def test_checkout_refuses_non_empty_directory(tmp_path: Path, fake_git: FakeGit) -> None:
    target = tmp_path / "checkout"
    target.mkdir()
    (target / "leftover").write_text("x", encoding="utf-8")

    result = GitScmProvider().checkout(REPO, ScmFileSet(target), None)

    assert result.success is False
    assert "not empty" in (result.provider_message or "")
    assert fake_git.calls == []
