"""Git-backed SCM provider.

Runs the ``git`` executable through relm.platform.process. A non-zero exit
becomes an unsuccessful ScmResult; an executable that cannot be launched (or
that times out) raises ScmException.

Usage:
    provider = GitScmProvider()
    repo = parse_scm_url("scm:git:https://example.com/project.git").unwrap()
    result = provider.tag(repo, ScmFileSet(Path(".")), "project-1.0", "release 1.0")
    if not result.success:
        print(result.output)
"""

from __future__ import annotations

from pathlib import Path

from relm.core.result import Err, Result
from relm.platform.process import ProcessError
from relm.platform.process import run as run_process
from relm.scm.provider import ScmException, ScmFileSet, ScmRepository, ScmResult

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
_NETWORK_COMMANDS = frozenset({"fetch", "pull", "push", "clone"})

__all__ = ["GitScmProvider", "parse_porcelain_status"]


class GitScmProvider:
    """ScmProvider implementation for ``scm:git:`` URLs.

    Attributes:
        push_changes: Push commits, tags and branches to the remote.
        remote: Remote name used when pushing.
    """

    def __init__(self, *, push_changes: bool = True, remote: str = "origin") -> None:
        self.push_changes = push_changes
        self.remote = remote

    def status(self, repository: ScmRepository, fileset: ScmFileSet) -> ScmResult:
        result = self._run(fileset.basedir, ["status", "--porcelain=v1"])
        if isinstance(result, Err):
            return _failed(result.error)
        return ScmResult(
            success=True,
            output=result.value,
            changed_files=parse_porcelain_status(result.value),
        )

    def checkout(
        self, repository: ScmRepository, fileset: ScmFileSet, tag: str | None
    ) -> ScmResult:
        target = fileset.basedir
        if target.exists() and any(target.iterdir()):
            return ScmResult(
                success=False,
                output="",
                provider_message=f"checkout directory is not empty: {target}",
            )
        target.parent.mkdir(parents=True, exist_ok=True)

        args = ["clone"]
        if tag:
            args.extend(["--branch", tag])
        args.extend([repository.url, str(target)])
        result = self._run(target.parent, args, in_repo=False)
        if isinstance(result, Err):
            return _failed(result.error)
        return ScmResult(success=True, output=result.value)

    def commit(self, repository: ScmRepository, fileset: ScmFileSet, message: str) -> ScmResult:
        files = fileset.relative_files()
        if files:
            added = self._run(fileset.basedir, ["add", "--", *files])
            if isinstance(added, Err):
                return _failed(added.error)
            args = ["commit", "-m", message, "--", *files]
        else:
            args = ["commit", "-a", "-m", message]

        committed = self._run(fileset.basedir, args)
        if isinstance(committed, Err):
            return _failed(committed.error)

        output = committed.value
        if self.push_changes:
            pushed = self._run(fileset.basedir, ["push", self.remote, "HEAD"])
            if isinstance(pushed, Err):
                return _failed(pushed.error, prior_output=output)
            output += pushed.value
        return ScmResult(success=True, output=output)

    def tag(
        self, repository: ScmRepository, fileset: ScmFileSet, tag: str, message: str
    ) -> ScmResult:
        return self._create_ref(fileset, ["tag", "-a", tag, "-m", message], ref=tag)

    def branch(
        self, repository: ScmRepository, fileset: ScmFileSet, branch: str, message: str
    ) -> ScmResult:
        del message
        return self._create_ref(fileset, ["branch", branch], ref=branch)

    def _create_ref(self, fileset: ScmFileSet, args: list[str], *, ref: str) -> ScmResult:
        created = self._run(fileset.basedir, args)
        if isinstance(created, Err):
            return _failed(created.error)

        output = created.value
        if self.push_changes:
            pushed = self._run(fileset.basedir, ["push", self.remote, ref])
            if isinstance(pushed, Err):
                return _failed(pushed.error, prior_output=output)
            output += pushed.value
        return ScmResult(success=True, output=output)

    def _run(self, cwd: Path, args: list[str], *, in_repo: bool = True) -> Result[str, ProcessError]:
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else _GIT_TIMEOUT_SECONDS
        )
        cmd = ["git", "-C", str(cwd), *args] if in_repo else ["git", *args]
        result = run_process(cmd, cwd=cwd, timeout=timeout)
        if isinstance(result, Err) and not result.error.started:
            raise ScmException(f"git {command}: {result.error.stderr.strip()}")
        return result


def _failed(error: ProcessError, *, prior_output: str = "") -> ScmResult:
    message = error.stderr.strip() or error.stdout.strip() or str(error)
    return ScmResult(
        success=False,
        output=prior_output + error.stdout + error.stderr,
        provider_message=message,
    )


def parse_porcelain_status(output: str) -> tuple[str, ...]:
    """Paths with tracked modifications from ``git status --porcelain=v1``.

    Untracked entries (``??``) and ignored entries (``!!``) are skipped.
    Renames report the new path.
    """
    paths: list[str] = []
    for line in output.splitlines():
        if len(line) < 4:
            continue
        xy = line[:2]
        if xy in ("??", "!!"):
            continue
        path = line[3:]
        if " -> " in path:
            path = path.split(" -> ", 1)[1]
        paths.append(path.strip('"'))
    return tuple(paths)
