"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import NoReturn

import typer

from relm.core.errors import ErrorCode
from relm.core.result import Err, Result
from relm.output.console import ConsoleProtocol, Style
from relm.release.contracts import ReleaseResult
from relm.release.errors import ReleaseError
from relm.release.store import DescriptorStoreError


def exit_with_code(code: ErrorCode) -> NoReturn:
    raise typer.Exit(code=int(code))


def release_error_code(error: ReleaseError) -> ErrorCode:
    if error.kind == "validation":
        return ErrorCode.USER_ERROR
    if error.kind == "command":
        return ErrorCode.COMMAND_ERROR
    if isinstance(error.cause, (OSError, DescriptorStoreError)):
        return ErrorCode.IO_ERROR
    return ErrorCode.EXECUTION_ERROR


def parse_overrides(items: list[str], *, flag: str) -> dict[str, str]:
    """Parse repeated ``key=value`` options."""
    out: dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        key = key.strip()
        value = value.strip()
        if not sep or not key or not value:
            typer.echo(f"error: invalid {flag} (expected group:artifact=version): {item}", err=True)
            exit_with_code(ErrorCode.USER_ERROR)
        out[key] = value
    return out


def finish(
    console: ConsoleProtocol,
    result: Result[ReleaseResult, ReleaseError],
) -> ReleaseResult:
    """Print the outcome; exits with the error's code on failure."""
    if isinstance(result, Err):
        error = result.error
        console.error(error.pretty())
        if error.output:
            console.print(error.output.rstrip(), Style.DIM)
        if error.completed_phase:
            console.print(f"last completed phase: {error.completed_phase}", Style.DIM)
        exit_with_code(release_error_code(error))

    outcome = result.value
    console.success(
        f"{outcome.operation} finished: {len(outcome.phases_run)} phase(s) "
        f"in {outcome.duration_seconds:.1f}s"
    )
    return outcome
