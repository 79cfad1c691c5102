from __future__ import annotations

from relm.release.errors import command_error, execution_error, validation_error


def test_validation_error_has_no_cause() -> None:
    error = validation_error("no SCM URL", hint="pass --scm-url")
    assert error.kind == "validation"
    assert error.cause is None
    assert error.pretty() == "no SCM URL (hint: pass --scm-url)"


def test_execution_error_keeps_cause() -> None:
    cause = OSError("disk full")
    error = execution_error("failed to write release.json", cause)
    assert error.cause is cause
    assert error.pretty() == "failed to write release.json: disk full"


def test_command_error_keeps_output() -> None:
    error = command_error("git tag failed", "fatal: exists\n")
    assert error.kind == "command"
    assert error.output == "fatal: exists\n"


def test_in_phase_keeps_first_phase() -> None:
    error = validation_error("boom").in_phase("scm-tag", "scm-commit-release")
    assert error.phase == "scm-tag"
    assert error.completed_phase == "scm-commit-release"
    assert error.pretty() == "[scm-tag] boom"

    again = error.in_phase("other", "x")
    assert again.phase == "scm-tag"
    assert again.completed_phase == "x"
