"""Release commands: prepare, perform, clean, rollback, branch, update-versions."""

from __future__ import annotations

from pathlib import Path

import typer

from relm.cli.commands._helpers import finish, parse_overrides
from relm.cli.context import CLIContext, build_context
from relm.release.contracts import CleanRequest, PerformRequest, PrepareRequest, ReleaseRequest
from relm.release.descriptor import ReleaseDescriptor
from relm.release.listener import ConsoleListener


def _descriptor(
    ctx: CLIContext,
    *,
    scm_url: str | None = None,
    tag: str | None = None,
    release_versions: dict[str, str] | None = None,
    dev_versions: dict[str, str] | None = None,
    branch_name: str | None = None,
    update_working_copy: bool = True,
    push_changes: bool = True,
) -> ReleaseDescriptor:
    config = ctx.config
    descriptor = ReleaseDescriptor(
        scm_source_url=scm_url,
        scm_tag_base=config.tag_base,
        scm_branch_base=config.branch_base,
        scm_release_label=tag,
        scm_comment_prefix=config.comment_prefix,
        working_directory=ctx.root,
        update_working_copy_versions=update_working_copy,
        push_changes=push_changes,
        branch_name=branch_name,
    )
    for key, version in (release_versions or {}).items():
        descriptor.map_release_version(key, version)
    for key, version in (dev_versions or {}).items():
        descriptor.map_development_version(key, version)
    return descriptor


def prepare(
    dry_run: bool = typer.Option(False, "--dry-run", help="Write shadow descriptors only"),
    resume: bool = typer.Option(True, "--resume/--no-resume", help="Continue an interrupted prepare"),
    tag: str | None = typer.Option(None, "--tag", help="Release label (default: artifactId-version)"),
    scm_url: str | None = typer.Option(None, "--scm-url", help="SCM URL (scm:git:...)"),
    release_version: list[str] = typer.Option(
        [], "--release-version", help="Release version (group:artifact=version)"
    ),
    dev_version: list[str] = typer.Option(
        [], "--dev-version", help="Next development version (group:artifact=version)"
    ),
    update_working_copy: bool = typer.Option(
        True,
        "--update-working-copy/--no-update-working-copy",
        help="Move the working copy to the next development versions",
    ),
    no_push: bool = typer.Option(False, "--no-push", help="Commit and tag locally only"),
) -> None:
    """Prepare a release: rewrite versions, commit, tag."""
    ctx = build_context(push_changes=not no_push)
    descriptor = _descriptor(
        ctx,
        scm_url=scm_url,
        tag=tag,
        release_versions=parse_overrides(release_version, flag="--release-version"),
        dev_versions=parse_overrides(dev_version, flag="--dev-version"),
        update_working_copy=update_working_copy,
        push_changes=not no_push,
    )
    result = ctx.manager.prepare(
        PrepareRequest(
            descriptor=descriptor,
            environment=ctx.environment,
            reactor=ctx.reactor,
            listener=ConsoleListener(ctx.console),
            resume=resume,
            dry_run=dry_run,
        )
    )
    finish(ctx.console, result)


def perform(
    dry_run: bool = typer.Option(False, "--dry-run", help="Report without checking out or building"),
    clean: bool = typer.Option(False, "--clean", help="Remove the checkout afterwards"),
    scm_url: str | None = typer.Option(None, "--scm-url", help="SCM URL (scm:git:...)"),
    tag: str | None = typer.Option(None, "--tag", help="Tag to check out"),
    checkout_dir: Path | None = typer.Option(None, "--checkout-dir", help="Checkout directory"),
) -> None:
    """Build the tagged release from a fresh checkout."""
    ctx = build_context()
    descriptor = _descriptor(ctx, scm_url=scm_url, tag=tag)
    descriptor.checkout_directory = checkout_dir
    result = ctx.manager.perform(
        PerformRequest(
            descriptor=descriptor,
            environment=ctx.environment,
            reactor=ctx.reactor,
            listener=ConsoleListener(ctx.console),
            dry_run=dry_run,
            clean=clean,
        )
    )
    finish(ctx.console, result)


def clean() -> None:
    """Remove backups, shadow descriptors and the saved release state."""
    ctx = build_context()
    result = ctx.manager.clean(
        CleanRequest(descriptor=_descriptor(ctx), environment=ctx.environment, reactor=ctx.reactor)
    )
    finish(ctx.console, result)


def rollback(
    dry_run: bool = typer.Option(False, "--dry-run", help="Report without restoring"),
) -> None:
    """Restore the descriptors backed up by prepare and commit them."""
    ctx = build_context()
    result = ctx.manager.rollback(
        ReleaseRequest(
            descriptor=_descriptor(ctx),
            environment=ctx.environment,
            reactor=ctx.reactor,
            listener=ConsoleListener(ctx.console),
            dry_run=dry_run,
        )
    )
    finish(ctx.console, result)


def branch(
    name: str = typer.Argument(..., help="Branch name"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Write shadow descriptors only"),
    scm_url: str | None = typer.Option(None, "--scm-url", help="SCM URL (scm:git:...)"),
    release_version: list[str] = typer.Option(
        [], "--branch-version", help="Branch version (group:artifact=version)"
    ),
    no_push: bool = typer.Option(False, "--no-push", help="Commit and branch locally only"),
) -> None:
    """Create a branch whose descriptors carry the branch versions."""
    ctx = build_context(push_changes=not no_push)
    descriptor = _descriptor(
        ctx,
        scm_url=scm_url,
        release_versions=parse_overrides(release_version, flag="--branch-version"),
        branch_name=name,
        push_changes=not no_push,
    )
    result = ctx.manager.branch(
        ReleaseRequest(
            descriptor=descriptor,
            environment=ctx.environment,
            reactor=ctx.reactor,
            listener=ConsoleListener(ctx.console),
            dry_run=dry_run,
            descriptor_supplied=True,
        )
    )
    finish(ctx.console, result)


def update_versions(
    dev_version: list[str] = typer.Option(
        [], "--dev-version", help="Development version (group:artifact=version)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Write shadow descriptors only"),
) -> None:
    """Set new development versions without releasing."""
    ctx = build_context()
    descriptor = _descriptor(ctx, dev_versions=parse_overrides(dev_version, flag="--dev-version"))
    result = ctx.manager.update_versions(
        ReleaseRequest(
            descriptor=descriptor,
            environment=ctx.environment,
            reactor=ctx.reactor,
            listener=ConsoleListener(ctx.console),
            dry_run=dry_run,
            descriptor_supplied=True,
        )
    )
    finish(ctx.console, result)
