from __future__ import annotations

import os
from pathlib import Path

import typer

from relm import __version__
from relm.cli.commands.release import branch, clean, perform, prepare, rollback, update_versions
from relm.cli.context import WORKING_DIRECTORY_ENV
from relm.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(prepare)
app.command()(perform)
app.command()(clean)
app.command()(rollback)
app.command()(branch)
app.command("update-versions")(update_versions)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    directory: Path | None = typer.Option(
        None,
        "--directory",
        "-C",
        help="Directory holding the root module descriptor (default: current directory)",
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if directory is not None:
        try:
            root = directory.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --directory: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not root.is_dir():
            typer.echo(f"error: --directory '{root}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

        os.environ[WORKING_DIRECTORY_ENV] = str(root)


def main() -> None:
    app()
