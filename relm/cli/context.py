from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import typer

from relm.core.config import CONFIG_FILE_NAME, ReleaseConfig, load_config
from relm.core.errors import ErrorCode
from relm.core.result import Err
from relm.output.console import ConsoleProtocol, RichConsole
from relm.release.contracts import ReleaseEnvironment
from relm.release.goals import CommandGoalRunner
from relm.release.manager import ReleaseManager
from relm.release.reactor import Reactor, load_reactor
from relm.release.sequences import build_default_registry
from relm.release.store import JsonDescriptorStore
from relm.release.xmldoc import DescriptorParseError
from relm.scm.git import GitScmProvider
from relm.scm.provider import ScmManager

WORKING_DIRECTORY_ENV = "RELM_WORKING_DIRECTORY"


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: ReleaseConfig
    console: ConsoleProtocol
    reactor: Reactor
    manager: ReleaseManager

    @property
    def environment(self) -> ReleaseEnvironment:
        return ReleaseEnvironment(config=self.config, console=self.console)


def _exit(message: str, *, code: ErrorCode) -> NoReturn:
    typer.echo(f"error: {message}", err=True)
    raise typer.Exit(code=int(code))


def working_directory() -> Path:
    configured = os.environ.get(WORKING_DIRECTORY_ENV)
    return Path(configured) if configured else Path.cwd()


def build_context(*, push_changes: bool = True) -> CLIContext:
    root = working_directory().resolve()

    config = ReleaseConfig()
    config_path = root / CONFIG_FILE_NAME
    if config_path.exists():
        config_result = load_config(config_path)
        if isinstance(config_result, Err):
            _exit(config_result.error.message, code=ErrorCode.ENV_ERROR)
        config = config_result.value

    descriptor_path = root / config.descriptor_file
    if not descriptor_path.is_file():
        _exit(f"no {config.descriptor_file} in {root}", code=ErrorCode.ENV_ERROR)

    try:
        reactor = load_reactor(root, config.descriptor_file)
    except DescriptorParseError as e:
        _exit(str(e), code=ErrorCode.USER_ERROR)
    except OSError as e:
        _exit(f"failed to load modules: {e}", code=ErrorCode.IO_ERROR)

    scm_manager = ScmManager({"git": GitScmProvider(push_changes=push_changes)})
    runner = CommandGoalRunner(config.build_command)
    manager = ReleaseManager(build_default_registry(scm_manager, runner), JsonDescriptorStore())

    return CLIContext(
        root=root,
        config=config,
        console=RichConsole(),
        reactor=reactor,
        manager=manager,
    )
