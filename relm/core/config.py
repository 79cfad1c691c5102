"""Typed configuration loading and access.

``relm.toml`` lives next to the root module descriptor:

    [release]
    descriptor_file = "module.xml"
    tag_base = "https://svn.example.com/repo/tags"
    comment_prefix = "[relm] "
    line_separator = "crlf"
    preparation_goals = ["clean", "verify"]
    perform_goals = ["deploy"]
    build_command = ["mvn", "-B"]
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_str_list, get_table

__all__ = [
    "CONFIG_FILE_NAME",
    "ConfigError",
    "ReleaseConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "relm.toml"

DEFAULT_DESCRIPTOR_FILE = "module.xml"
DEFAULT_COMMENT_PREFIX = "[relm] "
DEFAULT_PREPARATION_GOALS = ("clean", "verify")
DEFAULT_PERFORM_GOALS = ("deploy",)
DEFAULT_BUILD_COMMAND = ("mvn",)

_LINE_SEPARATORS = {"lf": "\n", "crlf": "\r\n", "cr": "\r"}


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Release settings shared by every operation.

    Attributes:
        descriptor_file: File name of each module descriptor.
        tag_base: SCM location prefix under which release tags are created.
        branch_base: SCM location prefix under which branches are created.
        comment_prefix: Prefix of every commit/tag message.
        line_separator: Line ending forced onto rewritten descriptors,
            None to keep whatever the file uses.
        preparation_goals: Build goals run while preparing.
        perform_goals: Build goals run from the tagged checkout.
        build_command: Executable (plus fixed arguments) running the goals.
    """

    descriptor_file: str = DEFAULT_DESCRIPTOR_FILE
    tag_base: str | None = None
    branch_base: str | None = None
    comment_prefix: str = DEFAULT_COMMENT_PREFIX
    line_separator: str | None = None
    preparation_goals: tuple[str, ...] = DEFAULT_PREPARATION_GOALS
    perform_goals: tuple[str, ...] = DEFAULT_PERFORM_GOALS
    build_command: tuple[str, ...] = field(default=DEFAULT_BUILD_COMMAND)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ReleaseConfig:
        """Create ReleaseConfig from a mapping (parsed TOML)."""
        release: StrDict = get_table(data, "release") or {}

        separator_name = get_str(release, "line_separator")
        line_separator: str | None = None
        if separator_name is not None:
            if separator_name.lower() not in _LINE_SEPARATORS:
                raise ValueError(f"unknown line_separator: {separator_name!r}")
            line_separator = _LINE_SEPARATORS[separator_name.lower()]

        preparation = get_str_list(release, "preparation_goals")
        perform = get_str_list(release, "perform_goals")
        command = get_str_list(release, "build_command")

        comment_prefix = release.get("comment_prefix")
        return cls(
            descriptor_file=get_str(release, "descriptor_file") or DEFAULT_DESCRIPTOR_FILE,
            tag_base=get_str(release, "tag_base"),
            branch_base=get_str(release, "branch_base"),
            comment_prefix=(
                comment_prefix if isinstance(comment_prefix, str) else DEFAULT_COMMENT_PREFIX
            ),
            line_separator=line_separator,
            preparation_goals=(
                tuple(preparation) if preparation is not None else DEFAULT_PREPARATION_GOALS
            ),
            perform_goals=tuple(perform) if perform is not None else DEFAULT_PERFORM_GOALS,
            build_command=tuple(command) if command else DEFAULT_BUILD_COMMAND,
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and syntax errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load and parse configuration from a TOML file.

    Returns:
        Ok(ReleaseConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(ReleaseConfig.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> ReleaseConfig:
    """Load config from file, or return the defaults if it cannot be loaded."""
    result = load_config(path)
    if isinstance(result, Ok):
        return result.value
    return ReleaseConfig()
