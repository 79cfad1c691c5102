"""Tests for relm.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from relm.core.config import ReleaseConfig, load_config, load_config_or_default
from relm.core.result import Err, Ok


class TestReleaseConfig:
    def test_defaults(self) -> None:
        config = ReleaseConfig()
        assert config.descriptor_file == "module.xml"
        assert config.tag_base is None
        assert config.branch_base is None
        assert config.comment_prefix == "[relm] "
        assert config.line_separator is None
        assert config.preparation_goals == ("clean", "verify")
        assert config.perform_goals == ("deploy",)
        assert config.build_command == ("mvn",)

    def test_frozen(self) -> None:
        config = ReleaseConfig()
        with pytest.raises(AttributeError):
            config.tag_base = "x"  # type: ignore[misc]

    def test_from_dict(self) -> None:
        config = ReleaseConfig.from_dict(
            {
                "release": {
                    "descriptor_file": "pom.xml",
                    "tag_base": "https://svn.example.com/repo/tags",
                    "comment_prefix": "",
                    "line_separator": "CRLF",
                    "preparation_goals": ["install", 3, ""],
                    "perform_goals": [],
                    "build_command": ["mvn", "-B"],
                }
            }
        )
        assert config.descriptor_file == "pom.xml"
        assert config.tag_base == "https://svn.example.com/repo/tags"
        assert config.comment_prefix == ""
        assert config.line_separator == "\r\n"
        assert config.preparation_goals == ("install",)
        assert config.perform_goals == ()
        assert config.build_command == ("mvn", "-B")

    def test_from_dict_without_release_table(self) -> None:
        assert ReleaseConfig.from_dict({}) == ReleaseConfig()

    def test_unknown_line_separator(self) -> None:
        with pytest.raises(ValueError, match="line_separator"):
            ReleaseConfig.from_dict({"release": {"line_separator": "nel"}})


class TestLoadConfig:
    def test_load_valid(self, tmp_path: Path) -> None:
        path = tmp_path / "relm.toml"
        path.write_text('[release]\ntag_base = "tags"\nperform_goals = ["site"]\n', encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Ok)
        assert result.value.tag_base == "tags"
        assert result.value.perform_goals == ("site",)

    def test_load_missing(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "relm.toml")
        assert isinstance(result, Err)
        assert "not found" in result.error.message
        assert result.error.path == tmp_path / "relm.toml"

    def test_load_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "relm.toml"
        path.write_text("[release\n", encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message

    def test_load_invalid_structure(self, tmp_path: Path) -> None:
        path = tmp_path / "relm.toml"
        path.write_text('[release]\nline_separator = "weird"\n', encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Err)
        assert "Invalid config structure" in result.error.message

    def test_load_or_default(self, tmp_path: Path) -> None:
        assert load_config_or_default(tmp_path / "missing.toml") == ReleaseConfig()
