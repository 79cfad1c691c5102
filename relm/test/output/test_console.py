"""Tests for relm.output.console module."""

from __future__ import annotations

import pytest

from relm.output.console import ConsoleProtocol, MockConsole, RichConsole, Style


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.DIM) == "dim"

    def test_all_styles_exist(self) -> None:
        expected = {"DEFAULT", "SUCCESS", "ERROR", "WARNING", "INFO", "DIM", "BOLD", "HEADER"}
        assert {s.name for s in Style} == expected


class TestMockConsole:
    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello", Style.DIM)
        assert console.outputs[0].message == "hello"
        assert console.outputs[0].style == Style.DIM

    def test_prefixed_helpers(self) -> None:
        console = MockConsole()
        console.success("released")
        console.error("failed")
        console.warning("careful")
        console.info("fyi")

        assert console.messages == ["OK released", "error: failed", "warning: careful", "info: fyi"]
        assert console.has_error()
        assert console.has_warning()
        assert console.count(Style.INFO) == 1

    def test_find_and_clear(self) -> None:
        console = MockConsole()
        console.header("prepare")
        console.newline()
        assert len(console.find("prep")) == 1
        assert console.text == "prepare\n"

        console.clear()
        assert console.outputs == []


class TestRichConsole:
    def test_markup_in_messages_is_not_interpreted(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.print("[relm] prepare release core-1.0")
        console.warning("property [x] undefined")

        out = capsys.readouterr().out
        assert "[relm] prepare release core-1.0" in out
        assert "property [x] undefined" in out

    def test_satisfies_protocol(self) -> None:
        console: ConsoleProtocol = RichConsole()
        assert callable(console.header)
