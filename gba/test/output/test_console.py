"""Tests for gba.output.console module."""

from __future__ import annotations

import pytest

from gba.output.console import (
    ConsoleProtocol,
    MockConsole,
    OutputRecord,
    RichConsole,
    Style,
)


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.CRITICAL) == "critical"


class TestMockConsole:
    """Test MockConsole for testing purposes."""

    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello")
        assert console.outputs == [OutputRecord("hello", Style.DEFAULT)]

    def test_print_with_style(self) -> None:
        console = MockConsole()
        console.print("quiet", Style.DIM)
        assert console.outputs[0].style == Style.DIM

    def test_prefixed_helpers(self) -> None:
        console = MockConsole()
        console.success("a")
        console.warning("b")
        console.error("c")
        console.critical("d")
        assert console.messages == ["OK a", "warning: b", "error: c", "CRITICAL d"]
        assert console.count(Style.ERROR) == 1

    def test_find_and_clear(self) -> None:
        console = MockConsole()
        console.print("Found symlink: /r/x")
        console.newline()
        assert len(console.find("symlink")) == 1
        assert console.text == "Found symlink: /r/x\n"
        console.clear()
        assert console.outputs == []

    def test_satisfies_protocol(self) -> None:
        console: ConsoleProtocol = MockConsole()
        console.print("x")


class TestRichConsole:
    """RichConsole renders through rich without interpreting markup in messages."""

    def test_brackets_are_literal(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.error("upstream '[gone]' of branch '[bold]x'")
        console.print("[red]plain[/red]", Style.DIM)

        out = capsys.readouterr().out
        assert "[gone]" in out
        assert "[bold]x" in out
        assert "[red]plain[/red]" in out

    def test_prefixes(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.success("synced")
        console.warning("symlink")
        console.critical("boom")

        out = capsys.readouterr().out
        assert "OK synced" in out
        assert "warning: symlink" in out
        assert "CRITICAL boom" in out
