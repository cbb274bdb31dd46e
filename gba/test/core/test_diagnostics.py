"""Tests for gba.core.diagnostics module."""

from __future__ import annotations

import pytest

from gba.core.diagnostics import Diagnostic, DiagnosticLog, Severity


class TestSeverity:
    def test_str(self) -> None:
        assert str(Severity.CRITICAL) == "critical"

    def test_problems(self) -> None:
        assert Severity.ERROR.is_problem
        assert Severity.CRITICAL.is_problem
        assert not Severity.WARNING.is_problem
        assert not Severity.INFO.is_problem


class TestDiagnosticLog:
    """Diagnostics keep emission order and their flags."""

    def test_starts_empty(self) -> None:
        log = DiagnosticLog()
        assert len(log) == 0
        assert not log.has_problems()

    def test_preserves_order(self) -> None:
        log = DiagnosticLog()
        log.verbose("first")
        log.warning("second")
        log.error("third")
        log.success("fourth")
        log.critical("fifth")

        assert log.messages == ["first", "second", "third", "fourth", "fifth"]
        assert [d.severity for d in log] == [
            Severity.INFO,
            Severity.WARNING,
            Severity.ERROR,
            Severity.INFO,
            Severity.CRITICAL,
        ]

    def test_verbose_flag(self) -> None:
        log = DiagnosticLog()
        log.verbose("progress")
        assert log.items[0].verbose_only
        assert not log.items[0].success

    def test_success_flag(self) -> None:
        log = DiagnosticLog()
        log.success("synced")
        assert log.items[0].success
        assert not log.items[0].verbose_only

    def test_warning_is_not_a_problem(self) -> None:
        log = DiagnosticLog()
        log.warning("Found symlink")
        assert not log.has_problems()

    def test_error_is_a_problem(self) -> None:
        log = DiagnosticLog()
        log.error("Found file")
        assert log.has_problems()

    def test_find(self) -> None:
        log = DiagnosticLog()
        log.error("Remote origin not found")
        log.error("Remote upstream has no url")
        assert [d.message for d in log.find("no url")] == ["Remote upstream has no url"]

    def test_logs_are_independent(self) -> None:
        first = DiagnosticLog()
        second = DiagnosticLog()
        first.error("x")
        assert len(second) == 0

    def test_diagnostic_frozen(self) -> None:
        diagnostic = Diagnostic(Severity.INFO, "x")
        with pytest.raises(AttributeError):
            diagnostic.message = "y"  # type: ignore[misc]
