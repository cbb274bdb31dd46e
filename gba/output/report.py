"""Flushing audit results to the console."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from gba.core.diagnostics import Diagnostic, Severity
from gba.output.console import ConsoleProtocol, Style
from gba.services.branches import SyncStatus
from gba.services.scanner import EntryReport

__all__ = ["DiagnosticsReporter", "format_summary"]


class DiagnosticsReporter:
    """Emit each entry's diagnostics as one uninterrupted batch.

    Progress chatter (verbose_only diagnostics) is dropped unless verbose is
    set; warnings, errors and branch confirmations are always shown.
    """

    def __init__(self, console: ConsoleProtocol, *, verbose: bool = False) -> None:
        self._console = console
        self.verbose = verbose

    def visible(self, report: EntryReport) -> list[Diagnostic]:
        return [d for d in report.diagnostics if self.verbose or not d.verbose_only]

    def flush(self, report: EntryReport) -> int:
        """Print the report's diagnostics in emission order; returns how many were shown."""
        shown = self.visible(report)
        for diagnostic in shown:
            self._emit(diagnostic)
        return len(shown)

    def _emit(self, diagnostic: Diagnostic) -> None:
        console = self._console
        match diagnostic.severity:
            case Severity.INFO if diagnostic.success:
                console.success(diagnostic.message)
            case Severity.INFO:
                style = Style.DIM if diagnostic.verbose_only else Style.DEFAULT
                console.print(diagnostic.message, style)
            case Severity.WARNING:
                console.warning(diagnostic.message)
            case Severity.ERROR:
                console.error(diagnostic.message)
            case Severity.CRITICAL:
                console.critical(diagnostic.message)


def format_summary(reports: Iterable[EntryReport]) -> str:
    """One-line tally: entries scanned and branches per status."""
    entries = 0
    statuses: Counter[SyncStatus] = Counter()
    for report in reports:
        entries += 1
        statuses.update(outcome.status for outcome in report.branches)

    parts = [f"{entries} entries"]
    parts += [f"{statuses[s]} {s}" for s in SyncStatus if statuses[s]]
    return ", ".join(parts)
