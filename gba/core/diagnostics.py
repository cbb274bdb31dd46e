"""Per-entry diagnostics.

Every stage of an audit appends human-readable outcomes to a DiagnosticLog
owned by the directory entry being processed. The log is handed back to the
caller inside the entry's report and flushed there, so output for one entry is
never interleaved with another and nothing is lost when processing stops early.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

__all__ = ["Diagnostic", "DiagnosticLog", "Severity"]


class Severity(Enum):
    """How serious a diagnostic is."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value

    @property
    def is_problem(self) -> bool:
        """True for severities that indicate something is not backed up."""
        return self in (Severity.ERROR, Severity.CRITICAL)


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single rendered message about one directory entry.

    Attributes:
        severity: Severity tag
        message: Fully rendered text
        verbose_only: Progress chatter, shown only in verbose mode
        success: Positive confirmation (a synced branch)
    """

    severity: Severity
    message: str
    verbose_only: bool = False
    success: bool = False


def _empty_diagnostics() -> list[Diagnostic]:
    return []


@dataclass
class DiagnosticLog:
    """Ordered diagnostics for the entry currently being processed."""

    items: list[Diagnostic] = field(default_factory=_empty_diagnostics)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.items)

    def add(self, diagnostic: Diagnostic) -> None:
        self.items.append(diagnostic)

    def verbose(self, message: str) -> None:
        """Progress message, hidden unless verbose mode is on."""
        self.add(Diagnostic(Severity.INFO, message, verbose_only=True))

    def success(self, message: str) -> None:
        self.add(Diagnostic(Severity.INFO, message, success=True))

    def warning(self, message: str) -> None:
        self.add(Diagnostic(Severity.WARNING, message))

    def error(self, message: str) -> None:
        self.add(Diagnostic(Severity.ERROR, message))

    def critical(self, message: str) -> None:
        self.add(Diagnostic(Severity.CRITICAL, message))

    @property
    def messages(self) -> list[str]:
        return [d.message for d in self.items]

    def has_problems(self) -> bool:
        return any(d.severity.is_problem for d in self.items)

    def find(self, substring: str) -> list[Diagnostic]:
        """Find all diagnostics whose message contains a substring."""
        return [d for d in self.items if substring in d.message]
