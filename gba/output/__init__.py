"""Output abstraction layer."""

from .console import (
    ConsoleProtocol,
    MockConsole,
    RichConsole,
    Style,
)
from .report import DiagnosticsReporter, format_summary

__all__ = [
    "ConsoleProtocol",
    "DiagnosticsReporter",
    "MockConsole",
    "RichConsole",
    "Style",
    "format_summary",
]
