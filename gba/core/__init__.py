"""Core domain types and logic."""

from .config import Config, ConfigError, default_config_path, load_config
from .diagnostics import Diagnostic, DiagnosticLog, Severity
from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "Config",
    "ConfigError",
    "default_config_path",
    "load_config",
    # diagnostics
    "Diagnostic",
    "DiagnosticLog",
    "Severity",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
