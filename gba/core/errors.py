"""Error codes for CLI exit status.

Only pre-flight failures (and findings under ``--strict``) ever reach the
process exit code; everything that goes wrong inside a single directory entry
is reported as a diagnostic instead.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for the audit command.

    These values are used as process exit codes and should remain stable:
    - 0: Success (audit completed, regardless of findings)
    - 1: User error (bad arguments, invalid config file)
    - 2: Environment error (SSH key missing or not a file)
    - 5: I/O error (repositories directory missing or unreadable)
    - 6: Findings (only with --strict: something is not safely backed up)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    IO_ERROR = 5
    FINDINGS = 6

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
