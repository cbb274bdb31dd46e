"""Pre-flight validation.

These are the only checks allowed to abort a run. They happen before the
first directory entry is looked at, so a failed run produces no partial scan.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from gba.core.errors import ErrorCode
from gba.core.result import Err, Ok, Result

__all__ = ["PreflightError", "check_repos_directory", "check_ssh_private_key"]


@dataclass(frozen=True, slots=True)
class PreflightError:
    """A fatal problem with the run's inputs.

    Attributes:
        message: What is wrong, including the offending path
        code: Exit code the run terminates with
    """

    message: str
    code: ErrorCode


def check_ssh_private_key(path: Path) -> Result[Path, PreflightError]:
    """The key path must exist and be a regular file (symlinks are followed)."""
    try:
        is_file = path.is_file()
        exists = is_file or path.exists()
    except OSError as e:
        return Err(
            PreflightError(
                f"Failed to get metadata for ssh private key: {path}: {e}",
                ErrorCode.ENV_ERROR,
            )
        )
    if not exists:
        return Err(
            PreflightError(
                f"Failed to get metadata for ssh private key: {path}: no such file",
                ErrorCode.ENV_ERROR,
            )
        )
    if not is_file:
        return Err(
            PreflightError(
                f"The ssh private key path is not a file: {path}",
                ErrorCode.ENV_ERROR,
            )
        )
    return Ok(path)


def check_repos_directory(path: Path) -> Result[Path, PreflightError]:
    """The repositories directory must be a directory we can list."""
    if not path.is_dir():
        return Err(
            PreflightError(
                f"Failed to read repositories directory: {path}: not a directory",
                ErrorCode.IO_ERROR,
            )
        )
    try:
        with os.scandir(path) as entries:
            next(entries, None)
    except OSError as e:
        return Err(
            PreflightError(
                f"Failed to read repositories directory: {path}: {e.strerror or e}",
                ErrorCode.IO_ERROR,
            )
        )
    return Ok(path)
