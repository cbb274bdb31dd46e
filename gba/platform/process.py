"""Subprocess execution with Result-based error handling.

Git ref and remote names are arbitrary bytes, so everything here captures raw
stdout and leaves decoding to the caller; only stderr is decoded (lossily) for
display.

Usage:
    result = run(["git", "remote"], cwd=repo_path)
    match result:
        case Ok(stdout):
            names = stdout.splitlines()
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import subprocess
from collections.abc import Generator
from dataclasses import dataclass
from pathlib import Path

from gba.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run", "stream_lines"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (-1 if it never ran).
        stdout: Standard output (may be empty).
        stderr: Standard error, lossily decoded.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: bytes
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"

    @property
    def detail(self) -> str:
        """The most useful one-line explanation of the failure."""
        lines = [ln.strip() for ln in self.stderr.splitlines() if ln.strip()]
        return lines[-1] if lines else str(self)


def _decode_stderr(raw: bytes | str | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    return raw.decode("utf-8", errors="replace")


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[bytes, ProcessError]:
    """Execute a command and return its raw stdout or an error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            stdin=subprocess.DEVNULL,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=e.stdout if isinstance(e.stdout, bytes) else b"",
                stderr=f"Command timed out after {timeout}s",
            )
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=b"",
                stderr=str(e),
            )
        )

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=_decode_stderr(proc.stderr),
            )
        )

    return Ok(proc.stdout)


def stream_lines(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
) -> Generator[Result[bytes, ProcessError], None, None]:
    """Execute a command and yield its stdout line by line as it is produced.

    Each line is yielded as Ok(line) without its trailing newline. If the
    process fails, a single Err(ProcessError) is yielded last. Closing the
    iterator early kills the process, so a consumer that stops at the first
    match does not pay for the rest of the output.
    """
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=str(cwd),
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as e:
        yield Err(ProcessError(command=tuple(cmd), returncode=-1, stdout=b"", stderr=str(e)))
        return

    assert proc.stdout is not None
    assert proc.stderr is not None
    finished = False
    try:
        for line in proc.stdout:
            yield Ok(line.rstrip(b"\n"))
        stderr = proc.stderr.read()
        returncode = proc.wait()
        finished = True
        if returncode != 0:
            yield Err(
                ProcessError(
                    command=tuple(cmd),
                    returncode=returncode,
                    stdout=b"",
                    stderr=_decode_stderr(stderr),
                )
            )
    finally:
        if not finished:
            proc.kill()
            proc.wait()
        proc.stdout.close()
        proc.stderr.close()
