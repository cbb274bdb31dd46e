"""Version-control backend protocol.

The audit engine never talks to git directly. It consumes the narrow set of
operations below, which GitCliBackend implements on top of the `git`
executable and MemoryGitBackend implements over an in-memory commit graph.

Recoverable outcomes (not a repository, remote not found, no upstream, fetch
rejected, ref does not resolve) are returned as Err(GitError). Failures the
engine has no specific answer for (listing remotes or branches fails) are
raised as BackendError and abandon the current directory entry.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from gba.core.result import Result
from gba.git.credentials import Credential

__all__ = [
    "BackendError",
    "BranchHandle",
    "CredentialProvider",
    "GitBackend",
    "GitError",
    "RemoteHandle",
    "RepoHandle",
    "decode_name",
    "lossy",
]

LOCAL_BRANCH_PREFIX = b"refs/heads/"
REMOTE_BRANCH_PREFIX = b"refs/remotes/"


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The operation that failed
        message: Error message
        returncode: Process return code (1 when not process-backed)
    """

    command: str
    message: str
    returncode: int = 1

    def __str__(self) -> str:
        return self.message


class BackendError(Exception):
    """Unexpected backend failure that aborts the current directory entry."""

    def __init__(self, error: GitError) -> None:
        super().__init__(error.message)
        self.error = error


@dataclass(frozen=True, slots=True)
class RepoHandle:
    """An opened repository.

    Attributes:
        path: Working directory (or bare repository) the handle was opened on
        git_dir: Absolute path of the repository's git directory
    """

    path: Path
    git_dir: Path


@dataclass(frozen=True, slots=True)
class RemoteHandle:
    """A configured remote.

    Attributes:
        name: Raw remote name
        url: Raw configured URL (before any insteadOf rewriting), None if unset
        refspecs: Raw fetch refspecs
    """

    name: bytes
    url: bytes | None
    refspecs: tuple[bytes, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class BranchHandle:
    """A local or remote-tracking branch, identified by its full ref name."""

    refname: bytes

    @property
    def shorthand(self) -> bytes:
        """Ref name without refs/heads/ or refs/remotes/."""
        for prefix in (LOCAL_BRANCH_PREFIX, REMOTE_BRANCH_PREFIX):
            if self.refname.startswith(prefix):
                return self.refname[len(prefix) :]
        return b""


type CredentialProvider = Callable[[str | None, bool], Credential]
"""Called once per fetch with (username hint, username-only challenge)."""


def decode_name(raw: bytes) -> str | None:
    """Decode a ref or remote name, None if it is not valid UTF-8."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return None


def lossy(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


class GitBackend(Protocol):
    """Operations the audit engine needs from a version-control backend."""

    def open(self, path: Path) -> Result[RepoHandle, GitError]:
        """Open path as a repository without searching parent directories."""
        ...

    def list_remote_names(self, repo: RepoHandle) -> list[bytes]:
        """List configured remote names in a stable order.

        Raises:
            BackendError: If the remotes cannot be listed.
        """
        ...

    def get_remote(self, repo: RepoHandle, name: bytes) -> Result[RemoteHandle, GitError]: ...

    def fetch(
        self,
        repo: RepoHandle,
        remote: RemoteHandle,
        credentials: CredentialProvider,
    ) -> Result[None, GitError]:
        """Fetch all configured refspecs of a remote."""
        ...

    def list_local_branches(self, repo: RepoHandle) -> list[BranchHandle]:
        """List local branches that point at a commit.

        Raises:
            BackendError: If the branches cannot be listed.
        """
        ...

    def upstream(self, repo: RepoHandle, branch: BranchHandle) -> Result[BranchHandle, GitError]:
        """Return the upstream tracking branch; Err if none is configured or it is gone."""
        ...

    def branch_owning_remote_name(
        self,
        repo: RepoHandle,
        refname: bytes,
    ) -> Result[bytes, GitError]:
        """Name of the single remote whose fetch refspecs map onto refname."""
        ...

    def resolve_to_commit(self, repo: RepoHandle, ref: BranchHandle) -> Result[str, GitError]: ...

    def walk_ancestors(
        self,
        repo: RepoHandle,
        seed: str,
    ) -> Generator[Result[str, GitError], None, None]:
        """Yield seed and all its ancestors, children before parents.

        The walk is single-use: every query needs a fresh call.
        """
        ...
