"""In-memory GitBackend for testing.

Repositories are built from explicit commit graphs, remotes and branches, so
tests can express scenarios ("main is one commit ahead of origin/main") without
creating real repositories. The backend records what was opened, fetched and
walked, so tests can also assert on what was *not* touched.

Usage:
    backend = MemoryGitBackend()
    repo = backend.add_repo(tmp_path / "r1")
    repo.commit("c1")
    repo.commit("c2", "c1")
    repo.add_remote("origin", "https://github.com/org/r1.git")
    repo.set_remote_branch("origin", "main", "c1")
    repo.set_branch("main", "c2", upstream=("origin", "main"))
"""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass, field
from pathlib import Path

from gba.core.result import Err, Ok, Result
from gba.git.backend import (
    LOCAL_BRANCH_PREFIX,
    REMOTE_BRANCH_PREFIX,
    BackendError,
    BranchHandle,
    CredentialProvider,
    GitError,
    RemoteHandle,
    RepoHandle,
    lossy,
)
from gba.git.credentials import Credential, is_ssh_transport, url_username
from gba.git.refspec import owning_remotes

__all__ = ["FetchRecord", "MemoryGitBackend", "MemoryRemote", "MemoryRepo"]


def _as_bytes(value: str | bytes) -> bytes:
    return value if isinstance(value, bytes) else value.encode("utf-8")


@dataclass
class MemoryRemote:
    """A remote of an in-memory repository.

    Attributes:
        url: Configured URL, None for a remote without one
        refspecs: Fetch refspecs
        fetch_error: Message returned by fetch, None if fetch succeeds
        missing: Listed by name but not found on lookup
    """

    url: bytes | None
    refspecs: list[bytes]
    fetch_error: str | None = None
    missing: bool = False


def _empty_parents() -> dict[str, tuple[str, ...]]:
    return {}


def _empty_refs() -> dict[bytes, str | None]:
    return {}


def _empty_upstreams() -> dict[bytes, bytes]:
    return {}


def _empty_remotes() -> dict[bytes, MemoryRemote]:
    return {}


def _empty_failures() -> dict[str, str]:
    return {}


@dataclass
class MemoryRepo:
    """An in-memory repository: commit graph, refs and remotes.

    Attributes:
        path: Where the repository "lives"
        parents: Commit id -> parent commit ids
        refs: Full ref name -> commit id (None for a ref with no target)
        upstreams: Local ref name -> upstream ref name
        remotes: Remote name -> remote, in configuration order
        failures: Operation name -> message, raised as BackendError
    """

    path: Path
    parents: dict[str, tuple[str, ...]] = field(default_factory=_empty_parents)
    refs: dict[bytes, str | None] = field(default_factory=_empty_refs)
    upstreams: dict[bytes, bytes] = field(default_factory=_empty_upstreams)
    remotes: dict[bytes, MemoryRemote] = field(default_factory=_empty_remotes)
    failures: dict[str, str] = field(default_factory=_empty_failures)

    def commit(self, oid: str, *parents: str) -> str:
        self.parents[oid] = tuple(parents)
        return oid

    def add_remote(
        self,
        name: str | bytes,
        url: str | bytes | None,
        *,
        fetch_error: str | None = None,
        missing: bool = False,
    ) -> MemoryRemote:
        raw = _as_bytes(name)
        remote = MemoryRemote(
            url=_as_bytes(url) if url is not None else None,
            refspecs=[b"+refs/heads/*:refs/remotes/" + raw + b"/*"],
            fetch_error=fetch_error,
            missing=missing,
        )
        self.remotes[raw] = remote
        return remote

    def set_remote_branch(self, remote: str | bytes, name: str | bytes, oid: str | None) -> bytes:
        refname = REMOTE_BRANCH_PREFIX + _as_bytes(remote) + b"/" + _as_bytes(name)
        self.refs[refname] = oid
        return refname

    def set_branch(
        self,
        name: str | bytes,
        oid: str | None,
        *,
        upstream: tuple[str | bytes, str | bytes] | None = None,
    ) -> bytes:
        """Create a local branch, optionally tracking (remote, branch)."""
        refname = LOCAL_BRANCH_PREFIX + _as_bytes(name)
        self.refs[refname] = oid
        if upstream is not None:
            remote, branch = upstream
            self.upstreams[refname] = (
                REMOTE_BRANCH_PREFIX + _as_bytes(remote) + b"/" + _as_bytes(branch)
            )
        return refname

    def fail(self, operation: str, message: str = "simulated backend failure") -> None:
        """Make an operation raise BackendError (list_remote_names, list_local_branches)."""
        self.failures[operation] = message

    def _check(self, operation: str) -> None:
        message = self.failures.get(operation)
        if message is not None:
            raise BackendError(GitError(command=operation, message=message))


@dataclass(frozen=True, slots=True)
class FetchRecord:
    path: Path
    remote: bytes
    credential: Credential


def _empty_repos() -> dict[Path, MemoryRepo]:
    return {}


def _empty_paths() -> list[Path]:
    return []


def _empty_fetches() -> list[FetchRecord]:
    return []


@dataclass
class MemoryGitBackend:
    """GitBackend over in-memory repositories."""

    repos: dict[Path, MemoryRepo] = field(default_factory=_empty_repos)
    opened: list[Path] = field(default_factory=_empty_paths)
    fetches: list[FetchRecord] = field(default_factory=_empty_fetches)
    walks: int = 0

    def add_repo(self, path: Path) -> MemoryRepo:
        repo = MemoryRepo(path=path)
        self.repos[path] = repo
        return repo

    def _repo(self, handle: RepoHandle) -> MemoryRepo:
        return self.repos[handle.path]

    # GitBackend protocol

    def open(self, path: Path) -> Result[RepoHandle, GitError]:
        self.opened.append(path)
        if path not in self.repos:
            return Err(GitError(command="open", message=f"could not find repository at '{path}'"))
        return Ok(RepoHandle(path=path, git_dir=path / ".git"))

    def list_remote_names(self, repo: RepoHandle) -> list[bytes]:
        memory = self._repo(repo)
        memory._check("list_remote_names")
        return list(memory.remotes)

    def get_remote(self, repo: RepoHandle, name: bytes) -> Result[RemoteHandle, GitError]:
        remote = self._repo(repo).remotes.get(name)
        if remote is None or remote.missing:
            return Err(GitError(command="remote", message=f"remote '{lossy(name)}' does not exist"))
        return Ok(RemoteHandle(name=name, url=remote.url, refspecs=tuple(remote.refspecs)))

    def fetch(
        self,
        repo: RepoHandle,
        remote: RemoteHandle,
        credentials: CredentialProvider,
    ) -> Result[None, GitError]:
        url = lossy(remote.url or b"")
        credential = credentials(url_username(url), not is_ssh_transport(url))
        self.fetches.append(FetchRecord(path=repo.path, remote=remote.name, credential=credential))
        error = self._repo(repo).remotes[remote.name].fetch_error
        if error is not None:
            return Err(GitError(command="fetch", message=error))
        return Ok(None)

    def list_local_branches(self, repo: RepoHandle) -> list[BranchHandle]:
        memory = self._repo(repo)
        memory._check("list_local_branches")
        return [
            BranchHandle(refname=ref) for ref in memory.refs if ref.startswith(LOCAL_BRANCH_PREFIX)
        ]

    def upstream(self, repo: RepoHandle, branch: BranchHandle) -> Result[BranchHandle, GitError]:
        memory = self._repo(repo)
        target = memory.upstreams.get(branch.refname)
        if target is None:
            return Err(
                GitError(
                    command="upstream",
                    message=f"no upstream configured for branch '{lossy(branch.shorthand)}'",
                )
            )
        if target not in memory.refs:
            message = f"upstream '{lossy(target)}' does not exist"
            return Err(GitError(command="upstream", message=message))
        return Ok(BranchHandle(refname=target))

    def branch_owning_remote_name(
        self,
        repo: RepoHandle,
        refname: bytes,
    ) -> Result[bytes, GitError]:
        remotes = self._repo(repo).remotes
        owners = owning_remotes(refname, {name: r.refspecs for name, r in remotes.items()})
        if len(owners) != 1:
            return Err(
                GitError(
                    command="branch_remote_name",
                    message=f"no single remote fetches into '{lossy(refname)}'",
                )
            )
        return Ok(owners[0])

    def resolve_to_commit(self, repo: RepoHandle, ref: BranchHandle) -> Result[str, GitError]:
        oid = self._repo(repo).refs.get(ref.refname)
        if oid is None:
            return Err(
                GitError(
                    command="rev-parse",
                    message=f"'{lossy(ref.refname)}' does not resolve to a commit",
                )
            )
        return Ok(oid)

    def walk_ancestors(
        self,
        repo: RepoHandle,
        seed: str,
    ) -> Generator[Result[str, GitError], None, None]:
        self.walks += 1
        parents = self._repo(repo).parents
        if seed not in parents:
            yield Err(GitError(command="rev-list", message=f"bad object {seed}"))
            return

        # Reachable subgraph, then Kahn's algorithm so children precede parents
        reachable: set[str] = set()
        stack = [seed]
        while stack:
            oid = stack.pop()
            if oid in reachable:
                continue
            reachable.add(oid)
            stack.extend(parents.get(oid, ()))

        children_left = dict.fromkeys(reachable, 0)
        for oid in reachable:
            for parent in parents.get(oid, ()):
                children_left[parent] += 1

        ready = [seed]
        while ready:
            oid = ready.pop()
            yield Ok(oid)
            for parent in parents.get(oid, ()):
                children_left[parent] -= 1
                if children_left[parent] == 0:
                    ready.append(parent)
