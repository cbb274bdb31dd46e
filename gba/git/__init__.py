"""Git access for the audit engine.

This module provides:
- GitBackend: the protocol the engine consumes
- GitCliBackend: implementation driving the `git` executable
- MemoryGitBackend: in-memory implementation for tests
- AncestryResolver: commit reachability queries
- Credential strategies for fetching

Usage:
    from gba.git import AncestryResolver, GitCliBackend

    backend = GitCliBackend()
    match backend.open(Path("/path/to/repo")):
        case Ok(repo):
            resolver = AncestryResolver(backend, repo)
            resolver.is_ancestor(local_oid, of=upstream_oid)
        case Err(e):
            print(f"not a repository: {e.message}")
"""

from gba.git.ancestry import AncestryResolver
from gba.git.backend import (
    BackendError,
    BranchHandle,
    CredentialProvider,
    GitBackend,
    GitError,
    RemoteHandle,
    RepoHandle,
    decode_name,
    lossy,
)
from gba.git.cli_backend import GitCliBackend
from gba.git.credentials import (
    Credential,
    CredentialPolicy,
    SshPrivateKey,
    UsernameOnly,
    select_credential,
)
from gba.git.memory import MemoryGitBackend, MemoryRepo

__all__ = [
    # Backend protocol
    "BackendError",
    "BranchHandle",
    "CredentialProvider",
    "GitBackend",
    "GitError",
    "RemoteHandle",
    "RepoHandle",
    "decode_name",
    "lossy",
    # Implementations
    "GitCliBackend",
    "MemoryGitBackend",
    "MemoryRepo",
    # Queries
    "AncestryResolver",
    # Credentials
    "Credential",
    "CredentialPolicy",
    "SshPrivateKey",
    "UsernameOnly",
    "select_credential",
]
