"""Fetching qualifying remotes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from gba.core.diagnostics import DiagnosticLog
from gba.core.result import Err
from gba.git.backend import CredentialProvider, GitBackend, RepoHandle
from gba.services.qualify import QualifiedRemote

__all__ = ["FetchFailed", "FetchOutcome", "Fetched", "RemoteSyncer", "synced_remotes"]


@dataclass(frozen=True, slots=True)
class Fetched:
    pass


@dataclass(frozen=True, slots=True)
class FetchFailed:
    reason: str


type FetchOutcome = Fetched | FetchFailed


def synced_remotes(outcomes: Mapping[str, FetchOutcome]) -> frozenset[str]:
    """Names of the remotes fetched successfully."""
    return frozenset(name for name, outcome in outcomes.items() if isinstance(outcome, Fetched))


class RemoteSyncer:
    """Fetch every qualifying remote of a repository, one after another.

    A failed fetch is diagnosed and recorded; it never stops the remaining
    remotes from being fetched. Nothing besides the repository's own object
    and ref store is modified.
    """

    def __init__(self, backend: GitBackend, credentials: CredentialProvider) -> None:
        self._backend = backend
        self._credentials = credentials

    def sync(
        self,
        repo: RepoHandle,
        remotes: list[QualifiedRemote],
        log: DiagnosticLog,
        label: str,
    ) -> dict[str, FetchOutcome]:
        outcomes: dict[str, FetchOutcome] = {}

        for remote in remotes:
            name = remote.descriptor.name
            result = self._backend.fetch(repo, remote.handle, self._credentials)
            if isinstance(result, Err):
                log.error(f"{label}: Failed to fetch remote {name}: {result.error.message}")
                outcomes[name] = FetchFailed(reason=result.error.message)
                continue
            log.verbose(f"{label}: Synced remote {name}")
            outcomes[name] = Fetched()

        return outcomes
