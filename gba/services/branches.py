"""Per-branch synchronization audit.

Each local branch walks through the same checks, in order, and the first one
that fails decides its status:

1. the branch has a usable name
2. it tracks an upstream branch
3. the upstream belongs to an identifiable remote
4. that remote was fetched during this run
5. both ends resolve to commits
6. ancestry: local contained in upstream (Synced), upstream contained in
   local (AheadOfUpstream), or neither (Diverged)

Step 5 and 6 failures are unexpected backend errors: they are diagnosed but
leave the branch without a status.
"""

from __future__ import annotations

from collections.abc import Set
from dataclasses import dataclass
from enum import Enum

from gba.core.diagnostics import DiagnosticLog
from gba.core.result import Err
from gba.git.ancestry import AncestryResolver
from gba.git.backend import BranchHandle, GitBackend, RepoHandle, decode_name, lossy

__all__ = ["BranchAuditor", "BranchOutcome", "SyncStatus"]


class SyncStatus(Enum):
    """Terminal audit status of one local branch."""

    SYNCED = "synced"
    AHEAD_OF_UPSTREAM = "ahead"
    DIVERGED = "diverged"
    NO_UPSTREAM = "no-upstream"
    UPSTREAM_REMOTE_NOT_SYNCED = "remote-not-synced"
    NAME_UNRESOLVABLE = "name-unresolvable"

    def __str__(self) -> str:
        return self.value

    @property
    def is_safe(self) -> bool:
        return self == SyncStatus.SYNCED


@dataclass(frozen=True, slots=True)
class BranchOutcome:
    branch: str
    status: SyncStatus


class BranchAuditor:
    """Classify the local branches of one repository.

    Attributes:
        synced: Remotes fetched successfully for this repository in this run
    """

    def __init__(
        self,
        backend: GitBackend,
        repo: RepoHandle,
        synced: Set[str],
        log: DiagnosticLog,
        label: str,
    ) -> None:
        self._backend = backend
        self._repo = repo
        self._log = log
        self._label = label
        self._ancestry = AncestryResolver(backend, repo)
        self.synced = frozenset(synced)

    def audit(self, branch: BranchHandle) -> BranchOutcome | None:
        """Audit one local branch; None if an unexpected error left it unclassified."""
        log, label = self._log, self._label

        raw_name = branch.shorthand
        if not raw_name:
            log.error(
                f"{label}: Failed to get the name of a branch: "
                f"'{lossy(branch.refname)}' is not a local branch"
            )
            return BranchOutcome(lossy(branch.refname), SyncStatus.NAME_UNRESOLVABLE)
        name = lossy(raw_name)
        log.verbose(f"{label}: Looking at branch {name}")

        upstream_result = self._backend.upstream(self._repo, branch)
        if isinstance(upstream_result, Err):
            log.error(
                f"{label}: Local branch {name} has no remote tracking branch: "
                f"{upstream_result.error.message}"
            )
            return BranchOutcome(name, SyncStatus.NO_UPSTREAM)
        upstream = upstream_result.value

        remote = self._upstream_remote(name, upstream)
        if remote is None:
            return BranchOutcome(name, SyncStatus.NAME_UNRESOLVABLE)

        if remote not in self.synced:
            log.error(f"{label}: Branch {name} has non-fetched remote {remote}")
            return BranchOutcome(name, SyncStatus.UPSTREAM_REMOTE_NOT_SYNCED)

        status = self._classify(name, branch, upstream)
        if status is None:
            return None
        return BranchOutcome(name, status)

    def _upstream_remote(self, name: str, upstream: BranchHandle) -> str | None:
        log, label = self._log, self._label

        upstream_name = decode_name(upstream.shorthand)
        if upstream_name is None:
            log.error(f"{label}: Branch {lossy(upstream.shorthand)} has invalid utf8")
            return None
        log.verbose(f"{label}: Branch {name} has upstream {upstream_name}")

        result = self._backend.branch_owning_remote_name(self._repo, upstream.refname)
        if isinstance(result, Err):
            log.error(
                f"{label}: An operation on branch {lossy(upstream.refname)} failed: "
                f"{result.error.message}"
            )
            return None

        remote = decode_name(result.value)
        if remote is None:
            log.error(f"{label}: Remote {lossy(result.value)} skipped due to invalid utf8")
            return None
        log.verbose(f"{label}: Branch {name} has upstream remote {remote}")
        return remote

    def _classify(
        self,
        name: str,
        branch: BranchHandle,
        upstream: BranchHandle,
    ) -> SyncStatus | None:
        log, label = self._log, self._label

        local = self._backend.resolve_to_commit(self._repo, branch)
        if isinstance(local, Err):
            log.critical(f"{label}: An operation on branch {name} failed: {local.error.message}")
            return None
        remote = self._backend.resolve_to_commit(self._repo, upstream)
        if isinstance(remote, Err):
            log.critical(f"{label}: An operation on branch {name} failed: {remote.error.message}")
            return None

        # Common case first: the reverse walk only runs when this one misses
        contained = self._ancestry.is_ancestor(local.value, of=remote.value)
        if isinstance(contained, Err):
            log.critical(f"{label}: An operation on branch {name} failed: {contained.error}")
            return None
        if contained.value:
            log.success(f"{label}: Local branch {name} is synced with the remote")
            return SyncStatus.SYNCED

        ahead = self._ancestry.is_ancestor(remote.value, of=local.value)
        if isinstance(ahead, Err):
            log.critical(f"{label}: An operation on branch {name} failed: {ahead.error}")
            return None
        if ahead.value:
            log.error(f"{label}: Local branch {name} is ahead of the upstream")
            return SyncStatus.AHEAD_OF_UPSTREAM

        log.error(f"{label}: Local branch {name} has diverged from the upstream")
        return SyncStatus.DIVERGED
