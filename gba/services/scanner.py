"""Directory scanning.

Walks one level of a repositories directory and audits every entry that turns
out to be a git repository. Each entry is processed in isolation and produces
an EntryReport; nothing that goes wrong inside one entry can stop the scan.
"""

from __future__ import annotations

import stat
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from gba.core.diagnostics import DiagnosticLog
from gba.core.result import Err
from gba.git.backend import CredentialProvider, GitBackend
from gba.services.branches import BranchAuditor, BranchOutcome
from gba.services.qualify import RemoteQualifier
from gba.services.remotes import FetchOutcome, RemoteSyncer, synced_remotes

__all__ = ["DirectoryScanner", "EntryKind", "EntryReport"]


class EntryKind(Enum):
    """What a directory entry turned out to be."""

    SYMLINK = "symlink"
    FILE = "file"
    NOT_A_REPOSITORY = "not-a-repository"
    REPOSITORY = "repository"
    UNREADABLE = "unreadable"


def _empty_fetches() -> dict[str, FetchOutcome]:
    return {}


def _empty_branches() -> list[BranchOutcome]:
    return []


@dataclass
class EntryReport:
    """Everything learned about one directory entry.

    Attributes:
        path: The entry
        kind: Classification (UNREADABLE until known)
        diagnostics: Ordered diagnostics, to be flushed by the caller
        fetches: Fetch outcome per qualifying remote
        branches: Terminal status per audited branch
    """

    path: Path
    kind: EntryKind = EntryKind.UNREADABLE
    diagnostics: DiagnosticLog = field(default_factory=DiagnosticLog)
    fetches: dict[str, FetchOutcome] = field(default_factory=_empty_fetches)
    branches: list[BranchOutcome] = field(default_factory=_empty_branches)

    @property
    def has_findings(self) -> bool:
        """True if anything here is not safely backed up or could not be checked."""
        return self.diagnostics.has_problems() or any(
            not o.status.is_safe for o in self.branches
        )


class DirectoryScanner:
    """Audit every entry of a repositories directory, one at a time."""

    def __init__(
        self,
        backend: GitBackend,
        *,
        qualifier: RemoteQualifier,
        credentials: CredentialProvider,
    ) -> None:
        self._backend = backend
        self._qualifier = qualifier
        self._syncer = RemoteSyncer(backend, credentials)

    def scan(self, directory: Path) -> Iterator[EntryReport]:
        """Yield one report per entry of directory, sorted by name.

        Raises:
            OSError: If the directory itself cannot be listed.
        """
        for path in sorted(directory.iterdir(), key=lambda p: p.name):
            yield self.process_entry(path)

    def process_entry(self, path: Path) -> EntryReport:
        """Classify and, for repositories, audit a single entry."""
        report = EntryReport(path=path)
        report.diagnostics.verbose(f"Looking at the entry {path}")
        try:
            self._process(report)
        except Exception as e:  # noqa: BLE001
            report.diagnostics.critical(f"Failed for the entry {path}: {e}")
        return report

    def _process(self, report: EntryReport) -> None:
        path = report.path
        log = report.diagnostics

        # lstat: a symlink is reported as itself, never as its target
        mode = path.lstat().st_mode
        if stat.S_ISLNK(mode):
            report.kind = EntryKind.SYMLINK
            log.warning(
                f"Found symlink: {path}. Ignoring this entry, since what a symlink "
                f"means in the repositories directory is not defined."
            )
            return
        if stat.S_ISREG(mode):
            report.kind = EntryKind.FILE
            log.error(
                f"Found file: {path}. Files are unlikely to be git-pushed; "
                f"move them somewhere safe if necessary."
            )
            return

        opened = self._backend.open(path)
        if isinstance(opened, Err):
            report.kind = EntryKind.NOT_A_REPOSITORY
            log.error(f"{opened.error.message}: {path}. This is not a git repository.")
            return
        repo = opened.value
        report.kind = EntryKind.REPOSITORY

        label = str(path)
        log.verbose(f"{label}: This is a git repo")

        remotes = self._qualifier.collect(self._backend, repo, log, label)
        report.fetches = self._syncer.sync(repo, remotes, log, label)

        auditor = BranchAuditor(
            self._backend,
            repo,
            synced_remotes(report.fetches),
            log,
            label,
        )
        for branch in self._backend.list_local_branches(repo):
            outcome = auditor.audit(branch)
            if outcome is not None:
                report.branches.append(outcome)
