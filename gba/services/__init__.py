"""Audit services: remote qualification, fetching, branch audit, scanning."""

from gba.services.branches import BranchAuditor, BranchOutcome, SyncStatus
from gba.services.preflight import PreflightError, check_repos_directory, check_ssh_private_key
from gba.services.qualify import QualifiedRemote, RemoteDescriptor, RemoteQualifier
from gba.services.remotes import FetchFailed, Fetched, FetchOutcome, RemoteSyncer, synced_remotes
from gba.services.scanner import DirectoryScanner, EntryKind, EntryReport

__all__ = [
    # branches
    "BranchAuditor",
    "BranchOutcome",
    "SyncStatus",
    # preflight
    "PreflightError",
    "check_repos_directory",
    "check_ssh_private_key",
    # qualify
    "QualifiedRemote",
    "RemoteDescriptor",
    "RemoteQualifier",
    # remotes
    "FetchFailed",
    "FetchOutcome",
    "Fetched",
    "RemoteSyncer",
    "synced_remotes",
    # scanner
    "DirectoryScanner",
    "EntryKind",
    "EntryReport",
]
