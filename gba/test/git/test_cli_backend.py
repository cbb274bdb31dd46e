"""Tests for gba.git.cli_backend module, against real git repositories.

Remotes use qualifying https://github.com/ URLs; a url.<path>.insteadOf rule
in an isolated global config points them at local bare repositories.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

import pytest

from gba.core.result import Err, Ok
from gba.git.backend import BranchHandle, RepoHandle
from gba.git.cli_backend import GitCliBackend
from gba.git.credentials import CredentialPolicy
from gba.services.branches import SyncStatus
from gba.services.qualify import RemoteQualifier
from gba.services.scanner import DirectoryScanner, EntryKind

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

GITHUB_URL = "https://github.com/org/project.git"


def _git(cwd: Path, *args: str) -> str:
    proc = subprocess.run(
        ["git", *args],
        cwd=cwd,
        env=os.environ.copy(),
        capture_output=True,
        text=True,
        check=True,
    )
    return proc.stdout.strip()


def _commit(repo: Path, message: str) -> str:
    _git(repo, "commit", "--allow-empty", "-q", "-m", message)
    return _git(repo, "rev-parse", "HEAD")


@dataclass
class Checkout:
    gitconfig: Path
    repos: Path
    work: Path
    bare: Path

    def redirect(self, url: str, target: Path) -> None:
        with self.gitconfig.open("a", encoding="utf-8") as f:
            f.write(f'[url "{target}"]\n\tinsteadOf = {url}\n')


@pytest.fixture
def checkout(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Checkout:
    """A working copy with one commit, pushed to origin (a GitHub URL)."""
    gitconfig = tmp_path / "gitconfig"
    gitconfig.write_text(
        "[user]\n\tname = Test\n\temail = test@example.com\n"
        "[commit]\n\tgpgsign = false\n"
        "[init]\n\tdefaultBranch = main\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(gitconfig))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for var in ("GIT_DIR", "GIT_WORK_TREE", "GIT_CEILING_DIRECTORIES"):
        monkeypatch.delenv(var, raising=False)

    bare = tmp_path / "remote.git"
    _git(tmp_path, "init", "-q", "--bare", str(bare))
    _git(bare, "symbolic-ref", "HEAD", "refs/heads/main")

    repos = tmp_path / "repos"
    work = repos / "project"
    work.mkdir(parents=True)
    _git(work, "init", "-q")
    _git(work, "symbolic-ref", "HEAD", "refs/heads/main")
    _commit(work, "c1")

    co = Checkout(gitconfig=gitconfig, repos=repos, work=work, bare=bare)
    co.redirect(GITHUB_URL, bare)
    _git(work, "remote", "add", "origin", GITHUB_URL)
    _git(work, "push", "-q", "-u", "origin", "main")
    return co


def _open(backend: GitCliBackend, path: Path) -> RepoHandle:
    result = backend.open(path)
    assert isinstance(result, Ok), result
    return result.value


class TestOpen:
    def test_repository(self, checkout: Checkout) -> None:
        result = GitCliBackend().open(checkout.work)

        assert isinstance(result, Ok)
        assert result.value.git_dir.name == ".git"

    def test_plain_directory(self, tmp_path: Path, checkout: Checkout) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()

        assert isinstance(GitCliBackend().open(plain), Err)

    def test_never_discovers_parent_repository(self, checkout: Checkout) -> None:
        nested = checkout.work / "nested"
        nested.mkdir()

        result = GitCliBackend().open(nested)

        assert isinstance(result, Err)
        assert result.error.message


class TestRemotes:
    def test_list_and_get(self, checkout: Checkout) -> None:
        backend = GitCliBackend()
        repo = _open(backend, checkout.work)

        assert backend.list_remote_names(repo) == [b"origin"]
        remote = backend.get_remote(repo, b"origin")
        assert isinstance(remote, Ok)
        # URL as configured, before insteadOf rewriting
        assert remote.value.url == GITHUB_URL.encode()
        assert remote.value.refspecs == (b"+refs/heads/*:refs/remotes/origin/*",)

    def test_get_unknown(self, checkout: Checkout) -> None:
        backend = GitCliBackend()
        repo = _open(backend, checkout.work)

        assert isinstance(backend.get_remote(repo, b"nope"), Err)

    def test_fetch_updates_tracking_ref(self, tmp_path: Path, checkout: Checkout) -> None:
        other = tmp_path / "other"
        _git(tmp_path, "clone", "-q", str(checkout.bare), str(other))
        pushed = _commit(other, "c2")
        _git(other, "push", "-q", "origin", "main")

        backend = GitCliBackend()
        repo = _open(backend, checkout.work)
        remote = backend.get_remote(repo, b"origin").unwrap()
        result = backend.fetch(repo, remote, CredentialPolicy(tmp_path / "id_rsa"))

        assert isinstance(result, Ok)
        tracking = backend.resolve_to_commit(repo, BranchHandle(b"refs/remotes/origin/main"))
        assert tracking == Ok(pushed)

    def test_fetch_failure(self, tmp_path: Path, checkout: Checkout) -> None:
        missing_url = "https://github.com/org/missing.git"
        checkout.redirect(missing_url, tmp_path / "does-not-exist.git")
        _git(checkout.work, "remote", "add", "missing", missing_url)

        backend = GitCliBackend()
        repo = _open(backend, checkout.work)
        remote = backend.get_remote(repo, b"missing").unwrap()
        result = backend.fetch(repo, remote, CredentialPolicy(tmp_path / "id_rsa"))

        assert isinstance(result, Err)
        assert result.error.command == "fetch"
        assert result.error.message


class TestBranches:
    def test_list_local_branches(self, checkout: Checkout) -> None:
        _git(checkout.work, "branch", "topic")
        backend = GitCliBackend()
        repo = _open(backend, checkout.work)

        refs = [b.refname for b in backend.list_local_branches(repo)]

        assert refs == [b"refs/heads/main", b"refs/heads/topic"]

    def test_unborn_branch_not_listed(self, tmp_path: Path, checkout: Checkout) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()
        _git(empty, "init", "-q")
        backend = GitCliBackend()

        assert backend.list_local_branches(_open(backend, empty)) == []

    def test_upstream(self, checkout: Checkout) -> None:
        backend = GitCliBackend()
        repo = _open(backend, checkout.work)

        result = backend.upstream(repo, BranchHandle(b"refs/heads/main"))

        assert isinstance(result, Ok)
        assert result.value.refname == b"refs/remotes/origin/main"
        assert result.value.shorthand == b"origin/main"

    def test_no_upstream(self, checkout: Checkout) -> None:
        _git(checkout.work, "branch", "local-only")
        backend = GitCliBackend()
        repo = _open(backend, checkout.work)

        result = backend.upstream(repo, BranchHandle(b"refs/heads/local-only"))

        assert isinstance(result, Err)
        assert "no upstream" in result.error.message

    def test_gone_upstream(self, checkout: Checkout) -> None:
        _git(checkout.work, "checkout", "-q", "-b", "topic")
        _git(checkout.work, "push", "-q", "-u", "origin", "topic")
        _git(checkout.work, "update-ref", "-d", "refs/remotes/origin/topic")
        backend = GitCliBackend()
        repo = _open(backend, checkout.work)

        result = backend.upstream(repo, BranchHandle(b"refs/heads/topic"))

        assert isinstance(result, Err)
        assert "does not exist" in result.error.message

    def test_owning_remote(self, checkout: Checkout) -> None:
        backend = GitCliBackend()
        repo = _open(backend, checkout.work)

        assert backend.branch_owning_remote_name(repo, b"refs/remotes/origin/main") == Ok(
            b"origin"
        )
        assert isinstance(
            backend.branch_owning_remote_name(repo, b"refs/remotes/elsewhere/main"), Err
        )


class TestCommits:
    def test_resolve(self, checkout: Checkout) -> None:
        backend = GitCliBackend()
        repo = _open(backend, checkout.work)

        result = backend.resolve_to_commit(repo, BranchHandle(b"refs/heads/main"))

        assert result == Ok(_git(checkout.work, "rev-parse", "HEAD"))

    def test_resolve_missing(self, checkout: Checkout) -> None:
        backend = GitCliBackend()
        repo = _open(backend, checkout.work)

        assert isinstance(backend.resolve_to_commit(repo, BranchHandle(b"refs/heads/x")), Err)

    def test_walk_ancestors(self, checkout: Checkout) -> None:
        first = _git(checkout.work, "rev-parse", "HEAD")
        second = _commit(checkout.work, "c2")
        backend = GitCliBackend()
        repo = _open(backend, checkout.work)

        walked = [item.unwrap() for item in backend.walk_ancestors(repo, second)]

        assert walked == [second, first]

    def test_walk_unknown_commit(self, checkout: Checkout) -> None:
        backend = GitCliBackend()
        repo = _open(backend, checkout.work)

        items = list(backend.walk_ancestors(repo, "0" * 40))

        assert isinstance(items[-1], Err)


class TestEndToEnd:
    """DirectoryScanner over real checkouts."""

    def _scan(self, checkout: Checkout) -> list[SyncStatus]:
        scanner = DirectoryScanner(
            GitCliBackend(),
            qualifier=RemoteQualifier(),
            credentials=CredentialPolicy(checkout.repos.parent / "id_rsa"),
        )
        reports = list(scanner.scan(checkout.repos))
        assert [r.kind for r in reports] == [EntryKind.REPOSITORY]
        return [o.status for o in reports[0].branches]

    def test_synced(self, checkout: Checkout) -> None:
        assert self._scan(checkout) == [SyncStatus.SYNCED]

    def test_ahead(self, checkout: Checkout) -> None:
        _commit(checkout.work, "local work")
        assert self._scan(checkout) == [SyncStatus.AHEAD_OF_UPSTREAM]

    def test_diverged(self, tmp_path: Path, checkout: Checkout) -> None:
        other = tmp_path / "other"
        _git(tmp_path, "clone", "-q", str(checkout.bare), str(other))
        _commit(other, "theirs")
        _git(other, "push", "-q", "origin", "main")
        _commit(checkout.work, "ours")

        assert self._scan(checkout) == [SyncStatus.DIVERGED]

    def test_behind_counts_as_synced(self, tmp_path: Path, checkout: Checkout) -> None:
        other = tmp_path / "other"
        _git(tmp_path, "clone", "-q", str(checkout.bare), str(other))
        _commit(other, "theirs")
        _git(other, "push", "-q", "origin", "main")

        assert self._scan(checkout) == [SyncStatus.SYNCED]
