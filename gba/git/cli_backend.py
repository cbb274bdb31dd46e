"""GitBackend implementation on top of the `git` executable.

Every operation is a `git -C <repo> ...` subprocess run through
gba.platform.process. Local queries get a short timeout; fetches get none, so a
hung network fetch stalls the scan rather than being reported as a failure.
"""

from __future__ import annotations

import os
import shlex
from collections.abc import Generator
from contextlib import closing
from pathlib import Path

from gba.core.result import Err, Ok, Result
from gba.git.backend import (
    LOCAL_BRANCH_PREFIX,
    BackendError,
    BranchHandle,
    CredentialProvider,
    GitError,
    RemoteHandle,
    RepoHandle,
    lossy,
)
from gba.git.credentials import (
    Credential,
    SshPrivateKey,
    UsernameOnly,
    is_ssh_transport,
    url_username,
)
from gba.git.refspec import owning_remotes
from gba.platform.process import ProcessError, stream_lines
from gba.platform.process import run as run_process

__all__ = ["GitCliBackend"]

_GIT_TIMEOUT_SECONDS = 30.0

# Inherited variables that would point git at some other repository
_REPOSITORY_ENV_VARS = (
    "GIT_DIR",
    "GIT_WORK_TREE",
    "GIT_INDEX_FILE",
    "GIT_OBJECT_DIRECTORY",
    "GIT_ALTERNATE_OBJECT_DIRECTORIES",
    "GIT_COMMON_DIR",
    "GIT_NAMESPACE",
    "GIT_CEILING_DIRECTORIES",
    "GIT_DISCOVERY_ACROSS_FILESYSTEM",
)


def _message(error: ProcessError) -> str:
    """git's own explanation, without the 'fatal: ' / 'error: ' prefix."""
    detail = error.detail
    for prefix in ("fatal: ", "error: "):
        if detail.startswith(prefix):
            return detail[len(prefix) :]
    return detail


class GitCliBackend:
    """Drive the git command line.

    Attributes:
        git: Executable to invoke
    """

    def __init__(self, *, git: str = "git", timeout: float = _GIT_TIMEOUT_SECONDS) -> None:
        self.git = git
        self._timeout = timeout
        self._env = {k: v for k, v in os.environ.items() if k not in _REPOSITORY_ENV_VARS}

    # -------------------------------------------------------------------------
    # Repository
    # -------------------------------------------------------------------------

    def open(self, path: Path) -> Result[RepoHandle, GitError]:
        path = path.absolute()
        env = {**self._env, "GIT_CEILING_DIRECTORIES": str(path.parent)}
        result = self._run_in(path, ["rev-parse", "--absolute-git-dir"], env=env)
        match result:
            case Err(e):
                return Err(GitError(command="open", message=_message(e), returncode=e.returncode))
            case Ok(stdout):
                git_dir = os.fsdecode(stdout.rstrip(b"\n"))
                return Ok(RepoHandle(path=path, git_dir=Path(git_dir)))

    # -------------------------------------------------------------------------
    # Remotes
    # -------------------------------------------------------------------------

    def list_remote_names(self, repo: RepoHandle) -> list[bytes]:
        stdout = self._require(repo, ["remote"], "remote")
        return [line for line in stdout.split(b"\n") if line]

    def get_remote(self, repo: RepoHandle, name: bytes) -> Result[RemoteHandle, GitError]:
        if name not in self.list_remote_names(repo):
            return Err(GitError(command="remote", message=f"remote '{lossy(name)}' does not exist"))

        section = b"remote." + name
        url = self._config_values(repo, section + b".url")
        if isinstance(url, Err):
            return url
        refspecs = self._config_values(repo, section + b".fetch")
        if isinstance(refspecs, Err):
            return refspecs

        urls = url.value
        return Ok(
            RemoteHandle(
                name=name,
                url=urls[-1] if urls else None,
                refspecs=tuple(refspecs.value),
            )
        )

    def fetch(
        self,
        repo: RepoHandle,
        remote: RemoteHandle,
        credentials: CredentialProvider,
    ) -> Result[None, GitError]:
        url = lossy(remote.url or b"")
        hint = url_username(url)
        credential = credentials(hint, not is_ssh_transport(url))
        config, env = self._credential_settings(credential, url_has_user=hint is not None)

        args = [*config, "fetch", "--quiet", os.fsdecode(remote.name)]
        result = self._run_in(repo.path, args, env=env)
        match result:
            case Err(e):
                return Err(GitError(command="fetch", message=_message(e), returncode=e.returncode))
            case Ok(_):
                return Ok(None)

    def _credential_settings(
        self,
        credential: Credential,
        *,
        url_has_user: bool,
    ) -> tuple[list[str], dict[str, str]]:
        """Translate a credential into git -c options and environment."""
        env = {**self._env, "GIT_TERMINAL_PROMPT": "0"}
        match credential:
            case UsernameOnly(username=username):
                return (["-c", f"credential.username={username}"], env)
            case SshPrivateKey(username=username, private_key=key):
                ssh = [
                    "ssh",
                    "-i",
                    str(key),
                    "-o",
                    "IdentitiesOnly=yes",
                    "-o",
                    "BatchMode=yes",
                ]
                if not url_has_user:
                    ssh += ["-l", username]
                env["GIT_SSH_COMMAND"] = shlex.join(ssh)
                return ([], env)

    # -------------------------------------------------------------------------
    # Branches
    # -------------------------------------------------------------------------

    def list_local_branches(self, repo: RepoHandle) -> list[BranchHandle]:
        stdout = self._require(
            repo,
            ["for-each-ref", "--format=%(refname)", os.fsdecode(LOCAL_BRANCH_PREFIX)],
            "for-each-ref",
        )
        return [BranchHandle(refname=line) for line in stdout.split(b"\n") if line]

    def upstream(self, repo: RepoHandle, branch: BranchHandle) -> Result[BranchHandle, GitError]:
        result = self._run_in(
            repo.path,
            [
                "for-each-ref",
                "--format=%(upstream)%00%(upstream:track)",
                os.fsdecode(branch.refname),
            ],
        )
        if isinstance(result, Err):
            e = result.error
            return Err(GitError(command="upstream", message=_message(e), returncode=e.returncode))

        line = result.value.split(b"\n", 1)[0]
        refname, _, track = line.partition(b"\0")
        name = lossy(branch.shorthand)
        if not refname:
            return Err(
                GitError(command="upstream", message=f"no upstream configured for branch '{name}'")
            )
        if track == b"[gone]":
            return Err(
                GitError(
                    command="upstream",
                    message=f"upstream '{lossy(refname)}' of branch '{name}' does not exist",
                )
            )
        return Ok(BranchHandle(refname=refname))

    def branch_owning_remote_name(
        self,
        repo: RepoHandle,
        refname: bytes,
    ) -> Result[bytes, GitError]:
        refspecs: dict[bytes, list[bytes]] = {}
        for name in self.list_remote_names(repo):
            values = self._config_values(repo, b"remote." + name + b".fetch")
            if isinstance(values, Err):
                return values
            refspecs[name] = values.value

        owners = owning_remotes(refname, refspecs)
        if not owners:
            return Err(
                GitError(
                    command="branch_remote_name",
                    message=f"no remote fetches into '{lossy(refname)}'",
                )
            )
        if len(owners) > 1:
            names = ", ".join(lossy(o) for o in owners)
            return Err(
                GitError(
                    command="branch_remote_name",
                    message=f"'{lossy(refname)}' is ambiguous between remotes {names}",
                )
            )
        return Ok(owners[0])

    # -------------------------------------------------------------------------
    # Commits
    # -------------------------------------------------------------------------

    def resolve_to_commit(self, repo: RepoHandle, ref: BranchHandle) -> Result[str, GitError]:
        target = os.fsdecode(ref.refname) + "^{commit}"
        result = self._run_in(repo.path, ["rev-parse", "--verify", "--quiet", target])
        match result:
            case Err(e):
                message = (
                    _message(e)
                    if e.stderr.strip()
                    else f"'{lossy(ref.refname)}' does not resolve to a commit"
                )
                return Err(GitError(command="rev-parse", message=message, returncode=e.returncode))
            case Ok(stdout):
                return Ok(stdout.strip().decode("ascii"))

    def walk_ancestors(
        self,
        repo: RepoHandle,
        seed: str,
    ) -> Generator[Result[str, GitError], None, None]:
        cmd = [self.git, "-C", str(repo.path), "rev-list", "--topo-order", seed]
        with closing(stream_lines(cmd, cwd=repo.path, env=self._env)) as lines:
            for item in lines:
                match item:
                    case Ok(line):
                        yield Ok(line.strip().decode("ascii"))
                    case Err(e):
                        error = GitError(
                            command="rev-list", message=_message(e), returncode=e.returncode
                        )
                        yield Err(error)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _config_values(self, repo: RepoHandle, key: bytes) -> Result[list[bytes], GitError]:
        """All values of a multi-valued config key; [] when unset."""
        result = self._run_in(repo.path, ["config", "-z", "--get-all", os.fsdecode(key)])
        match result:
            case Err(e):
                # Exit status 1 means the key is not set
                if e.returncode == 1 and not e.stderr.strip():
                    return Ok([])
                return Err(GitError(command="config", message=_message(e), returncode=e.returncode))
            case Ok(stdout):
                return Ok([value for value in stdout.split(b"\0") if value])

    def _require(self, repo: RepoHandle, args: list[str], command: str) -> bytes:
        result = self._run_in(repo.path, args)
        match result:
            case Err(e):
                raise BackendError(
                    GitError(command=command, message=_message(e), returncode=e.returncode)
                )
            case Ok(stdout):
                return stdout

    def _run_in(
        self,
        path: Path,
        args: list[str],
        *,
        env: dict[str, str] | None = None,
    ) -> Result[bytes, ProcessError]:
        """Run a git command in the repository at path."""
        timeout = None if "fetch" in args else self._timeout
        return run_process(
            [self.git, "-C", str(path), *args],
            cwd=path,
            env=env if env is not None else self._env,
            timeout=timeout,
        )
