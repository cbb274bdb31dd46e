"""Commit ancestry queries."""

from __future__ import annotations

from contextlib import closing

from gba.core.result import Err, Ok, Result
from gba.git.backend import GitBackend, GitError, RepoHandle

__all__ = ["AncestryResolver"]


class AncestryResolver:
    """Answer "is commit X reachable by walking parents from commit Y".

    Every query seeds a fresh topological walk at the target and stops at the
    first match, so cost is proportional to how far back the candidate is.
    """

    def __init__(self, backend: GitBackend, repo: RepoHandle) -> None:
        self._backend = backend
        self._repo = repo

    def is_ancestor(self, candidate: str, *, of: str) -> Result[bool, GitError]:
        """True if candidate is `of` or one of its ancestors.

        Returns:
            Ok(bool) when the walk completes or finds the candidate
            Err(GitError) if the walk fails partway
        """
        with closing(self._backend.walk_ancestors(self._repo, of)) as walk:
            for item in walk:
                match item:
                    case Err(error):
                        return Err(error)
                    case Ok(oid):
                        if oid == candidate:
                            return Ok(True)
        return Ok(False)
