"""Remote qualification.

A remote qualifies as a backup location when its configured URL starts with
one of the trusted prefixes. Matching is a plain, case-sensitive prefix test
on the URL exactly as configured: no normalization, no insteadOf rewriting,
no redirect resolution.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from gba.core.config import DEFAULT_TRUSTED_PREFIXES
from gba.core.diagnostics import DiagnosticLog
from gba.core.result import Err
from gba.git.backend import GitBackend, RemoteHandle, RepoHandle, decode_name, lossy

__all__ = ["QualifiedRemote", "RemoteDescriptor", "RemoteQualifier"]


@dataclass(frozen=True, slots=True)
class RemoteDescriptor:
    """A remote with a readable name and URL, and whether it is trusted."""

    name: str
    url: str
    qualifies: bool


@dataclass(frozen=True, slots=True)
class QualifiedRemote:
    """A descriptor paired with the backend handle needed to fetch it."""

    descriptor: RemoteDescriptor
    handle: RemoteHandle


class RemoteQualifier:
    """Decide which remotes of a repository are trusted backup locations."""

    def __init__(self, prefixes: Iterable[str] = DEFAULT_TRUSTED_PREFIXES) -> None:
        self.prefixes = tuple(prefixes)

    def qualifies(self, url: str) -> bool:
        return url.startswith(self.prefixes)

    def collect(
        self,
        backend: GitBackend,
        repo: RepoHandle,
        log: DiagnosticLog,
        label: str,
    ) -> list[QualifiedRemote]:
        """Describe every remote of repo; only qualifying ones are returned.

        Remotes with an undecodable name, a failed lookup or no usable URL are
        diagnosed one by one and skipped. The qualification computed here is
        final for this entry.

        Raises:
            BackendError: If the remotes cannot be listed at all.
        """
        qualifying: list[QualifiedRemote] = []

        for raw_name in backend.list_remote_names(repo):
            name = decode_name(raw_name)
            if name is None:
                log.error(f"{label}: Remote {lossy(raw_name)} skipped due to invalid utf8")
                continue

            result = backend.get_remote(repo, raw_name)
            if isinstance(result, Err):
                log.error(f"{label}: Remote {name} not found")
                continue
            handle = result.value

            if handle.url is None:
                log.error(f"{label}: Remote {name} has no url")
                continue
            url = decode_name(handle.url)
            if url is None:
                log.error(f"{label}: Remote {name} has a bad url: {lossy(handle.url)}")
                continue

            descriptor = RemoteDescriptor(name=name, url=url, qualifies=self.qualifies(url))
            if descriptor.qualifies:
                qualifying.append(QualifiedRemote(descriptor=descriptor, handle=handle))
            else:
                log.warning(f"{label}: Remote {name} is not a qualifying remote")

        return qualifying
