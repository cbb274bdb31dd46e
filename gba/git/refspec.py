"""Fetch refspec matching.

A remote-tracking ref belongs to whichever remote's fetch refspec writes to
it: with the default `+refs/heads/*:refs/remotes/origin/*`, the ref
`refs/remotes/origin/main` belongs to `origin`. This is the same rule git uses
to answer `branch.<name>.remote` questions, and it keeps working when remotes
use non-default destination namespaces.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

__all__ = ["Refspec", "owning_remotes", "parse_refspec"]


@dataclass(frozen=True, slots=True)
class Refspec:
    """A parsed fetch refspec.

    Attributes:
        src: Source pattern on the remote side
        dst: Destination pattern in the local repository (empty if none)
        force: Leading '+' present
        negative: Leading '^' (exclusion) present
    """

    src: bytes
    dst: bytes
    force: bool = False
    negative: bool = False

    def matches_destination(self, refname: bytes) -> bool:
        """True if refname is written by this refspec."""
        if self.negative or not self.dst:
            return False
        return _pattern_matches(self.dst, refname)


def parse_refspec(raw: bytes) -> Refspec:
    """Parse a single fetch refspec such as b"+refs/heads/*:refs/remotes/origin/*"."""
    spec = raw.strip()
    force = spec.startswith(b"+")
    if force:
        spec = spec[1:]
    negative = spec.startswith(b"^")
    if negative:
        spec = spec[1:]
    src, _, dst = spec.partition(b":")
    return Refspec(src=src, dst=dst, force=force, negative=negative)


def _pattern_matches(pattern: bytes, refname: bytes) -> bool:
    # Refspec patterns carry at most one '*', which matches any run of characters
    star = pattern.find(b"*")
    if star < 0:
        return pattern == refname
    head, tail = pattern[:star], pattern[star + 1 :]
    return (
        len(refname) >= len(head) + len(tail)
        and refname.startswith(head)
        and refname.endswith(tail)
    )


def owning_remotes(refname: bytes, refspecs: Mapping[bytes, Iterable[bytes]]) -> list[bytes]:
    """Remote names whose fetch refspecs write to refname, in mapping order."""
    owners: list[bytes] = []
    for remote, specs in refspecs.items():
        if any(parse_refspec(raw).matches_destination(refname) for raw in specs):
            owners.append(remote)
    return owners
