"""Fetch credentials.

A fetch is authenticated with one of two strategies: a bare username (what a
transport asks for before it negotiates anything else) or SSH public-key
authentication with a private key file. Passphrase-protected keys are not
supported.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

__all__ = [
    "Credential",
    "CredentialPolicy",
    "SshPrivateKey",
    "UsernameOnly",
    "is_ssh_transport",
    "select_credential",
    "url_username",
]

# user@host:path, but not a Windows drive letter or a URL with a scheme
_SCP_LIKE = re.compile(r"^(?:(?P<user>[^@/:]+)@)?(?P<host>[^/:]+):(?!//)")
_URL_USER = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://(?P<user>[^@/:]+)(?::[^@/]*)?@")


@dataclass(frozen=True, slots=True)
class UsernameOnly:
    username: str


@dataclass(frozen=True, slots=True)
class SshPrivateKey:
    username: str
    private_key: Path


type Credential = UsernameOnly | SshPrivateKey


def is_ssh_transport(url: str) -> bool:
    """True for ssh:// URLs and scp-like user@host:path remotes."""
    if url.startswith(("ssh://", "git+ssh://", "ssh+git://")):
        return True
    if "://" in url:
        return False
    match = _SCP_LIKE.match(url)
    return match is not None and len(match.group("host")) > 1


def url_username(url: str) -> str | None:
    """Username embedded in a remote URL, if any."""
    match = _URL_USER.match(url)
    if match:
        return match.group("user")
    if "://" not in url:
        match = _SCP_LIKE.match(url)
        if match and match.group("user"):
            return match.group("user")
    return None


def select_credential(
    *,
    username_hint: str | None,
    username_only: bool,
    default_username: str,
    private_key: Path,
) -> Credential:
    """Pick the credential for one authentication challenge.

    The hint (the username from the remote URL) wins over the default.
    """
    username = username_hint or default_username
    if username_only:
        return UsernameOnly(username)
    return SshPrivateKey(username, private_key)


@dataclass(frozen=True, slots=True)
class CredentialPolicy:
    """Credential provider shared by every fetch of a run.

    Instances are callable with the CredentialProvider signature.
    """

    private_key: Path
    default_username: str = "git"

    def __call__(self, username_hint: str | None, username_only: bool) -> Credential:
        return select_credential(
            username_hint=username_hint,
            username_only=username_only,
            default_username=self.default_username,
            private_key=self.private_key,
        )
