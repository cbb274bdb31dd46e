"""Typed configuration loading and access.

The config file is optional. When present it is a TOML document:

    [remotes]
    trusted_prefixes = ["https://github.com/", "git@github.com:"]

    [auth]
    ssh_private_key = "~/.ssh/id_ed25519"
    default_username = "git"
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_str_list, get_table

__all__ = [
    "AuthConfig",
    "CONFIG_ENV_VAR",
    "Config",
    "ConfigError",
    "DEFAULT_SSH_KEY_RELATIVE",
    "DEFAULT_TRUSTED_PREFIXES",
    "DEFAULT_USERNAME",
    "RemotesConfig",
    "default_config_path",
    "load_config",
]

DEFAULT_TRUSTED_PREFIXES: tuple[str, ...] = ("https://github.com/", "git@github.com:")
DEFAULT_USERNAME = "git"
DEFAULT_SSH_KEY_RELATIVE = Path(".ssh") / "id_rsa"

CONFIG_ENV_VAR = "GBA_CONFIG"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class RemotesConfig:
    """Which remote URLs count as a safe backup location."""

    trusted_prefixes: tuple[str, ...] = DEFAULT_TRUSTED_PREFIXES


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """Credentials used when fetching qualifying remotes.

    Attributes:
        ssh_private_key: Key file path (may contain ~). None means the CLI
            default under the home directory.
        default_username: Username used when neither the URL nor the git
            transport supplies one.
    """

    ssh_private_key: str | None = None
    default_username: str = DEFAULT_USERNAME


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    remotes: RemotesConfig = field(default_factory=RemotesConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        remotes: StrDict = get_table(data, "remotes") or {}
        auth: StrDict = get_table(data, "auth") or {}

        prefixes = get_str_list(remotes, "trusted_prefixes")

        return cls(
            remotes=RemotesConfig(
                trusted_prefixes=tuple(prefixes) if prefixes else DEFAULT_TRUSTED_PREFIXES,
            ),
            auth=AuthConfig(
                ssh_private_key=get_str(auth, "ssh_private_key"),
                default_username=get_str(auth, "default_username") or DEFAULT_USERNAME,
            ),
        )

    def ssh_private_key_path(self, home: Path) -> Path:
        """Resolve the configured key path, defaulting to ~/.ssh/id_rsa."""
        if self.auth.ssh_private_key is None:
            return home / DEFAULT_SSH_KEY_RELATIVE
        raw = self.auth.ssh_private_key
        if raw == "~" or raw.startswith("~/"):
            return home / raw[2:]
        return Path(raw)


def default_config_path(home: Path) -> Path:
    """Config location used when --config is not given.

    ``$GBA_CONFIG`` wins over ``~/.config/gba/config.toml``.
    """
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env).expanduser()
    return home / ".config" / "gba" / "config.toml"


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to config.toml file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))

