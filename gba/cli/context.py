from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from gba.core.config import CONFIG_ENV_VAR, Config, default_config_path, load_config
from gba.core.errors import ErrorCode
from gba.core.result import Err
from gba.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    home: Path
    config: Config
    console: ConsoleProtocol


def resolve_config(explicit: Path | None, home: Path) -> Config:
    """Load the config file; only an implicit, absent default falls back to built-ins."""
    if explicit is not None:
        path = explicit.expanduser()
    else:
        path = default_config_path(home)
        if CONFIG_ENV_VAR not in os.environ and not path.exists():
            return Config()

    config_result = load_config(path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    return config_result.value


def build_context(config_path: Path | None = None) -> CLIContext:
    home = Path.home()
    return CLIContext(
        home=home,
        config=resolve_config(config_path, home),
        console=RichConsole(),
    )
