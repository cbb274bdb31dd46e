from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer

from gba import __version__
from gba.cli.context import build_context
from gba.core.errors import ErrorCode
from gba.core.result import Err
from gba.git.cli_backend import GitCliBackend
from gba.git.credentials import CredentialPolicy
from gba.output.console import Style
from gba.output.report import DiagnosticsReporter, format_summary
from gba.services.preflight import PreflightError, check_repos_directory, check_ssh_private_key
from gba.services.qualify import RemoteQualifier
from gba.services.scanner import DirectoryScanner, EntryReport


app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    rich_markup_mode="rich",
)


def _fail(error: PreflightError) -> NoReturn:
    typer.echo(f"error: {error.message}", err=True)
    raise typer.Exit(code=int(error.code))


@app.command()
def audit(
    repos_directory: Path | None = typer.Argument(
        None,
        help="Directory holding the checkouts to audit (defaults to the current directory).",
        show_default=False,
    ),
    verbose: bool = typer.Option(
        False,
        "-a",
        "--verbose",
        help="Also show progress and successful steps.",
    ),
    ssh_private_key: Path | None = typer.Option(
        None,
        "-i",
        "--ssh-private-key",
        help="Private key used to fetch over ssh (defaults to ~/.ssh/id_rsa).",
        show_default=False,
    ),
    config_path: Path | None = typer.Option(
        None,
        "-c",
        "--config",
        help="Config file (defaults to $GBA_CONFIG or ~/.config/gba/config.toml).",
        show_default=False,
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Exit non-zero when anything is not safely backed up.",
    ),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Check that every local branch of every checkout is pushed to a trusted remote."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    ctx = build_context(config_path)
    config = ctx.config

    if ssh_private_key is not None:
        key_path = ssh_private_key.expanduser()
    else:
        key_path = config.ssh_private_key_path(ctx.home)
    key_result = check_ssh_private_key(key_path)
    if isinstance(key_result, Err):
        _fail(key_result.error)

    directory = repos_directory if repos_directory is not None else Path.cwd()
    dir_result = check_repos_directory(directory)
    if isinstance(dir_result, Err):
        _fail(dir_result.error)

    console = ctx.console
    if verbose:
        console.print(f"repositories: {directory}", Style.DIM)
        console.print(f"ssh key: {key_path}", Style.DIM)
        console.print(
            f"trusted prefixes: {', '.join(config.remotes.trusted_prefixes)}",
            Style.DIM,
        )

    scanner = DirectoryScanner(
        GitCliBackend(),
        qualifier=RemoteQualifier(config.remotes.trusted_prefixes),
        credentials=CredentialPolicy(key_path, config.auth.default_username),
    )
    reporter = DiagnosticsReporter(console, verbose=verbose)

    reports: list[EntryReport] = []
    try:
        for report in scanner.scan(directory):
            reporter.flush(report)
            reports.append(report)
    except OSError as e:
        typer.echo(f"error: Failed to read repositories directory: {directory}: {e}", err=True)
        raise typer.Exit(code=int(ErrorCode.IO_ERROR))

    if verbose:
        console.print(format_summary(reports), Style.DIM)

    if strict and any(r.has_findings for r in reports):
        raise typer.Exit(code=int(ErrorCode.FINDINGS))


def main() -> None:
    app()
