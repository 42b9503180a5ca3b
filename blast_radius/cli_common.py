"""Consoles, logging setup and options shared by the CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from . import config

console = Console()
err_console = Console(stderr=True)

# ── Shared options ───────────────────────────────────────────
RepoOption = typer.Option(Path("."), "--repo", "-C", file_okay=False, help="Repository root (contains go.mod).")
ServicesDirOption = typer.Option(
    None, "--services-dir", envvar=config.ENV_SERVICES_DIR, help="Directory containing services."
)
SharedDirsOption = typer.Option(
    None, "--shared-dirs", envvar=config.ENV_SHARED_DIRS, help="Comma-separated shared package dirs."
)
WorkersOption = typer.Option(
    None, "--workers", "-w", min=1, envvar=config.ENV_WORKERS, help="Concurrent resolver calls."
)
TimeoutOption = typer.Option(
    None, "--timeout", min=0.1, envvar=config.ENV_TIMEOUT, help="Seconds before an external call is abandoned."
)
StrictOption = typer.Option(
    None, "--strict/--no-strict", help="Fail when any service's dependencies cannot be resolved."
)
VerboseOption = typer.Option(False, "--verbose", "-v", help="Print diagnostics to stderr.")


def configure_logging(verbose: bool) -> None:
    """Route log records to stderr; warnings are only shown in verbose mode."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


def fail(exc: Exception) -> NoReturn:
    """Report a fatal error on stderr and exit non-zero."""
    err_console.print(f"[red]✗[/red] {escape(str(exc))}")
    raise typer.Exit(code=1)
