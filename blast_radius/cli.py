"""Typer-based CLI for blast-radius."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from . import __version__
from .cli_changelog import changelog
from .cli_common import (
    RepoOption,
    ServicesDirOption,
    SharedDirsOption,
    StrictOption,
    TimeoutOption,
    VerboseOption,
    WorkersOption,
    configure_logging,
    console,
    fail,
)
from .config_manager import Settings, resolve_settings
from .errors import BlastRadiusError
from .orchestrator import BlastRadiusOrchestrator
from .registry import list_entry_candidates
from .reporter import FORMATS, Reporter

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="💥 blast-radius — which services does this change affect?",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("changelog")(changelog)


def _settings(
    repo: Path,
    services_dir: Optional[str],
    shared_dirs: Optional[str],
    workers: Optional[int],
    timeout: Optional[float],
    strict: Optional[bool],
) -> Settings:
    return resolve_settings(
        repo,
        services_dir=services_dir,
        shared_dirs=shared_dirs,
        workers=workers,
        timeout=timeout,
        strict=strict,
    )


def _orchestrator(settings: Settings) -> BlastRadiusOrchestrator:
    return BlastRadiusOrchestrator(settings)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"blast-radius v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    )
):
    """Determine which services are affected by changes in shared packages."""
    pass


@app.command("affected")
def affected(
    base: Optional[str] = typer.Option(None, "--base", help="Base ref (default: HEAD~1)."),
    head: Optional[str] = typer.Option(None, "--head", help="Head ref (default: HEAD)."),
    packages: Optional[str] = typer.Option(
        None, "--packages", "-p", help="Comma-separated changed packages; skips git diff."
    ),
    fmt: str = typer.Option("list", "--format", "-f", help="Output format: list, json, detail."),
    show_all: bool = typer.Option(False, "--all", help="Show the full dependency map instead."),
    repo: Path = RepoOption,
    services_dir: Optional[str] = ServicesDirOption,
    shared_dirs: Optional[str] = SharedDirsOption,
    workers: Optional[int] = WorkersOption,
    timeout: Optional[float] = TimeoutOption,
    strict: Optional[bool] = StrictOption,
    verbose: bool = VerboseOption,
):
    """List services affected by changed shared packages.

    Example:
      blast-radius affected
      blast-radius affected --base v1.2.3 --head v1.2.4 --format json
      blast-radius affected --packages "shared/models,shared/auth" -f detail
    """
    fmt = fmt.lower()
    if fmt not in FORMATS:
        raise typer.BadParameter(f"Format must be one of: {', '.join(FORMATS)}")
    configure_logging(verbose)

    try:
        settings = _settings(repo, services_dir, shared_dirs, workers, timeout, strict)
        orchestrator = _orchestrator(settings)
        reporter = Reporter(orchestrator.module_root)

        if show_all:
            full = orchestrator.full_map()
            typer.echo(reporter.render_full_map_json(full) if fmt == "json" else reporter.render_full_map(full))
            return

        result = orchestrator.affected(packages=[packages] if packages else None, base_ref=base, head_ref=head)
    except BlastRadiusError as exc:
        fail(exc)

    if result.is_empty():
        logger.info("No affected services")
    output = reporter.render(result, fmt)
    if output:
        typer.echo(output)


@app.command("map")
def dependency_map(
    fmt: str = typer.Option("text", "--format", "-f", help="Output format: text or json."),
    repo: Path = RepoOption,
    services_dir: Optional[str] = ServicesDirOption,
    shared_dirs: Optional[str] = SharedDirsOption,
    workers: Optional[int] = WorkersOption,
    timeout: Optional[float] = TimeoutOption,
    strict: Optional[bool] = StrictOption,
    verbose: bool = VerboseOption,
):
    """Show every service's dependencies and each shared package's consumers."""
    fmt = fmt.lower()
    if fmt not in {"text", "json"}:
        raise typer.BadParameter("Format must be one of: text, json")
    configure_logging(verbose)

    try:
        settings = _settings(repo, services_dir, shared_dirs, workers, timeout, strict)
        orchestrator = _orchestrator(settings)
        full = orchestrator.full_map()
    except BlastRadiusError as exc:
        fail(exc)

    reporter = Reporter(orchestrator.module_root)
    typer.echo(reporter.render_full_map_json(full) if fmt == "json" else reporter.render_full_map(full))


@app.command("consumers")
def consumers(
    package: str = typer.Argument(..., help="Package, e.g. shared/models."),
    as_json: bool = typer.Option(False, "--json", help="Print a JSON array."),
    repo: Path = RepoOption,
    services_dir: Optional[str] = ServicesDirOption,
    shared_dirs: Optional[str] = SharedDirsOption,
    workers: Optional[int] = WorkersOption,
    timeout: Optional[float] = TimeoutOption,
    strict: Optional[bool] = StrictOption,
    verbose: bool = VerboseOption,
):
    """List services that consume a package or anything below it."""
    configure_logging(verbose)
    try:
        settings = _settings(repo, services_dir, shared_dirs, workers, timeout, strict)
        found = _orchestrator(settings).consumers(package)
    except BlastRadiusError as exc:
        fail(exc)

    if as_json:
        typer.echo(Reporter().render_json_list(found))
    elif found:
        typer.echo("\n".join(found))


@app.command("services")
def services(
    repo: Path = RepoOption,
    services_dir: Optional[str] = ServicesDirOption,
    verbose: bool = VerboseOption,
):
    """Show the services discovered under the services directory."""
    configure_logging(verbose)
    try:
        settings = _settings(repo, services_dir, None, None, None, None)
        found = _orchestrator(settings).discover()
    except BlastRadiusError as exc:
        fail(exc)

    table = Table(title=f"Services in {settings.services_dir}/")
    table.add_column("Service", style="cyan", no_wrap=True)
    table.add_column("Entry points", justify="right")
    table.add_column("First entry point", style="dim")
    for svc in found:
        entries = list_entry_candidates(svc.root, settings.source_extensions)
        first = entries[0].relative_to(svc.root).as_posix() if entries else ""
        table.add_row(svc.name, str(len(entries)), first)
    console.print(table)


if __name__ == "__main__":
    app()
