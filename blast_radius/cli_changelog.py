"""CLI command for scoped changelogs."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from . import config
from .changelog import ChangelogBuilder
from .cli_common import RepoOption, ServicesDirOption, SharedDirsOption, TimeoutOption, VerboseOption, configure_logging, fail
from .config_manager import resolve_settings
from .errors import BlastRadiusError
from .reporter import CHANGELOG_FORMATS, ChangelogRenderer


def changelog(
    from_ref: str = typer.Option(..., "--from", help="Start ref (exclusive), e.g. billing/v1.2.3."),
    to_ref: str = typer.Option(config.DEFAULT_HEAD_REF, "--to", help="End ref (inclusive)."),
    service: Optional[str] = typer.Option(None, "--service", "-s", help="Scope to one service plus shared dirs."),
    fmt: str = typer.Option("text", "--format", "-f", help="Output format: text, markdown, json."),
    no_stats: bool = typer.Option(False, "--no-stats", help="Omit the file change summary."),
    no_breaking: bool = typer.Option(False, "--no-breaking", help="Skip breaking-change detection."),
    repo: Path = RepoOption,
    services_dir: Optional[str] = ServicesDirOption,
    shared_dirs: Optional[str] = SharedDirsOption,
    timeout: Optional[float] = TimeoutOption,
    verbose: bool = VerboseOption,
):
    """📝 Changelog between two refs, grouped by commit category.

    Example:
      blast-radius changelog --service billing --from billing/v1.2.3 --to billing/v1.2.4
      blast-radius changelog --from v1.2.3 --format markdown
    """
    fmt = fmt.lower()
    if fmt not in CHANGELOG_FORMATS:
        raise typer.BadParameter(f"Format must be one of: {', '.join(CHANGELOG_FORMATS)}")
    configure_logging(verbose)

    try:
        settings = resolve_settings(repo, services_dir=services_dir, shared_dirs=shared_dirs, timeout=timeout)
        builder = ChangelogBuilder(
            settings.repo_root,
            services_dir=settings.services_dir,
            shared_dirs=settings.shared_dirs,
            timeout=settings.timeout,
        )
        result = builder.build(
            from_ref,
            to_ref,
            service=service,
            include_breaking=not no_breaking,
            include_stats=not no_stats,
        )
    except BlastRadiusError as exc:
        fail(exc)

    typer.echo(ChangelogRenderer(include_stats=not no_stats).render(result, fmt))
