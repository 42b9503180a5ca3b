"""Project configuration for blast-radius using TOML files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

import toml

from . import config
from .errors import ConfigurationError
from .packages import normalize_path, split_list


@dataclass(frozen=True)
class Settings:
    """Merged settings for a single invocation."""
    repo_root: Path
    services_dir: str = config.DEFAULT_SERVICES_DIR
    shared_dirs: Tuple[str, ...] = config.DEFAULT_SHARED_DIRS
    source_extensions: Tuple[str, ...] = config.DEFAULT_SOURCE_EXTENSIONS
    workers: int = config.DEFAULT_WORKERS
    timeout: float = config.DEFAULT_TIMEOUT
    strict: bool = False

    @property
    def services_path(self) -> Path:
        return self.repo_root / self.services_dir


def config_path(repo_root: Path) -> Path:
    return repo_root / config.CONFIG_FILENAME


def load_config(repo_root: Path) -> Dict[str, Any]:
    """Load the ``[blast-radius]`` table from the project config file.

    Args:
        repo_root: Repository root containing ``.blast-radius.toml``.

    Returns:
        The table as a dict, or an empty dict when the file does not exist.

    Raises:
        ConfigurationError: If the file exists but cannot be parsed.
    """
    path = config_path(repo_root)
    if not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = toml.load(f)
    except (toml.TomlDecodeError, OSError) as exc:
        raise ConfigurationError(f"Cannot read {path}: {exc}") from exc

    section = data.get(config.CONFIG_SECTION, {})
    if not isinstance(section, dict):
        raise ConfigurationError(f"[{config.CONFIG_SECTION}] in {path} must be a table")
    return section


def resolve_settings(
    repo_root: Path,
    services_dir: Optional[str] = None,
    shared_dirs: Optional[Sequence[str] | str] = None,
    workers: Optional[int] = None,
    timeout: Optional[float] = None,
    strict: Optional[bool] = None,
) -> Settings:
    """Merge explicit values over the project config file over defaults.

    Explicit values come from the CLI, where Typer has already applied the
    environment variables.
    """
    repo_root = Path(repo_root).resolve()
    if not repo_root.is_dir():
        raise ConfigurationError(f"Repository root not found: {repo_root}")

    file_cfg = load_config(repo_root)

    def pick(explicit: Any, key: str, default: Any) -> Any:
        if explicit is not None:
            return explicit
        return file_cfg.get(key, default)

    resolved_services = normalize_path(str(pick(services_dir, "services_dir", config.DEFAULT_SERVICES_DIR)))
    if not resolved_services:
        raise ConfigurationError("services_dir must not be empty")

    resolved_shared = tuple(split_list(pick(shared_dirs, "shared_dirs", config.DEFAULT_SHARED_DIRS)))
    extensions = tuple(
        ext if ext.startswith(".") else f".{ext}"
        for ext in split_list(file_cfg.get("source_extensions", config.DEFAULT_SOURCE_EXTENSIONS))
    )

    try:
        resolved_workers = int(pick(workers, "workers", config.DEFAULT_WORKERS))
        resolved_timeout = float(pick(timeout, "timeout", config.DEFAULT_TIMEOUT))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc

    if resolved_workers < 1:
        raise ConfigurationError("workers must be at least 1")
    if resolved_timeout <= 0:
        raise ConfigurationError("timeout must be positive")

    return Settings(
        repo_root=repo_root,
        services_dir=resolved_services,
        shared_dirs=resolved_shared,
        source_extensions=extensions,
        workers=resolved_workers,
        timeout=resolved_timeout,
        strict=bool(pick(strict, "strict", False)),
    )
