"""Package resolution through the Go toolchain."""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from . import config
from .errors import ConfigurationError, ResolverError
from .models import Service

logger = logging.getLogger(__name__)


def read_module_root(repo_root: Path) -> str:
    """Return the module path declared in ``go.mod``.

    Raises:
        ConfigurationError: If ``go.mod`` is missing or has no module directive.
    """
    manifest = Path(repo_root) / config.MODULE_MANIFEST
    if not manifest.is_file():
        raise ConfigurationError(f"{config.MODULE_MANIFEST} not found in {repo_root}. Run from repo root.")

    for raw in manifest.read_text(encoding="utf-8").splitlines():
        line = raw.split("//", 1)[0].strip()
        if not line:
            continue
        parts = line.split()
        if parts[0] == "module" and len(parts) >= 2:
            return parts[1].strip('"`')
        break

    raise ConfigurationError(f"No module directive at the top of {manifest}")


def parse_go_list_output(output: str) -> List[str]:
    """Parse newline-separated import paths, ignoring blank lines."""
    return [line.strip() for line in output.splitlines() if line.strip()]


class PackageResolver(ABC):
    """Returns the transitive package imports of a service's build target."""

    @abstractmethod
    def resolve(self, service: Service) -> List[str]:
        """Return import paths, or raise ResolverError."""


class GoPackageResolver(PackageResolver):
    """Runs ``go list -deps`` for every package below a service directory."""

    def __init__(
        self,
        repo_root: Path,
        services_dir: str = config.DEFAULT_SERVICES_DIR,
        timeout: float = config.DEFAULT_TIMEOUT,
        go_binary: str = "go",
    ):
        self.repo_root = Path(repo_root)
        self.services_dir = services_dir
        self.timeout = timeout
        self.go_binary = go_binary

    def build_target(self, service: Service) -> str:
        return f"./{self.services_dir}/{service.name}/..."

    def resolve(self, service: Service) -> List[str]:
        target = self.build_target(service)
        cmd = [self.go_binary, "list", "-deps", target]
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                cwd=self.repo_root,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ResolverError(service.name, f"go list timed out after {exc.timeout}s") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip().splitlines()
            reason = detail[-1] if detail else f"exit status {exc.returncode}"
            raise ResolverError(service.name, f"go list failed: {reason}") from exc
        except OSError as exc:
            raise ResolverError(service.name, f"cannot run {self.go_binary}: {exc}") from exc

        return parse_go_list_output(result.stdout)
