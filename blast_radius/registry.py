"""Service discovery from a services root directory."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Sequence

from . import config
from .errors import NoServicesFoundError
from .models import Service

logger = logging.getLogger(__name__)


def _is_buildable(path: Path, extensions: Sequence[str]) -> bool:
    if not path.is_file() or path.suffix not in extensions:
        return False
    # Go test files never produce a binary.
    return not path.name.endswith("_test.go")


def list_entry_candidates(
    service_dir: Path,
    extensions: Sequence[str] = config.DEFAULT_SOURCE_EXTENSIONS,
) -> List[Path]:
    """List the program entry points of a candidate service directory.

    Looks at top-level source files first, then files directly under the
    conventional ``cmd/`` directory, then ``cmd/<name>/main.go``.
    """
    service_dir = Path(service_dir)
    candidates = [p for p in sorted(service_dir.iterdir()) if _is_buildable(p, extensions)]

    cmd_dir = service_dir / config.COMMAND_DIR
    if cmd_dir.is_dir():
        for child in sorted(cmd_dir.iterdir()):
            if child.is_dir():
                main_file = child / "main.go"
                if _is_buildable(main_file, extensions):
                    candidates.append(main_file)
            elif _is_buildable(child, extensions):
                candidates.append(child)
    return candidates


class ServiceRegistry:
    """Discovers deployable services under a root directory."""

    def __init__(
        self,
        services_root: Path,
        extensions: Sequence[str] = config.DEFAULT_SOURCE_EXTENSIONS,
        entry_lister: Callable[..., List[Path]] = list_entry_candidates,
    ):
        self.services_root = Path(services_root)
        self.extensions = tuple(extensions)
        self.entry_lister = entry_lister

    def discover(self) -> List[Service]:
        """Return every qualifying service, sorted by name.

        Raises:
            NoServicesFoundError: If the root is missing or holds no service.
        """
        if not self.services_root.is_dir():
            raise NoServicesFoundError(f"services directory '{self.services_root}' not found.")

        services = []
        for child in sorted(self.services_root.iterdir()):
            if not child.is_dir() or child.name.startswith("."):
                continue
            if self.entry_lister(child, self.extensions):
                services.append(Service(name=child.name, root=child))
            else:
                logger.debug("Skipping %s: no entry point", child)

        if not services:
            raise NoServicesFoundError(f"no services found in '{self.services_root}'.")

        logger.info("Found %d services: %s", len(services), " ".join(s.name for s in services))
        return services
