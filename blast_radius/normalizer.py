"""Maps change input onto the set of changed packages."""

from __future__ import annotations

import logging
import posixpath
from typing import FrozenSet, Iterable, Sequence

from . import config
from .packages import is_path_ancestor, normalize_path, qualify, split_list

logger = logging.getLogger(__name__)


def parse_package_list(value: str | Iterable[str] | None) -> list:
    """Split the comma-separated ``--packages`` form into package fragments."""
    return split_list(value)


class ChangeNormalizer:
    """Produces a ChangedPackageSet from explicit packages or changed files."""

    def __init__(
        self,
        module_root: str,
        shared_dirs: Sequence[str] = config.DEFAULT_SHARED_DIRS,
        source_extensions: Sequence[str] = config.DEFAULT_SOURCE_EXTENSIONS,
    ):
        self.module_root = module_root
        self.shared_dirs = [d for d in (normalize_path(s) for s in shared_dirs) if d]
        self.source_extensions = tuple(source_extensions)

    def from_explicit(self, packages: Iterable[str]) -> FrozenSet[str]:
        """Qualify explicitly named packages without touching the file system."""
        changed = frozenset(qualify(self.module_root, pkg) for pkg in parse_package_list(list(packages)))
        logger.debug("Explicit packages: %s", sorted(changed))
        return changed

    def in_shared_root(self, path: str) -> bool:
        return any(is_path_ancestor(root, path) for root in self.shared_dirs)

    def from_changed_files(self, files: Iterable[str]) -> FrozenSet[str]:
        """Derive changed packages from a flat list of changed files.

        Only source files under a shared root count; each maps to its
        containing directory.
        """
        packages = set()
        for raw in files:
            path = normalize_path(raw)
            if not path or not self.in_shared_root(path):
                continue
            if posixpath.splitext(path)[1] not in self.source_extensions:
                continue
            directory = posixpath.dirname(path)
            if directory:
                packages.add(qualify(self.module_root, directory))

        if not packages:
            logger.info("No changes in shared directories")
        return frozenset(packages)
