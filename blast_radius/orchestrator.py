"""Orchestrator wiring discovery, resolution, normalization and impact."""

from __future__ import annotations

import logging
from typing import FrozenSet, List, Optional, Sequence, Tuple

from . import config
from .change_source import ChangeSource, GitChangeSource
from .config_manager import Settings
from .dependency_map import DependencyMapBuilder
from .errors import ConfigurationError
from .impact import ImpactResolver
from .models import DependencyMap, FullMap, ImpactResult, Service
from .normalizer import ChangeNormalizer
from .registry import ServiceRegistry
from .resolver import GoPackageResolver, PackageResolver, read_module_root

logger = logging.getLogger(__name__)


class BlastRadiusOrchestrator:
    """Coordinates one blast-radius run over a repository."""

    def __init__(
        self,
        settings: Settings,
        resolver: Optional[PackageResolver] = None,
        change_source: Optional[ChangeSource] = None,
    ):
        self.settings = settings
        if not settings.services_path.is_dir():
            raise ConfigurationError(f"services directory '{settings.services_dir}' not found.")
        self.module_root = read_module_root(settings.repo_root)
        logger.debug("Module root: %s", self.module_root)

        self.resolver = resolver or GoPackageResolver(
            settings.repo_root, settings.services_dir, timeout=settings.timeout
        )
        self.change_source = change_source or GitChangeSource(settings.repo_root, timeout=settings.timeout)
        self.registry = ServiceRegistry(settings.services_path, settings.source_extensions)
        self.normalizer = ChangeNormalizer(self.module_root, settings.shared_dirs, settings.source_extensions)
        self.impact = ImpactResolver(self.module_root, settings.services_dir, settings.shared_dirs)
        self._dependency_map: Optional[DependencyMap] = None

    def discover(self) -> List[Service]:
        return self.registry.discover()

    def dependency_map(self) -> DependencyMap:
        if self._dependency_map is None:
            builder = DependencyMapBuilder(
                self.resolver,
                self.module_root,
                services_dir=self.settings.services_dir,
                workers=self.settings.workers,
                strict=self.settings.strict,
            )
            self._dependency_map = builder.build(self.discover())
        return self._dependency_map

    def changes(
        self,
        packages: Optional[Sequence[str]] = None,
        base_ref: Optional[str] = None,
        head_ref: Optional[str] = None,
    ) -> Tuple[FrozenSet[str], List[str]]:
        """Return the changed packages and the changed files for direct detection.

        Explicit packages bypass git unless a base ref is also given, in which
        case git is still asked for the files changed under the services.
        """
        head = head_ref or config.DEFAULT_HEAD_REF
        if packages:
            changed = self.normalizer.from_explicit(packages)
            files = self.change_source.list_changed_files(base_ref, head) if base_ref else []
            return changed, files

        base = base_ref or config.DEFAULT_BASE_REF
        files = self.change_source.list_changed_files(base, head)
        if not files:
            logger.info("No changed files detected")
        return self.normalizer.from_changed_files(files), files

    def affected(
        self,
        packages: Optional[Sequence[str]] = None,
        base_ref: Optional[str] = None,
        head_ref: Optional[str] = None,
    ) -> ImpactResult:
        dep_map = self.dependency_map()
        changed, files = self.changes(packages, base_ref, head_ref)
        for pkg in sorted(changed):
            logger.info("Changed package: %s", pkg)
        return self.impact.resolve(dep_map, changed, files)

    def full_map(self) -> FullMap:
        return self.impact.full_map(self.dependency_map())

    def consumers(self, package: str) -> List[str]:
        return self.impact.consumers(self.dependency_map(), package)
