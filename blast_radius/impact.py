"""Change-impact reachability over the dependency map."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence, Set

from . import config
from .errors import NoServicesFoundError
from .models import DIRECT_CHANGE, DependencyMap, FullMap, ImpactResult
from .packages import any_descendant, is_path_ancestor, normalize_path, qualify

logger = logging.getLogger(__name__)


class ImpactResolver:
    """Computes affected services and the forward/reverse dependency views.

    A service is affected by a changed package ``P`` when ``P`` equals, or is
    a path ancestor of, one of the packages the service depends on. A coarse
    change such as ``shared`` therefore reaches every consumer of
    ``shared/models``. Changed files under a service's own directory mark it
    affected regardless of the graph.
    """

    def __init__(
        self,
        module_root: str,
        services_dir: str = config.DEFAULT_SERVICES_DIR,
        shared_dirs: Sequence[str] = config.DEFAULT_SHARED_DIRS,
    ):
        self.module_root = module_root
        self.services_dir = normalize_path(services_dir)
        self.shared_roots = [
            qualify(module_root, d) for d in (normalize_path(s) for s in shared_dirs) if d
        ]

    def _service_dir(self, service: str) -> str:
        return f"{self.services_dir}/{service}"

    def directly_changed(self, dependency_map: DependencyMap, changed_files: Iterable[str]) -> Set[str]:
        """Return services whose own files appear in ``changed_files``."""
        files = [normalize_path(f) for f in changed_files]
        return {
            name for name in dependency_map.service_names
            if any_descendant(self._service_dir(name), files)
        }

    def resolve(
        self,
        dependency_map: DependencyMap,
        changed_packages: Iterable[str],
        direct_changes: Iterable[str] = (),
    ) -> ImpactResult:
        if not dependency_map.services:
            raise NoServicesFoundError("no services discovered; nothing to analyze.")

        changed = sorted(set(changed_packages))
        direct = self.directly_changed(dependency_map, direct_changes)

        affected: Dict[str, List[str]] = {}
        for name in dependency_map.service_names:
            deps = dependency_map.dependencies(name)
            causes = [pkg for pkg in changed if any_descendant(pkg, deps)]
            if name in direct:
                causes.append(DIRECT_CHANGE)
            if causes:
                affected[name] = causes

        logger.info("%d of %d services affected", len(affected), len(dependency_map.services))
        return ImpactResult(
            affected=affected,
            changed_packages=changed,
            warnings=list(dependency_map.warnings),
        )

    def is_shared(self, package: str) -> bool:
        return any(is_path_ancestor(root, package) for root in self.shared_roots)

    def reverse_index(self, dependency_map: DependencyMap) -> Dict[str, List[str]]:
        """Shared package -> sorted consumer services.

        Consumers use the same rule as :meth:`resolve`, so a package lists
        every service that depends on it or on anything below it.
        """
        shared: Set[str] = {
            pkg
            for name in dependency_map.service_names
            for pkg in dependency_map.dependencies(name)
            if self.is_shared(pkg)
        }
        return {pkg: self.consumers(dependency_map, pkg) for pkg in sorted(shared)}

    def full_map(self, dependency_map: DependencyMap) -> FullMap:
        if not dependency_map.services:
            raise NoServicesFoundError("no services discovered; nothing to analyze.")
        forward = {
            name: sorted(dependency_map.dependencies(name))
            for name in dependency_map.service_names
        }
        return FullMap(
            forward=forward,
            reverse=self.reverse_index(dependency_map),
            warnings=list(dependency_map.warnings),
        )

    def consumers(self, dependency_map: DependencyMap, package: str) -> List[str]:
        """Services depending on ``package`` or on anything below it."""
        package = qualify(self.module_root, package)
        return [
            name for name in dependency_map.service_names
            if any_descendant(package, dependency_map.dependencies(name))
        ]
