"""Builds the service -> internal package dependency map."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, FrozenSet, Iterable, List

from . import config
from .errors import ResolverError
from .models import DependencyMap, ResolverWarning, Service
from .packages import is_path_ancestor, qualify
from .resolver import PackageResolver

logger = logging.getLogger(__name__)


class DependencyMapBuilder:
    """Resolves every service concurrently and keeps same-module packages.

    Each service is resolved independently in a bounded thread pool. Results
    are collected in the calling thread and re-ordered by service name, so the
    map is identical regardless of completion order.
    """

    def __init__(
        self,
        resolver: PackageResolver,
        module_root: str,
        services_dir: str = config.DEFAULT_SERVICES_DIR,
        workers: int = config.DEFAULT_WORKERS,
        strict: bool = False,
    ):
        self.resolver = resolver
        self.module_root = module_root
        self.services_dir = services_dir
        self.workers = max(1, workers)
        self.strict = strict

    def service_package(self, service: Service) -> str:
        return qualify(self.module_root, f"{self.services_dir}/{service.name}")

    def filter_packages(self, service: Service, packages: Iterable[str]) -> FrozenSet[str]:
        """Keep packages of this module that are not rooted in the service itself."""
        own = self.service_package(service)
        prefix = self.module_root + "/"
        return frozenset(
            pkg for pkg in packages
            if pkg.startswith(prefix) and not is_path_ancestor(own, pkg)
        )

    def _resolve_one(self, service: Service) -> FrozenSet[str]:
        return self.filter_packages(service, self.resolver.resolve(service))

    def build(self, services: List[Service]) -> DependencyMap:
        logger.info("Building dependency map for %d services...", len(services))
        collected: Dict[str, FrozenSet[str]] = {}
        warnings: List[ResolverWarning] = []

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures = {pool.submit(self._resolve_one, svc): svc for svc in services}
            for future in as_completed(futures):
                svc = futures[future]
                try:
                    deps = future.result()
                except ResolverError as exc:
                    logger.warning("Dependency resolution failed for %s: %s", svc.name, exc.message)
                    warnings.append(ResolverWarning(svc.name, exc.message))
                    deps = frozenset()
                collected[svc.name] = deps
                logger.debug("  %s depends on %d internal packages", svc.name, len(deps))

        warnings.sort(key=lambda w: w.service)
        if warnings and self.strict:
            failed = ", ".join(w.service for w in warnings)
            raise ResolverError(failed, "; ".join(w.message for w in warnings))

        ordered = sorted(services)
        return DependencyMap(
            services=ordered,
            deps={svc.name: collected.get(svc.name, frozenset()) for svc in ordered},
            warnings=warnings,
        )
