"""Core data models shared by discovery, resolution, and reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional

DIRECT_CHANGE = "(direct changes)"


@dataclass(frozen=True, order=True)
class Service:
    """An independently deployable unit with its own entry point."""
    name: str
    root: Path = field(compare=False)


@dataclass(frozen=True)
class ResolverWarning:
    service: str
    message: str

    def __str__(self) -> str:
        return f"{self.service}: {self.message}"


@dataclass
class DependencyMap:
    """Service name -> transitive internal packages, ordered by service name."""
    services: List[Service]
    deps: Dict[str, FrozenSet[str]]
    warnings: List[ResolverWarning] = field(default_factory=list)

    def dependencies(self, service: str) -> FrozenSet[str]:
        return self.deps.get(service, frozenset())

    @property
    def service_names(self) -> List[str]:
        return [s.name for s in self.services]


@dataclass
class ImpactResult:
    """Affected services with the changes that caused each match."""
    affected: Dict[str, List[str]] = field(default_factory=dict)
    changed_packages: List[str] = field(default_factory=list)
    warnings: List[ResolverWarning] = field(default_factory=list)

    @property
    def services(self) -> List[str]:
        return list(self.affected)

    def causes(self, service: str) -> List[str]:
        return list(self.affected.get(service, []))

    def is_empty(self) -> bool:
        return not self.affected


@dataclass
class FullMap:
    """Forward dependency view plus the reverse index over shared packages."""
    forward: Dict[str, List[str]]
    reverse: Dict[str, List[str]]
    warnings: List[ResolverWarning] = field(default_factory=list)

    def consumer_count(self, package: str) -> int:
        return len(self.reverse.get(package, []))


@dataclass(frozen=True)
class CommitRecord:
    """One commit in a changelog, already classified."""
    hash: str
    short_hash: str
    author: str
    email: str
    date: str
    subject: str
    category: str
    scope: str
    shared_areas: tuple = ()


@dataclass
class Changelog:
    """Commits between two refs grouped by category."""
    from_ref: str
    to_ref: str
    generated_at: datetime
    service: Optional[str] = None
    commits_by_category: Dict[str, List[CommitRecord]] = field(default_factory=dict)
    breaking_details: Dict[str, List[str]] = field(default_factory=dict)
    stats: str = ""

    @property
    def total_commits(self) -> int:
        return sum(len(commits) for commits in self.commits_by_category.values())

    @property
    def shared_commits(self) -> List[CommitRecord]:
        return [
            c for commits in self.commits_by_category.values() for c in commits
            if c.scope in ("shared", "both")
        ]

    @property
    def shared_packages(self) -> List[str]:
        return sorted({area for c in self.shared_commits for area in c.shared_areas})

    @property
    def has_breaking_changes(self) -> bool:
        return bool(self.breaking_details)
