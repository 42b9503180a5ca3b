"""Scoped changelog between two refs, for one service or the whole repo."""

from __future__ import annotations

import logging
import re
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from . import config
from .change_source import GitChangeSource
from .errors import ChangeSourceError
from .models import Changelog, CommitRecord
from .packages import is_path_ancestor, normalize_path

logger = logging.getLogger(__name__)

CATEGORY_ORDER = ("breaking", "feat", "fix", "perf", "refactor", "revert", "chore", "docs", "test", "other")

LOG_FORMAT = "%H|%h|%an|%ae|%ad|%s"

_PREFIXES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("feat", ("feat",)),
    ("fix", ("fix", "bugfix", "hotfix")),
    ("refactor", ("refactor",)),
    ("perf", ("perf",)),
    ("docs", ("docs", "doc")),
    ("test", ("test", "tests")),
    ("chore", ("chore", "ci", "build")),
    ("revert", ("revert",)),
)

_KEYWORDS: Tuple[Tuple[str, re.Pattern], ...] = (
    ("feat", re.compile(r"\b(add|implement|introduce|support|new)\b")),
    ("fix", re.compile(r"\b(fix|resolve|correct|patch|bug)\b")),
    ("chore", re.compile(r"\b(update|upgrade|bump|migrate)\b")),
    ("refactor", re.compile(r"\b(refactor|clean|reorganize|restructure)\b")),
    ("perf", re.compile(r"\b(perf|optimize|speed|fast|slow)\b")),
)

_EXPORT_DECL = re.compile(r"\bfunc [A-Z][A-Za-z0-9]*|type [A-Z][A-Za-z0-9]*")
_EXPORT_SIGNATURE = re.compile(r"func [A-Z][A-Za-z0-9]*\([^)]*\)")
_FUNC_NAME = re.compile(r"func [A-Z][A-Za-z0-9]*")
_STRUCT_FIELD = re.compile(r"^-\s+[A-Z][A-Za-z0-9]*\s")


def categorize_commit(subject: str) -> str:
    """Classify a commit subject using conventional-commit prefixes.

    Subjects mentioning "breaking" or carrying a ``!`` are breaking. Commits
    without a recognised prefix fall back to keyword heuristics.
    """
    lower = subject.lower()
    if "breaking" in lower or "!" in lower:
        return "breaking"

    for category, prefixes in _PREFIXES:
        for prefix in prefixes:
            if lower.startswith(prefix + ":") or lower.startswith(prefix + "("):
                return category

    for category, pattern in _KEYWORDS:
        if pattern.search(lower):
            return category
    return "other"


def classify_scope(
    files: Sequence[str],
    service: Optional[str],
    services_dir: str = config.DEFAULT_SERVICES_DIR,
    shared_dirs: Sequence[str] = config.DEFAULT_SHARED_DIRS,
) -> Tuple[str, Tuple[str, ...]]:
    """Classify which area a commit touched.

    Returns:
        ``(scope, shared_areas)`` where scope is ``both``, ``shared`` or
        ``service`` when a service is given, and ``repo`` otherwise.
    """
    if not service:
        return "repo", ()

    service_root = f"{normalize_path(services_dir)}/{service}"
    touched_service = False
    areas: List[str] = []
    for raw in files:
        path = normalize_path(raw)
        if is_path_ancestor(service_root, path):
            touched_service = True
        for shared in shared_dirs:
            if is_path_ancestor(normalize_path(shared), path) and path != normalize_path(shared):
                area = "/".join(path.split("/")[:2])
                if area not in areas:
                    areas.append(area)

    if touched_service and areas:
        return "both", tuple(areas)
    if areas:
        return "shared", tuple(areas)
    return "service", ()


def detect_breaking_changes(diff_text: str) -> List[str]:
    """Heuristically spot API breaks in a Go diff."""
    indicators = []
    removed = [line for line in diff_text.splitlines() if line.startswith("-") and not line.startswith("---")]

    removed_exports = [m for line in removed for m in _EXPORT_DECL.findall(line)]
    if removed_exports:
        indicators.append(f"removed exports: {', '.join(removed_exports[:3])}")

    signatures = [
        m
        for line in diff_text.splitlines()
        if re.match(r"^[-+]func.*\(", line)
        for m in _EXPORT_SIGNATURE.findall(line)
    ]
    names = Counter(_FUNC_NAME.match(sig).group(0) for sig in signatures)
    changed = sorted(name for name, count in names.items() if count > 1)
    if changed:
        indicators.append(f"changed signatures: {', '.join(changed)}")

    if any(_STRUCT_FIELD.match(line) for line in removed):
        indicators.append("possible removed struct fields")
    return indicators


def parse_log(output: str) -> List[Tuple[str, str, str, str, str, str]]:
    """Split ``git log`` lines produced with LOG_FORMAT into fields."""
    entries = []
    for line in output.splitlines():
        if not line.strip():
            continue
        parts = line.split("|", 5)
        if len(parts) != 6:
            logger.debug("Skipping malformed log line: %r", line)
            continue
        entries.append(tuple(parts))
    return entries


class ChangelogBuilder:
    """Collects and classifies the commits between two refs."""

    def __init__(
        self,
        repo_root: Path,
        services_dir: str = config.DEFAULT_SERVICES_DIR,
        shared_dirs: Sequence[str] = config.DEFAULT_SHARED_DIRS,
        git: Optional[GitChangeSource] = None,
        timeout: float = config.DEFAULT_TIMEOUT,
    ):
        self.repo_root = Path(repo_root)
        self.services_dir = normalize_path(services_dir)
        self.shared_dirs = [d for d in (normalize_path(s) for s in shared_dirs) if d]
        self.git = git or GitChangeSource(self.repo_root, timeout=timeout)

    def path_filters(self, service: Optional[str]) -> List[str]:
        if not service:
            return []
        filters = [f"{self.services_dir}/{service}/"]
        filters += [f"{d}/" for d in self.shared_dirs if (self.repo_root / d).is_dir()]
        return filters

    def _breaking_for(self, commit: str, filters: List[str]) -> List[str]:
        try:
            diff = self.git.commit_diff(commit, filters)
        except ChangeSourceError as exc:
            # Root commits have no parent to diff against.
            logger.warning("Cannot diff %s: %s", commit, exc)
            return []
        return detect_breaking_changes(diff)

    def build(
        self,
        from_ref: str,
        to_ref: str = config.DEFAULT_HEAD_REF,
        service: Optional[str] = None,
        include_breaking: bool = True,
        include_stats: bool = True,
    ) -> Changelog:
        filters = self.path_filters(service)
        logger.info("Path filters: %s", " ".join(filters) or "<all>")

        by_category: Dict[str, List[CommitRecord]] = {}
        breaking: Dict[str, List[str]] = {}

        entries = parse_log(self.git.log(from_ref, to_ref, LOG_FORMAT, filters))
        for full_hash, short_hash, author, email, date, subject in entries:
            category = categorize_commit(subject)
            if service:
                files = self.git.files_in_commit(full_hash)
            else:
                files = []
            scope, areas = classify_scope(files, service, self.services_dir, self.shared_dirs)

            record = CommitRecord(
                hash=full_hash,
                short_hash=short_hash,
                author=author,
                email=email,
                date=date,
                subject=subject,
                category=category,
                scope=scope,
                shared_areas=areas,
            )
            by_category.setdefault(category, []).append(record)

            if include_breaking and (category == "breaking" or scope in ("shared", "both")):
                indicators = self._breaking_for(full_hash, filters)
                if indicators:
                    breaking[short_hash] = indicators

        logger.info("Found %d commits", len(entries))

        stats = self.git.diff_stat(from_ref, to_ref, filters) if include_stats else ""
        return Changelog(
            from_ref=from_ref,
            to_ref=to_ref,
            generated_at=datetime.now(timezone.utc),
            service=service,
            commits_by_category={c: by_category[c] for c in CATEGORY_ORDER if c in by_category},
            breaking_details=breaking,
            stats=stats.rstrip("\n"),
        )
