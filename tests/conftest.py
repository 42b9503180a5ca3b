"""Pytest configuration and fixtures for blast-radius tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Dict, Generator, Iterable, List, Optional, Sequence

import pytest

from blast_radius.change_source import ChangeSource
from blast_radius.errors import ChangeSourceError, ResolverError
from blast_radius.models import DependencyMap, Service
from blast_radius.resolver import PackageResolver

MODULE = "github.com/acme/shop"


def pkg(path: str) -> str:
    """Qualify a module-relative package path."""
    return f"{MODULE}/{path}"


class FakeResolver(PackageResolver):
    """Resolver returning canned ``go list -deps`` output per service."""

    def __init__(self, deps: Dict[str, List[str]], failing: Iterable[str] = ()):
        self.deps = deps
        self.failing = set(failing)
        self.calls: List[str] = []

    def resolve(self, service: Service) -> List[str]:
        self.calls.append(service.name)
        if service.name in self.failing:
            raise ResolverError(service.name, "go list failed: build constraints exclude all Go files")
        return list(self.deps.get(service.name, []))


class FakeChangeSource(ChangeSource):
    """Change source returning a fixed file list and recording each call."""

    def __init__(self, files: Sequence[str] = ()):
        self.files = list(files)
        self.calls: List[tuple] = []

    def list_changed_files(self, base_ref, head_ref, paths: Optional[Sequence[str]] = None) -> List[str]:
        self.calls.append((base_ref, head_ref, tuple(paths or ())))
        if not paths:
            return list(self.files)
        return [f for f in self.files if any(f.startswith(p.rstrip("/") + "/") for p in paths)]


class FakeGit:
    """Stands in for GitChangeSource with canned log, files and diffs."""

    def __init__(self, log="", files=None, diffs=None, stat=""):
        self.log_output = log
        self.files = files or {}
        self.diffs = diffs or {}
        self.stat = stat
        self.log_calls = []
        self.stat_calls = []

    def log(self, from_ref, to_ref, pretty, paths=None):
        self.log_calls.append((from_ref, to_ref, list(paths or [])))
        return self.log_output

    def files_in_commit(self, commit):
        return self.files.get(commit, [])

    def commit_diff(self, commit, paths=None):
        if commit not in self.diffs:
            raise ChangeSourceError(f"git diff failed: unknown revision {commit}~1")
        return self.diffs[commit]

    def diff_stat(self, from_ref, to_ref, paths=None):
        self.stat_calls.append((from_ref, to_ref))
        return self.stat


def write_file(root: Path, rel: str, content: str = "package main\n") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def make_dependency_map(deps: Dict[str, Iterable[str]], root: Path = Path("services")) -> DependencyMap:
    """Build a DependencyMap directly from short package names."""
    services = sorted(Service(name=name, root=root / name) for name in deps)
    return DependencyMap(
        services=services,
        deps={svc.name: frozenset(pkg(p) for p in deps[svc.name]) for svc in services},
    )


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_repo(temp_dir: Path) -> Path:
    """A small Go monorepo with four services and two shared trees.

    orders     main.go at the top level
    billing    cmd/main.go
    inventory  cmd/api/main.go
    docs       no Go entry point (not a service)
    """
    write_file(temp_dir, "go.mod", f"module {MODULE}\n\ngo 1.22\n")
    write_file(temp_dir, "services/orders/main.go")
    write_file(temp_dir, "services/orders/handlers/orders.go", "package handlers\n")
    write_file(temp_dir, "services/billing/cmd/main.go")
    write_file(temp_dir, "services/billing/handler.go", "package billing\n")
    write_file(temp_dir, "services/inventory/cmd/api/main.go")
    write_file(temp_dir, "services/docs/README.md", "# docs\n")
    write_file(temp_dir, "shared/models/order.go", "package models\n")
    write_file(temp_dir, "shared/auth/token.go", "package auth\n")
    write_file(temp_dir, "pkg/metrics/metrics.go", "package metrics\n")
    return temp_dir


@pytest.fixture
def sample_deps() -> Dict[str, List[str]]:
    """Raw resolver output for the sample repo, including noise to filter."""
    return {
        "orders": [
            "fmt",
            "net/http",
            "github.com/google/uuid",
            pkg("services/orders"),
            pkg("services/orders/handlers"),
            pkg("shared/models"),
            pkg("shared/auth"),
        ],
        "billing": [
            "context",
            pkg("services/billing/cmd"),
        ],
        "inventory": [
            pkg("services/inventory/cmd/api"),
            pkg("shared/models"),
            pkg("pkg/metrics"),
        ],
    }


@pytest.fixture
def fake_resolver(sample_deps) -> FakeResolver:
    return FakeResolver(sample_deps)


@pytest.fixture
def patch_collaborators(monkeypatch, sample_deps):
    """Replace the go and git collaborators used by the orchestrator.

    Returns a dict the test can fill with ``files`` (changed files) and
    ``failing`` (services whose resolution fails) before invoking the CLI.
    """
    state = {"files": [], "failing": [], "resolvers": [], "sources": []}

    def _resolver(repo_root, services_dir="services", timeout=120.0, **kwargs):
        resolver = FakeResolver(sample_deps, failing=state["failing"])
        state["resolvers"].append(resolver)
        return resolver

    def _source(repo_root, timeout=120.0):
        source = FakeChangeSource(state["files"])
        state["sources"].append(source)
        return source

    monkeypatch.setattr("blast_radius.orchestrator.GoPackageResolver", _resolver)
    monkeypatch.setattr("blast_radius.orchestrator.GitChangeSource", _source)
    return state
