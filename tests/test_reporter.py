"""Tests for the impact and changelog renderers."""

import json
from datetime import datetime, timezone

import pytest

from blast_radius.models import DIRECT_CHANGE, Changelog, CommitRecord, FullMap, ImpactResult
from blast_radius.reporter import ChangelogRenderer, Reporter

from conftest import MODULE, pkg


@pytest.fixture
def result():
    return ImpactResult(
        affected={
            "billing": [pkg("shared/auth")],
            "orders": [pkg("shared/auth"), pkg("shared/models"), DIRECT_CHANGE],
        },
        changed_packages=[pkg("shared/auth"), pkg("shared/models")],
    )


@pytest.fixture
def full_map():
    return FullMap(
        forward={
            "billing": [],
            "orders": [pkg("shared/auth"), pkg("shared/models")],
        },
        reverse={
            pkg("shared/auth"): ["orders"],
            pkg("shared/models"): ["orders"],
        },
    )


class TestReporter:
    """Tests for the impact reporter."""

    def test_list(self, result):
        assert Reporter(MODULE).render(result) == "billing\norders"

    def test_list_empty(self):
        assert Reporter(MODULE).render(ImpactResult(), "list") == ""

    def test_json(self, result):
        assert json.loads(Reporter(MODULE).render(result, "json")) == ["billing", "orders"]

    def test_json_empty(self):
        assert Reporter(MODULE).render(ImpactResult(), "json") == "[]"

    def test_detail(self, result):
        output = Reporter(MODULE).render(result, "detail")
        assert output.splitlines() == [
            "=== billing ===",
            f"  ← {pkg('shared/auth')}",
            "",
            "=== orders ===",
            f"  ← {pkg('shared/auth')}",
            f"  ← {pkg('shared/models')}",
            f"  ← {DIRECT_CHANGE}",
        ]

    def test_format_is_case_insensitive(self, result):
        assert Reporter(MODULE).render(result, "JSON") == '["billing", "orders"]'

    def test_unknown_format(self, result):
        with pytest.raises(ValueError, match="Unknown format"):
            Reporter(MODULE).render(result, "yaml")

    def test_full_map_text(self, full_map):
        output = Reporter(MODULE).render_full_map(full_map)
        assert output.startswith("=== Full Dependency Map ===")
        assert "[billing]\n  (no shared dependencies)" in output
        assert f"[orders]\n  → {pkg('shared/auth')}\n  → {pkg('shared/models')}" in output
        assert "=== Reverse Map (shared package → consumers) ===" in output
        assert "[shared/auth] (1 consumers)\n  ← orders" in output

    def test_full_map_json(self, full_map):
        data = json.loads(Reporter(MODULE).render_full_map_json(full_map))
        assert data["services"]["billing"] == []
        assert data["consumers"]["shared/models"] == {
            "package": pkg("shared/models"),
            "count": 1,
            "services": ["orders"],
        }


def make_changelog(service="billing"):
    commits = {
        "breaking": [
            CommitRecord("a" * 40, "aaaaaaa", "Ann", "ann@x.io", "2024-05-01",
                         "feat!: drop v1 API", "breaking", "both", ("shared/models",)),
        ],
        "fix": [
            CommitRecord("b" * 40, "bbbbbbb", "Bob", "bob@x.io", "2024-05-02",
                         "fix: nil pointer", "fix", "service", ()),
        ],
    }
    return Changelog(
        from_ref="billing/v1.2.3",
        to_ref="billing/v1.2.4",
        generated_at=datetime(2024, 5, 3, 12, 0, tzinfo=timezone.utc),
        service=service,
        commits_by_category=commits,
        breaking_details={"aaaaaaa": ["removed exports: func Legacy"]},
        stats=" 3 files changed, 10 insertions(+), 4 deletions(-)",
    )


class TestChangelogRenderer:
    """Tests for the changelog renderer."""

    def test_text(self):
        output = ChangelogRenderer().render(make_changelog(), "text")
        assert "  Changelog: billing" in output
        assert "  billing/v1.2.3 → billing/v1.2.4" in output
        assert "Total commits: 2" in output
        assert "── BREAKING CHANGES ──" in output
        assert "  aaaaaaa  feat!: drop v1 API [+shared: shared/models]" in output
        assert "  bbbbbbb  fix: nil pointer\n" in output
        assert "    → shared/models" in output
        assert "  aaaaaaa: removed exports: func Legacy" in output
        assert "3 files changed" in output

    def test_text_categories_follow_order(self):
        output = ChangelogRenderer().render_text(make_changelog())
        assert output.index("BREAKING CHANGES") < output.index("Bug Fixes")

    def test_text_without_stats(self):
        output = ChangelogRenderer(include_stats=False).render_text(make_changelog())
        assert "File Change Summary" not in output

    def test_text_without_service(self):
        output = ChangelogRenderer().render_text(make_changelog(service=None))
        assert "  Changelog\n" in output
        assert "Shared Dependency Changes" not in output

    def test_markdown(self):
        output = ChangelogRenderer().render(make_changelog(), "md")
        assert output.startswith("# Changelog: `billing`")
        assert "**billing/v1.2.3** → **billing/v1.2.4** | 2024-05-03 | 2 commits" in output
        assert "## 🐛 Bug Fixes" in output
        assert "- `aaaaaaa` feat!: drop v1 API `+shared: shared/models` — *Ann*" in output
        assert "## 🔗 Shared Dependency Impact" in output
        assert "<summary>📊 Change Statistics</summary>" in output

    def test_json(self):
        data = json.loads(ChangelogRenderer().render(make_changelog(), "json"))
        assert data["service"] == "billing"
        assert data["from"] == "billing/v1.2.3"
        assert data["generated"] == "2024-05-03T12:00:00Z"
        assert data["total_commits"] == 2
        assert list(data["categories"]) == ["breaking", "fix"]
        assert data["categories"]["breaking"][0]["shared_packages"] == ["shared/models"]
        assert "shared_packages" not in data["categories"]["fix"][0]
        assert data["affected_shared_packages"] == ["shared/models"]
        assert data["has_breaking_changes"] is True

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            ChangelogRenderer().render(make_changelog(), "html")
