"""Renders impact results in list, json, detail and full-map formats."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import List, Tuple

from .models import Changelog, CommitRecord, FullMap, ImpactResult
from .packages import short_name

FORMATS = ("list", "json", "detail")


@dataclass(frozen=True)
class ReportStyle:
    """Presentation knobs for the reporter."""
    forward_arrow: str = "→"
    reverse_arrow: str = "←"
    indent: str = "  "
    no_deps_text: str = "(no shared dependencies)"
    map_title: str = "=== Full Dependency Map ==="
    reverse_title: str = "=== Reverse Map (shared package → consumers) ==="


class Reporter:
    """Turns core results into text; no analysis happens here."""

    def __init__(self, module_root: str = "", style: ReportStyle | None = None):
        self.module_root = module_root
        self.style = style or ReportStyle()

    def render(self, result: ImpactResult, fmt: str = "list") -> str:
        fmt = fmt.lower()
        if fmt == "json":
            return self.render_json(result)
        if fmt == "detail":
            return self.render_detail(result)
        if fmt == "list":
            return self.render_list(result)
        raise ValueError(f"Unknown format '{fmt}'. Expected one of: {', '.join(FORMATS)}")

    def render_list(self, result: ImpactResult) -> str:
        return "\n".join(result.services)

    def render_json(self, result: ImpactResult) -> str:
        return self.render_json_list(result.services)

    @staticmethod
    def render_json_list(services: List[str]) -> str:
        return json.dumps(list(services))

    def render_detail(self, result: ImpactResult) -> str:
        s = self.style
        lines: List[str] = []
        for service, causes in result.affected.items():
            lines.append(f"=== {service} ===")
            for cause in causes:
                lines.append(f"{s.indent}{s.reverse_arrow} {cause}")
            lines.append("")
        return "\n".join(lines).rstrip("\n")

    def render_full_map(self, full_map: FullMap) -> str:
        s = self.style
        lines = [s.map_title, ""]
        for service, deps in full_map.forward.items():
            lines.append(f"[{service}]")
            if deps:
                lines.extend(f"{s.indent}{s.forward_arrow} {dep}" for dep in deps)
            else:
                lines.append(f"{s.indent}{s.no_deps_text}")
            lines.append("")

        lines += [s.reverse_title, ""]
        for pkg, consumers in full_map.reverse.items():
            lines.append(f"[{short_name(self.module_root, pkg)}] ({len(consumers)} consumers)")
            lines.extend(f"{s.indent}{s.reverse_arrow} {svc}" for svc in consumers)
            lines.append("")
        return "\n".join(lines).rstrip("\n")

    def render_full_map_json(self, full_map: FullMap) -> str:
        payload = {
            "services": full_map.forward,
            "consumers": {
                short_name(self.module_root, pkg): {
                    "package": pkg,
                    "count": len(consumers),
                    "services": consumers,
                }
                for pkg, consumers in full_map.reverse.items()
            },
        }
        return json.dumps(payload, indent=2)


CHANGELOG_FORMATS = ("text", "markdown", "md", "json")


@dataclass(frozen=True)
class ChangelogStyle:
    """Category labels for each changelog flavour."""
    labels: Tuple[Tuple[str, str], ...] = (
        ("breaking", "⚠️  Breaking Changes"),
        ("feat", "✨ Features"),
        ("fix", "🐛 Bug Fixes"),
        ("perf", "⚡ Performance"),
        ("refactor", "♻️  Refactors"),
        ("revert", "⏪ Reverts"),
        ("chore", "🔧 Chores"),
        ("docs", "📝 Documentation"),
        ("test", "✅ Tests"),
        ("other", "📦 Other"),
    )
    plain_labels: Tuple[Tuple[str, str], ...] = (
        ("breaking", "BREAKING CHANGES"),
        ("feat", "Features"),
        ("fix", "Bug Fixes"),
        ("perf", "Performance"),
        ("refactor", "Refactors"),
        ("revert", "Reverts"),
        ("chore", "Chores"),
        ("docs", "Documentation"),
        ("test", "Tests"),
        ("other", "Other"),
    )
    rule: str = "═" * 56

    def label(self, category: str, plain: bool = False) -> str:
        return dict(self.plain_labels if plain else self.labels).get(category, category)


class ChangelogRenderer:
    """Renders a Changelog as text, markdown or json."""

    def __init__(self, style: ChangelogStyle | None = None, include_stats: bool = True):
        self.style = style or ChangelogStyle()
        self.include_stats = include_stats

    def render(self, changelog: Changelog, fmt: str = "text") -> str:
        fmt = fmt.lower()
        if fmt in ("markdown", "md"):
            return self.render_markdown(changelog)
        if fmt == "json":
            return self.render_json(changelog)
        if fmt == "text":
            return self.render_text(changelog)
        raise ValueError(f"Unknown format '{fmt}'. Expected one of: {', '.join(CHANGELOG_FORMATS)}")

    @staticmethod
    def _scope_tag(commit: CommitRecord, shared: str, both: str) -> str:
        areas = ",".join(commit.shared_areas)
        if commit.scope == "shared":
            return shared.format(areas)
        if commit.scope == "both":
            return both.format(areas)
        return ""

    def render_text(self, changelog: Changelog) -> str:
        title = f"Changelog: {changelog.service}" if changelog.service else "Changelog"
        lines = [
            self.style.rule,
            f"  {title}",
            f"  {changelog.from_ref} → {changelog.to_ref}",
            f"  {changelog.generated_at:%Y-%m-%d}",
            self.style.rule,
            "",
            f"Total commits: {changelog.total_commits}",
            "",
        ]

        for category, commits in changelog.commits_by_category.items():
            lines += [f"── {self.style.label(category, plain=True)} ──", ""]
            for commit in commits:
                tag = self._scope_tag(commit, " [shared: {}]", " [+shared: {}]")
                lines.append(f"  {commit.short_hash}  {commit.subject}{tag}")
                lines.append(f"           — {commit.author}, {commit.date}")
            lines.append("")

        if changelog.service and changelog.shared_commits:
            lines += [
                "── Shared Dependency Changes ──",
                "",
                f"  The following commits modified shared packages that {changelog.service} depends on.",
                "  Review these carefully for backward compatibility.",
                "",
                "  Affected shared packages:",
            ]
            lines += [f"    → {pkg}" for pkg in changelog.shared_packages]
            lines.append("")

        if changelog.breaking_details:
            lines += ["── Breaking Change Details ──", ""]
            for short_hash, indicators in changelog.breaking_details.items():
                lines.append(f"  {short_hash}: {'; '.join(indicators)}")
            lines.append("")

        if self.include_stats and changelog.stats:
            lines += ["── File Change Summary ──", "", f"  {changelog.stats.splitlines()[-1].strip()}", ""]
        return "\n".join(lines).rstrip("\n")

    def render_markdown(self, changelog: Changelog) -> str:
        title = f"Changelog: `{changelog.service}`" if changelog.service else "Changelog"
        lines = [
            f"# {title}",
            "",
            f"**{changelog.from_ref}** → **{changelog.to_ref}** | "
            f"{changelog.generated_at:%Y-%m-%d} | {changelog.total_commits} commits",
            "",
        ]

        for category, commits in changelog.commits_by_category.items():
            lines += [f"## {self.style.label(category)}", ""]
            for commit in commits:
                badge = self._scope_tag(commit, " `shared: {}`", " `+shared: {}`")
                lines.append(f"- `{commit.short_hash}` {commit.subject}{badge} — *{commit.author}*")
            lines.append("")

        if changelog.service and changelog.shared_commits:
            lines += [
                "## 🔗 Shared Dependency Impact",
                "",
                f"> These commits modified shared packages consumed by `{changelog.service}`.",
                "> Review for backward compatibility before deploying.",
                "",
                "**Affected packages:**",
            ]
            lines += [f"- `{pkg}`" for pkg in changelog.shared_packages]
            lines.append("")

        if changelog.breaking_details:
            lines += ["## ⚠️ Breaking Change Analysis", "", "```"]
            for short_hash, indicators in changelog.breaking_details.items():
                lines.append(f"{short_hash}: {'; '.join(indicators)}")
            lines += ["```", ""]

        if self.include_stats and changelog.stats:
            lines += [
                "<details>",
                "<summary>📊 Change Statistics</summary>",
                "",
                "```",
                changelog.stats,
                "```",
                "",
                "</details>",
            ]
        return "\n".join(lines).rstrip("\n")

    def render_json(self, changelog: Changelog) -> str:
        categories = {}
        for category, commits in changelog.commits_by_category.items():
            items = []
            for commit in commits:
                item = {
                    "hash": commit.short_hash,
                    "author": commit.author,
                    "date": commit.date,
                    "subject": commit.subject,
                    "scope": commit.scope,
                }
                if commit.shared_areas:
                    item["shared_packages"] = list(commit.shared_areas)
                items.append(item)
            categories[category] = items

        payload = {
            "service": changelog.service,
            "from": changelog.from_ref,
            "to": changelog.to_ref,
            "generated": changelog.generated_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "total_commits": changelog.total_commits,
            "categories": categories,
            "affected_shared_packages": changelog.shared_packages,
            "has_breaking_changes": changelog.has_breaking_changes,
        }
        return json.dumps(payload, indent=2, ensure_ascii=False)
