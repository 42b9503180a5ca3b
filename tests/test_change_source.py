"""Tests for the git change source."""

import subprocess
from pathlib import Path

import pytest

from blast_radius.change_source import GitChangeSource
from blast_radius.errors import ChangeSourceError
from blast_radius.normalizer import ChangeNormalizer

from conftest import MODULE, pkg


@pytest.fixture
def recorded(monkeypatch):
    calls = []
    outputs = {}

    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        return subprocess.CompletedProcess(cmd, 0, stdout=outputs.get(cmd[1], ""), stderr="")

    monkeypatch.setattr("blast_radius.change_source.subprocess.run", fake_run)
    return calls, outputs


def test_list_changed_files(temp_dir: Path, recorded):
    calls, outputs = recorded
    outputs["diff"] = "shared/models/order.go\0services/orders/main.go\0"

    files = GitChangeSource(temp_dir, timeout=7).list_changed_files("main", "HEAD")

    assert files == ["shared/models/order.go", "services/orders/main.go"]
    cmd, kwargs = calls[0]
    assert cmd == ["git", "diff", "--name-only", "-z", "main", "HEAD"]
    assert kwargs["cwd"] == temp_dir
    assert kwargs["timeout"] == 7


def test_path_filters_are_appended(temp_dir: Path, recorded):
    calls, _ = recorded
    GitChangeSource(temp_dir).list_changed_files("a", "b", ["shared/", "pkg/"])
    assert calls[0][0] == ["git", "diff", "--name-only", "-z", "a", "b", "--", "shared/", "pkg/"]


def test_log_and_diff_commands(temp_dir: Path, recorded):
    calls, _ = recorded
    git = GitChangeSource(temp_dir)
    git.log("v1", "v2", "%H|%s", ["services/billing/"])
    git.files_in_commit("abc")
    git.commit_diff("abc")
    git.diff_stat("v1", "v2")

    assert [c[0] for c in calls] == [
        ["git", "log", "--no-merges", "v1..v2", "--format=%H|%s", "--date=short", "--", "services/billing/"],
        ["git", "diff-tree", "--no-commit-id", "--name-only", "-z", "-r", "abc"],
        ["git", "diff", "abc~1", "abc"],
        ["git", "diff", "--stat", "v1..v2"],
    ]


def test_failure_raises(temp_dir: Path, monkeypatch):
    def fake_run(cmd, **kwargs):
        raise subprocess.CalledProcessError(128, cmd, stderr="fatal: bad revision 'nope'\n")

    monkeypatch.setattr("blast_radius.change_source.subprocess.run", fake_run)
    with pytest.raises(ChangeSourceError, match="bad revision"):
        GitChangeSource(temp_dir).list_changed_files("nope", "HEAD")


def test_timeout_raises(temp_dir: Path, monkeypatch):
    def fake_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr("blast_radius.change_source.subprocess.run", fake_run)
    with pytest.raises(ChangeSourceError, match="timed out"):
        GitChangeSource(temp_dir, timeout=1).list_changed_files("a", "b")


def test_missing_git(temp_dir: Path, monkeypatch):
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", "git")

    monkeypatch.setattr("blast_radius.change_source.subprocess.run", fake_run)
    with pytest.raises(ChangeSourceError, match="cannot run git"):
        GitChangeSource(temp_dir).list_changed_files("a", "b")


def test_non_ascii_paths_are_not_quoted(temp_dir: Path, recorded):
    _, outputs = recorded
    outputs["diff"] = "shared/café/x.go\0shared/with space/y.go\0"

    files = GitChangeSource(temp_dir).list_changed_files("main", "HEAD")

    assert files == ["shared/café/x.go", "shared/with space/y.go"]
    changed = ChangeNormalizer(MODULE).from_changed_files(files)
    assert changed == {pkg("shared/café"), pkg("shared/with space")}


def test_files_in_commit_split_on_nul(temp_dir: Path, recorded):
    _, outputs = recorded
    outputs["diff-tree"] = "services/billing/é.go\0shared/models/a.go\0"
    assert GitChangeSource(temp_dir).files_in_commit("abc") == ["services/billing/é.go", "shared/models/a.go"]
