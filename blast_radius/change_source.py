"""Revision-range inspection through git."""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

from . import config
from .errors import ChangeSourceError

logger = logging.getLogger(__name__)


def split_paths(output: str) -> List[str]:
    """Split NUL-terminated path output (``-z``), which git never quotes."""
    return [path for path in output.split("\0") if path.strip()]


class ChangeSource(ABC):
    """Lists files changed between two revisions."""

    @abstractmethod
    def list_changed_files(
        self,
        base_ref: str,
        head_ref: str,
        paths: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """Return repo-relative paths changed in ``base_ref..head_ref``."""


class GitChangeSource(ChangeSource):
    """Thin wrapper around the git commands blast-radius needs."""

    def __init__(self, repo_root: Path, timeout: float = config.DEFAULT_TIMEOUT):
        self.repo_root = Path(repo_root)
        self.timeout = timeout

    def run(self, args: Sequence[str]) -> str:
        """Run ``git <args>`` in the repository and return stdout.

        Raises:
            ChangeSourceError: On a non-zero exit, a timeout, or a missing git.
        """
        cmd = ["git", *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                cwd=self.repo_root,
                capture_output=True,
                text=True,
                encoding="utf-8",
                check=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ChangeSourceError(f"git {args[0]} timed out after {exc.timeout}s") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
            raise ChangeSourceError(f"git {args[0]} failed: {detail}") from exc
        except OSError as exc:
            raise ChangeSourceError(f"cannot run git: {exc}") from exc
        return result.stdout

    def list_changed_files(
        self,
        base_ref: str,
        head_ref: str,
        paths: Optional[Sequence[str]] = None,
    ) -> List[str]:
        args = ["diff", "--name-only", "-z", base_ref, head_ref]
        if paths:
            args += ["--", *paths]
        logger.info("Diffing %s..%s", base_ref, head_ref)
        return split_paths(self.run(args))

    def log(
        self,
        from_ref: str,
        to_ref: str,
        pretty: str,
        paths: Optional[Sequence[str]] = None,
    ) -> str:
        args = ["log", "--no-merges", f"{from_ref}..{to_ref}", f"--format={pretty}", "--date=short"]
        if paths:
            args += ["--", *paths]
        return self.run(args)

    def files_in_commit(self, commit: str) -> List[str]:
        return split_paths(self.run(["diff-tree", "--no-commit-id", "--name-only", "-z", "-r", commit]))

    def commit_diff(self, commit: str, paths: Optional[Sequence[str]] = None) -> str:
        args = ["diff", f"{commit}~1", commit]
        if paths:
            args += ["--", *paths]
        return self.run(args)

    def diff_stat(self, from_ref: str, to_ref: str, paths: Optional[Sequence[str]] = None) -> str:
        args = ["diff", "--stat", f"{from_ref}..{to_ref}"]
        if paths:
            args += ["--", *paths]
        return self.run(args)
