"""Default settings for blast-radius."""

from __future__ import annotations

import os

CONFIG_FILENAME = ".blast-radius.toml"
CONFIG_SECTION = "blast-radius"

DEFAULT_SERVICES_DIR = "services"
DEFAULT_SHARED_DIRS = ("shared", "pkg", "internal/common")
DEFAULT_SOURCE_EXTENSIONS = (".go",)
DEFAULT_TIMEOUT = 120.0
DEFAULT_WORKERS = min(8, os.cpu_count() or 1)

DEFAULT_BASE_REF = "HEAD~1"
DEFAULT_HEAD_REF = "HEAD"

# Environment variables understood by the CLI.
ENV_SERVICES_DIR = "SERVICES_DIR"
ENV_SHARED_DIRS = "SHARED_DIRS"
ENV_WORKERS = "BLAST_RADIUS_WORKERS"
ENV_TIMEOUT = "BLAST_RADIUS_TIMEOUT"

MODULE_MANIFEST = "go.mod"
COMMAND_DIR = "cmd"
