"""Locate the domcp.toml that governs a workspace.

A workspace is a project directory, so the search is bounded by the
project: it walks up from the workspace and gives up at the first
repository root (a ``.git`` entry) that has no config of its own.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

CONFIG_FILENAME = "domcp.toml"
CONFIG_ENV_VAR = "DOMCP_CONFIG"
ROOT_MARKERS: tuple[str, ...] = (".git",)


def _ancestors(start: Path) -> Iterator[Path]:
    here = start.expanduser().resolve()
    yield here
    yield from here.parents


def find_config(start: Path | None = None) -> Path | None:
    """Config file for the workspace at *start* (default: cwd), or None.

    ``DOMCP_CONFIG`` takes precedence; when it names a missing file the
    result is None rather than a fallback to discovery.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override).expanduser()
        return path if path.is_file() else None

    for directory in _ancestors(start or Path.cwd()):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if any((directory / marker).exists() for marker in ROOT_MARKERS):
            return None
    return None
