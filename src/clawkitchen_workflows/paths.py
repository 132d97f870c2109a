"""Workspace path helpers.

Each team has its own workspace directory next to the OpenClaw home config:
``<openclaw_home>/workspace-<teamId>``. Workflow and run files live under its
``shared-context`` directory.
"""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath

_TEAM_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,80}$")


def assert_safe_team_id(team_id: str) -> str:
    tid = str(team_id or "").strip()
    if not tid:
        raise ValueError("team id is required")
    if not _TEAM_ID_RE.match(tid) or ".." in tid:
        raise ValueError("Invalid team id")
    return tid


def team_workspace_dir(openclaw_home: Path, team_id: str) -> Path:
    return openclaw_home / f"workspace-{assert_safe_team_id(team_id)}"


def assert_safe_relative_path(name: str) -> str:
    """Reject absolute paths and traversal; return the normalized posix path."""

    normalized = name.replace("\\", "/").strip()
    if not normalized or normalized.startswith("/") or ".." in PurePosixPath(normalized).parts:
        raise ValueError("Invalid file name")
    return normalized
