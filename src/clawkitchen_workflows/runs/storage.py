"""File-backed run store.

Runs live at
``<team workspace>/shared-context/workflow-runs/<workflowId>/<runId>.run.json``.
Files are never deleted; every decision rewrites the whole record.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from clawkitchen_workflows.paths import team_workspace_dir
from clawkitchen_workflows.workflows.storage import (
    assert_safe_workflow_id,
    list_json_files,
    write_json_file,
)

from .models import RUN_SCHEMA, WorkflowRun

RUNS_DIR = Path("shared-context") / "workflow-runs"
RUN_SUFFIX = ".run.json"

_RUN_ID_RE = re.compile(r"^[a-z0-9][a-z0-9-]{0,80}$")


def assert_safe_run_id(run_id: str) -> str:
    rid = str(run_id or "").strip()
    if not rid:
        raise ValueError("run id is required")
    if not _RUN_ID_RE.match(rid):
        raise ValueError(
            "Invalid run id. Use lowercase letters, numbers, and dashes (max 81 chars)."
        )
    return rid


def run_file_name(run_id: str) -> str:
    return f"{run_id}{RUN_SUFFIX}"


@dataclass(frozen=True, slots=True)
class RunRead:
    path: Path
    run: WorkflowRun


class RunStore:
    def __init__(self, openclaw_home: Path) -> None:
        self._home = openclaw_home

    def runs_dir(self, team_id: str, workflow_id: str) -> Path:
        wf_id = assert_safe_workflow_id(workflow_id)
        return team_workspace_dir(self._home, team_id) / RUNS_DIR / wf_id

    def list(self, team_id: str, workflow_id: str) -> dict[str, object]:
        """Run file names for a workflow, newest first."""

        directory = self.runs_dir(team_id, workflow_id)
        return {
            "ok": True,
            "dir": str(directory),
            "files": list_json_files(directory, RUN_SUFFIX, reverse=True),
        }

    def read_json(
        self, team_id: str, workflow_id: str, run_id: str
    ) -> tuple[Path, dict[str, Any]]:
        """The run file exactly as stored, without model validation."""

        rid = assert_safe_run_id(run_id)
        path = self.runs_dir(team_id, workflow_id) / run_file_name(rid)
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"Run file is not a JSON object: {path}")
        return path, raw

    def read(self, team_id: str, workflow_id: str, run_id: str) -> RunRead:
        path, raw = self.read_json(team_id, workflow_id, run_id)
        return RunRead(path=path, run=WorkflowRun.model_validate(raw))

    def write(self, team_id: str, workflow_id: str, run: WorkflowRun) -> dict[str, object]:
        wf_id = assert_safe_workflow_id(workflow_id)
        rid = assert_safe_run_id(run.id)
        to_write = run.model_copy(
            update={"schema_tag": RUN_SCHEMA, "id": rid, "workflow_id": wf_id, "team_id": team_id}
        )
        path = self.runs_dir(team_id, wf_id) / run_file_name(rid)
        write_json_file(path, to_write.to_json())
        return {"ok": True, "path": str(path)}
