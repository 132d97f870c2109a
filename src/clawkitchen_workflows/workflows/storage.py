"""File-backed workflow store.

Workflows live at ``<team workspace>/shared-context/workflows/<id>.workflow.json``.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path

from clawkitchen_workflows.paths import team_workspace_dir

from .models import WORKFLOW_SCHEMA, WorkflowFile
from .validate import validate_workflow

WORKFLOWS_DIR = Path("shared-context") / "workflows"
WORKFLOW_SUFFIX = ".workflow.json"

_WORKFLOW_ID_RE = re.compile(r"^[a-z0-9][a-z0-9-]{0,62}$")


def assert_safe_workflow_id(workflow_id: str) -> str:
    wf_id = str(workflow_id or "").strip()
    if not wf_id:
        raise ValueError("workflow id is required")
    if not _WORKFLOW_ID_RE.match(wf_id):
        raise ValueError(
            "Invalid workflow id. Use lowercase letters, numbers, and dashes (max 63 chars), "
            "e.g. marketing-cadence-v1"
        )
    return wf_id


def workflow_file_name(workflow_id: str) -> str:
    return f"{workflow_id}{WORKFLOW_SUFFIX}"


def list_json_files(directory: Path, suffix: str, *, reverse: bool = False) -> list[str]:
    """File names in ``directory`` ending with ``suffix``, sorted; empty if missing."""

    if not directory.is_dir():
        return []
    names = sorted(p.name for p in directory.iterdir() if p.is_file() and p.name.endswith(suffix))
    if reverse:
        names.reverse()
    return names


def write_json_file(path: Path, payload: dict[str, object]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


@dataclass(frozen=True, slots=True)
class WorkflowRead:
    path: Path
    workflow: WorkflowFile


class WorkflowStore:
    def __init__(self, openclaw_home: Path) -> None:
        self._home = openclaw_home

    def workflows_dir(self, team_id: str) -> Path:
        return team_workspace_dir(self._home, team_id) / WORKFLOWS_DIR

    def list(self, team_id: str) -> dict[str, object]:
        directory = self.workflows_dir(team_id)
        return {
            "ok": True,
            "dir": str(directory),
            "files": list_json_files(directory, WORKFLOW_SUFFIX),
        }

    def read(self, team_id: str, workflow_id: str) -> WorkflowRead:
        """Load a workflow file.

        Raises:
            FileNotFoundError: If the workflow does not exist.
            ValueError: If the id is unsafe or the file is not a valid workflow.
        """

        wf_id = assert_safe_workflow_id(workflow_id)
        path = self.workflows_dir(team_id) / workflow_file_name(wf_id)
        raw = json.loads(path.read_text(encoding="utf-8"))
        return WorkflowRead(path=path, workflow=WorkflowFile.model_validate(raw))

    def write(self, team_id: str, workflow: WorkflowFile) -> dict[str, object]:
        wf_id = assert_safe_workflow_id(workflow.id)
        to_write = workflow.model_copy(update={"schema_tag": WORKFLOW_SCHEMA, "id": wf_id})
        validation = validate_workflow(to_write)
        if not validation.ok:
            raise ValueError("Invalid workflow: " + "; ".join(validation.errors))

        path = self.workflows_dir(team_id) / workflow_file_name(wf_id)
        write_json_file(path, to_write.to_json())
        return {"ok": True, "path": str(path), "warnings": validation.warnings}
