"""REST API for workflow runs.

All routes are mounted under `/api`. Every response carries ``ok``; failures are
``{"ok": false, "error": "..."}`` with 400 for request problems and 500 for
everything else.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from clawkitchen_workflows.errors import InvalidRequest
from clawkitchen_workflows.runs.service import RunService

logger = logging.getLogger(__name__)

router = APIRouter()


def _service(request: Request) -> RunService:
    service = getattr(request.app.state, "run_service", None)
    if not isinstance(service, RunService):
        raise RuntimeError("Run service not configured")
    return service


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"ok": False, "error": message}, status_code=status_code)


def _body_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    return str(value).strip() if value is not None else ""


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/workflow-runs", response_model=None)
def get_workflow_runs(
    request: Request,
    team_id: str = Query(default="", alias="teamId"),
    workflow_id: str = Query(default="", alias="workflowId"),
    run_id: str = Query(default="", alias="runId"),
) -> dict[str, object] | JSONResponse:
    team_id, workflow_id, run_id = team_id.strip(), workflow_id.strip(), run_id.strip()
    if not team_id:
        return error_response("teamId is required", 400)
    if not workflow_id:
        return error_response("workflowId is required", 400)

    service = _service(request)
    try:
        if run_id:
            return service.get_run(team_id, workflow_id, run_id)
        return service.list_runs(team_id, workflow_id)
    except Exception as e:
        logger.exception(
            "Workflow runs read failed",
            extra={"team_id": team_id, "workflow_id": workflow_id, "run_id": run_id},
        )
        return error_response(str(e), 500)


@router.post("/workflow-runs", response_model=None)
def post_workflow_runs(
    request: Request, payload: dict[str, Any]
) -> dict[str, object] | JSONResponse:
    """Create a run (no ``action``) or record a decision on an existing run."""

    team_id = _body_str(payload, "teamId")
    workflow_id = _body_str(payload, "workflowId")
    mode = _body_str(payload, "mode")
    action = _body_str(payload, "action")
    run_id = _body_str(payload, "runId")
    note_raw = payload.get("note")
    note = note_raw if isinstance(note_raw, str) else None

    if not team_id:
        return error_response("teamId is required", 400)
    if not workflow_id:
        return error_response("workflowId is required", 400)

    service = _service(request)
    try:
        if action:
            if not run_id:
                return error_response("runId is required for action", 400)
            return service.decide(team_id, workflow_id, run_id, action, note)
        return service.create_run(team_id, workflow_id, mode)
    except InvalidRequest as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.exception(
            "Workflow runs write failed",
            extra={"team_id": team_id, "workflow_id": workflow_id, "action": action or None},
        )
        return error_response(str(e), 500)
