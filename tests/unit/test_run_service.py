"""Unit tests for run creation and decisions through the service layer."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from clawkitchen_workflows.errors import RunNotAwaitingApproval, UnsupportedAction
from clawkitchen_workflows.runs.models import ApprovalState, NodeStatus, RunStatus
from clawkitchen_workflows.runs.service import RunService, render_template
from clawkitchen_workflows.workflows.templates import marketing_cadence_workflow

DECIDED = "2026-10-19T12:00:00.000Z"


def _run_json(service: RunService, workflow_id: str, run_id: str) -> dict:
    return service.get_run("alpha", workflow_id, run_id)["run"]  # type: ignore[return-value]


def _nodes(run: dict) -> dict[str, dict]:
    return {n["nodeId"]: n for n in run["nodes"]}


def test_render_template_replaces_known_variables() -> None:
    out = render_template("{{date}} {{run.id}} {{unknown}}", {"date": "D", "run.id": "R"})

    assert out == "D R {{unknown}}"


def test_plain_run_does_not_need_a_workflow_file(service: RunService) -> None:
    created = service.create_run("alpha", "wf1")

    assert created["ok"] is True
    run_id = str(created["runId"])
    assert run_id.startswith("run-2026-10-19t12-00-00-000z-")
    assert Path(str(created["path"])).name == f"{run_id}.run.json"

    run = _run_json(service, "wf1", run_id)
    assert run["status"] == "running"
    assert run["nodes"] == []
    assert run["summary"] == "Run created (execution engine not yet wired)"
    assert "endedAt" not in run
    assert "approval" not in run


def test_unregistered_mode_creates_a_plain_run(service: RunService) -> None:
    created = service.create_run("alpha", "wf1", "create")

    run = _run_json(service, "wf1", str(created["runId"]))
    assert run["status"] == "running"
    assert run["nodes"] == []


def test_sample_run_requires_the_workflow_file(service: RunService) -> None:
    with pytest.raises(FileNotFoundError):
        service.create_run("alpha", "missing", "sample")


def test_sample_run_notifies_the_approval_target(
    service: RunService, invoker, approval_workflow
) -> None:
    service.workflows.write("alpha", approval_workflow(meta={"approvalTarget": "12345"}))

    created = service.create_run("alpha", "wf1", "sample")

    run = _run_json(service, "wf1", str(created["runId"]))
    assert run["status"] == "waiting_for_approval"
    assert run["approval"]["state"] == "pending"
    assert run["approval"]["outbound"] == {
        "provider": "telegram",
        "target": "12345",
        "sentAt": DECIDED,
    }
    [(tool, args)] = invoker.calls
    assert tool == "message"
    assert f"Run: {created['runId']}" in str(args["message"])


def test_sample_run_survives_delivery_failure(
    failing_service: RunService, approval_workflow
) -> None:
    failing_service.workflows.write("alpha", approval_workflow(meta={"approvalTarget": "12345"}))

    created = failing_service.create_run("alpha", "wf1", "sample")

    run = _run_json(failing_service, "wf1", str(created["runId"]))
    assert run["status"] == "waiting_for_approval"
    outbound = run["approval"]["outbound"]
    assert outbound["error"] == "gateway unreachable"
    assert outbound["attemptedAt"] == DECIDED
    assert "sentAt" not in outbound


def test_sample_run_without_target_skips_delivery(
    service: RunService, invoker, approval_workflow
) -> None:
    service.workflows.write("alpha", approval_workflow())

    created = service.create_run("alpha", "wf1", "sample")

    run = _run_json(service, "wf1", str(created["runId"]))
    assert "outbound" not in run["approval"]
    assert invoker.calls == []


def test_decision_on_running_run_is_rejected(service: RunService) -> None:
    run_id = str(service.create_run("alpha", "wf1")["runId"])

    with pytest.raises(RunNotAwaitingApproval, match="Run is not awaiting approval"):
        service.decide("alpha", "wf1", run_id, "approve")


def test_unknown_action_fails_before_reading_the_run(service: RunService) -> None:
    with pytest.raises(UnsupportedAction, match="Unsupported action: publish"):
        service.decide("alpha", "wf1", "run-does-not-exist", "publish")


def test_request_changes_then_approve(service: RunService, approval_workflow) -> None:
    service.workflows.write("alpha", approval_workflow())
    run_id = str(service.create_run("alpha", "wf1", "sample")["runId"])

    service.decide("alpha", "wf1", run_id, "request_changes", "tighten the hook")
    waiting = _run_json(service, "wf1", run_id)
    assert waiting["status"] == "waiting_for_approval"
    assert waiting["approval"]["state"] == "changes_requested"
    assert waiting["approval"]["note"] == "tighten the hook"
    assert _nodes(waiting)["approve"]["status"] == "waiting"
    assert _nodes(waiting)["publish"]["status"] == "pending"

    decided = service.decide("alpha", "wf1", run_id, "approve")
    assert decided["runId"] == run_id

    approved = _run_json(service, "wf1", run_id)
    assert approved["status"] == "success"
    assert approved["endedAt"] == DECIDED
    assert approved["approval"]["state"] == "approved"
    assert approved["approval"]["decidedAt"] == DECIDED
    assert _nodes(approved)["approve"]["status"] == "success"
    assert _nodes(approved)["publish"]["status"] == "success"

    with pytest.raises(RunNotAwaitingApproval):
        service.decide("alpha", "wf1", run_id, "cancel")


def test_approving_marketing_run_appends_writeback_files(
    service: RunService, openclaw_home: Path
) -> None:
    service.workflows.write("alpha", marketing_cadence_workflow())
    run_id = str(service.create_run("alpha", "marketing-cadence-v1", "sample")["runId"])

    service.decide("alpha", "marketing-cadence-v1", run_id, "approve")

    team_dir = openclaw_home / "workspace-alpha"
    post_log = team_dir / "shared-context" / "marketing" / "POST_LOG.md"
    learnings = team_dir / "shared-context" / "memory" / "marketing_learnings.jsonl"
    assert post_log.read_text(encoding="utf-8") == f"- {DECIDED} posted. Run={run_id}\n"
    assert json.loads(learnings.read_text(encoding="utf-8")) == {"ts": DECIDED, "runId": run_id}

    nodes = _nodes(_run_json(service, "marketing-cadence-v1", run_id))
    assert nodes["write_post_log"]["status"] == "success"
    assert nodes["write_post_log"]["output"]["tool"] == "fs.append"
    assert nodes["write_post_log"]["output"]["appendedTo"] == str(post_log)
    assert nodes["post_to_platforms"]["output"] == {"note": "(execution engine not yet wired)"}
    assert nodes["end"]["status"] == "success"


def test_canceling_marketing_run_writes_nothing(service: RunService, openclaw_home: Path) -> None:
    service.workflows.write("alpha", marketing_cadence_workflow())
    run_id = str(service.create_run("alpha", "marketing-cadence-v1", "sample")["runId"])

    service.decide("alpha", "marketing-cadence-v1", run_id, "cancel", "not this week")

    assert not (openclaw_home / "workspace-alpha" / "shared-context" / "marketing").exists()
    run = _run_json(service, "marketing-cadence-v1", run_id)
    assert run["status"] == "canceled"
    assert run["approval"]["note"] == "not this week"
    nodes = _nodes(run)
    assert nodes["approval"]["status"] == "error"
    assert nodes["approval"]["output"]["decision"] == "canceled"
    assert nodes["write_post_log"]["status"] == "skipped"
    assert nodes["write_post_log"]["output"] == {"note": "skipped due to cancel"}


def test_list_runs_includes_created_runs(service: RunService) -> None:
    first = service.create_run("alpha", "wf1")

    listing = service.list_runs("alpha", "wf1")

    assert listing["files"] == [f"{first['runId']}.run.json"]


def test_decision_statuses_are_consistent(service: RunService, approval_workflow) -> None:
    service.workflows.write("alpha", approval_workflow())
    run_id = str(service.create_run("alpha", "wf1", "sample")["runId"])

    service.decide("alpha", "wf1", run_id, "cancel")

    read = service.runs.read("alpha", "wf1", run_id).run
    assert read.status is RunStatus.CANCELED
    assert read.approval is not None and read.approval.state is ApprovalState.CANCELED
    assert all(n.status is not NodeStatus.PENDING for n in read.nodes)


def _writeback_workflow(make_workflow):
    return make_workflow(
        [
            {"id": "gate", "type": "human_approval"},
            {
                "id": "w",
                "type": "tool",
                "config": {
                    "tool": "fs.append",
                    "args": {"path": "log.md", "content": "- {{date}} {{run.id}}\n"},
                },
            },
        ]
    )


def test_failed_append_marks_node_error_and_keeps_decision(
    service: RunService, openclaw_home: Path, make_workflow
) -> None:
    service.workflows.write("alpha", _writeback_workflow(make_workflow))
    run_id = str(service.create_run("alpha", "wf1", "sample")["runId"])
    (openclaw_home / "workspace-alpha" / "log.md").mkdir(parents=True)

    service.decide("alpha", "wf1", run_id, "approve")

    run = _run_json(service, "wf1", run_id)
    assert run["status"] == "success"
    assert run["approval"]["state"] == "approved"
    node = _nodes(run)["w"]
    assert node["status"] == "error"
    assert node["error"]
    assert node["output"] == {"tool": "fs.append"}


def test_writeback_is_skipped_when_workflow_was_removed(
    service: RunService, openclaw_home: Path, make_workflow, caplog
) -> None:
    meta = service.workflows.write("alpha", _writeback_workflow(make_workflow))
    run_id = str(service.create_run("alpha", "wf1", "sample")["runId"])
    Path(str(meta["path"])).unlink()

    with caplog.at_level(logging.WARNING, logger="clawkitchen_workflows.runs.service"):
        service.decide("alpha", "wf1", run_id, "approve")

    assert not (openclaw_home / "workspace-alpha" / "log.md").exists()
    run = _run_json(service, "wf1", run_id)
    assert run["status"] == "success"
    assert _nodes(run)["w"]["status"] == "success"
    assert _nodes(run)["w"]["output"] == {"note": "(execution engine not yet wired)"}
    assert "Skipping post-approval writeback: workflow unavailable" in caplog.text


def test_decision_is_persisted_before_writeback(
    service: RunService, openclaw_home: Path, make_workflow, monkeypatch
) -> None:
    service.workflows.write("alpha", _writeback_workflow(make_workflow))
    run_id = str(service.create_run("alpha", "wf1", "sample")["runId"])

    original_write = service.runs.write
    calls: list[str] = []

    def write_once(team_id, workflow_id, run):
        calls.append(run.status.value)
        if len(calls) > 1:
            raise OSError("disk full")
        return original_write(team_id, workflow_id, run)

    monkeypatch.setattr(service.runs, "write", write_once)

    with pytest.raises(OSError, match="disk full"):
        service.decide("alpha", "wf1", run_id, "approve")

    log = openclaw_home / "workspace-alpha" / "log.md"
    assert log.read_text(encoding="utf-8") == f"- {DECIDED} {run_id}\n"
    assert _run_json(service, "wf1", run_id)["status"] == "success"

    # A retried approval finds the decision already recorded and appends nothing.
    with pytest.raises(RunNotAwaitingApproval):
        service.decide("alpha", "wf1", run_id, "approve")
    assert log.read_text(encoding="utf-8") == f"- {DECIDED} {run_id}\n"


def _write_raw_run(openclaw_home: Path, run_id: str, payload: dict) -> None:
    path = (
        openclaw_home
        / "workspace-alpha"
        / "shared-context"
        / "workflow-runs"
        / "wf1"
        / f"{run_id}.run.json"
    )
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_get_run_returns_the_file_unmodified(service: RunService, openclaw_home: Path) -> None:
    payload = {
        "schema": "clawkitchen.workflow-run.v1",
        "id": "run-1",
        "workflowId": "wf1",
        "startedAt": "2026-10-19T12:00:00.000Z",
        "endedAt": None,
        "status": "waiting_for_approval",
        "summary": "imported",
        "nodes": [
            {"nodeId": "draft", "status": "success", "output": "plain text"},
            {"nodeId": "gate", "status": "waiting", "output": ["a", "b"]},
        ],
        "approval": {"nodeId": "gate", "state": "pending"},
    }
    _write_raw_run(openclaw_home, "run-1", payload)

    assert service.get_run("alpha", "wf1", "run-1")["run"] == payload


def test_decision_accepts_non_object_node_outputs(
    service: RunService, openclaw_home: Path
) -> None:
    _write_raw_run(
        openclaw_home,
        "run-1",
        {
            "schema": "clawkitchen.workflow-run.v1",
            "id": "run-1",
            "workflowId": "wf1",
            "startedAt": "2026-10-19T12:00:00.000Z",
            "status": "waiting_for_approval",
            "nodes": [
                {"nodeId": "draft", "status": "success", "output": "plain text"},
                {"nodeId": "gate", "status": "waiting", "output": "awaiting"},
            ],
            "approval": {"nodeId": "gate", "state": "pending"},
        },
    )

    service.decide("alpha", "wf1", "run-1", "cancel")

    nodes = _nodes(_run_json(service, "wf1", "run-1"))
    assert nodes["draft"]["output"] == "plain text"
    assert nodes["gate"]["output"] == {"decision": "canceled"}
