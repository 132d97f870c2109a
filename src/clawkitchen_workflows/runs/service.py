"""Run creation, approval decisions and run queries.

This is the single entry point used by the HTTP layer and the CLI. It wires the
workflow/run stores, the executors and the approval notifier together:

- ``create_run``: build a run with the executor registered for the mode, notify
  the approval target (sample runs with a gate), then persist once.
- ``decide``: apply approve / request_changes / cancel to a run awaiting approval and
  persist it; after an approval, run the file-first writeback steps and persist
  their results.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from datetime import datetime
from pathlib import Path

from clawkitchen_workflows.config import Settings
from clawkitchen_workflows.notify.gateway import GatewayClient, ToolInvoker
from clawkitchen_workflows.notify.notifier import ApprovalNotifier
from clawkitchen_workflows.paths import assert_safe_relative_path, team_workspace_dir
from clawkitchen_workflows.workflows.models import NodeType, WorkflowFile
from clawkitchen_workflows.workflows.storage import WorkflowStore
from clawkitchen_workflows.workflows.validate import validate_workflow

from .executors import DEFAULT_EXECUTORS, PLAIN_MODE, RunExecutor
from .ids import new_run_id
from .models import NodeResult, NodeStatus, WorkflowRun, iso_timestamp, utc_now
from .state_machine import ApprovalAction, apply_approval_action, awaiting_approval_node_id
from .storage import RunStore

logger = logging.getLogger(__name__)

FS_APPEND_TOOL = "fs.append"


def render_template(text: str, variables: Mapping[str, str]) -> str:
    out = text
    for key, value in variables.items():
        out = out.replace("{{" + key + "}}", value)
    return out


class RunService:
    def __init__(
        self,
        *,
        openclaw_home: Path,
        notifier: ApprovalNotifier,
        executors: Mapping[str, RunExecutor] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._home = openclaw_home
        self.workflows = WorkflowStore(openclaw_home)
        self.runs = RunStore(openclaw_home)
        self._notifier = notifier
        self._executors = dict(executors if executors is not None else DEFAULT_EXECUTORS)
        self._clock = clock
        # Serializes read-modify-write of run files within this process only.
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, *, invoker: ToolInvoker | None = None) -> RunService:
        return cls(
            openclaw_home=settings.openclaw_home,
            notifier=ApprovalNotifier(invoker or GatewayClient.from_settings(settings)),
        )

    # Queries

    def list_runs(self, team_id: str, workflow_id: str) -> dict[str, object]:
        return self.runs.list(team_id, workflow_id)

    def get_run(self, team_id: str, workflow_id: str, run_id: str) -> dict[str, object]:
        path, run = self.runs.read_json(team_id, workflow_id, run_id)
        return {"ok": True, "path": str(path), "run": run}

    # Creation

    def create_run(self, team_id: str, workflow_id: str, mode: str = "") -> dict[str, object]:
        """Create and persist a run.

        ``mode`` selects the executor; modes without a registered executor create a
        plain run.
        """

        mode = mode.strip()
        executor = self._executors.get(mode) or self._executors[PLAIN_MODE]

        started = self._clock()
        run_id = new_run_id(started)

        workflow: WorkflowFile | None = None
        if executor.needs_workflow:
            workflow = self.workflows.read(team_id, workflow_id).workflow
            validation = validate_workflow(workflow)
            if validation.warnings or validation.errors:
                logger.warning(
                    "Workflow has validation issues",
                    extra={
                        "workflow_id": workflow_id,
                        "errors": validation.errors,
                        "warnings": validation.warnings,
                    },
                )

        result = executor.execute(workflow, started_at=started)
        run = WorkflowRun(
            id=run_id,
            workflow_id=workflow_id,
            team_id=team_id,
            started_at=result.started_at,
            ended_at=result.ended_at,
            status=result.status,
            summary=result.summary,
            nodes=result.nodes,
            approval=result.approval,
        )

        if run.approval is not None and workflow is not None:
            outbound = self._notifier.send_approval_request(workflow, run, run.approval.node_id)
            if outbound is not None:
                run = run.model_copy(
                    update={"approval": run.approval.model_copy(update={"outbound": outbound})}
                )

        meta = self.runs.write(team_id, workflow_id, run)
        logger.info(
            "Run created",
            extra={
                "team_id": team_id,
                "workflow_id": workflow_id,
                "run_id": run_id,
                "mode": mode or "plain",
                "status": run.status.value,
            },
        )
        return {**meta, "runId": run_id}

    # Decisions

    def decide(
        self,
        team_id: str,
        workflow_id: str,
        run_id: str,
        action: str | ApprovalAction,
        note: str | None = None,
    ) -> dict[str, object]:
        """Apply a human decision to a run and persist it.

        Raises:
            UnsupportedAction: If ``action`` is not approve/request_changes/cancel.
            RunNotAwaitingApproval: If the run has no open approval gate.
        """

        parsed = action if isinstance(action, ApprovalAction) else ApprovalAction.parse(action)

        with self._lock:
            existing = self.runs.read(team_id, workflow_id, run_id).run
            pending_before = {n.node_id for n in existing.nodes if n.status is NodeStatus.PENDING}
            gate_id = awaiting_approval_node_id(existing)

            now = self._clock()
            updated = apply_approval_action(existing, parsed, now=now, note=note)
            # Persisted before any writeback side effect.
            meta = self.runs.write(team_id, workflow_id, updated)

            if parsed is ApprovalAction.APPROVE and gate_id is not None:
                written_back = self._run_writebacks(
                    team_id, workflow_id, updated, gate_id, pending_before, now
                )
                if written_back.nodes != updated.nodes:
                    updated = written_back
                    meta = self.runs.write(team_id, workflow_id, updated)

        logger.info(
            "Run decision recorded",
            extra={
                "team_id": team_id,
                "workflow_id": workflow_id,
                "run_id": existing.id,
                "action": parsed.value,
                "status": updated.status.value,
            },
        )
        return {**meta, "runId": existing.id}

    def _run_writebacks(
        self,
        team_id: str,
        workflow_id: str,
        run: WorkflowRun,
        gate_id: str,
        resumed: set[str],
        now: datetime,
    ) -> WorkflowRun:
        """Perform ``fs.append`` tool nodes that were waiting behind the gate."""

        try:
            workflow = self.workflows.read(team_id, workflow_id).workflow
        except (OSError, ValueError) as e:
            logger.warning(
                "Skipping post-approval writeback: workflow unavailable",
                extra={"workflow_id": workflow_id, "run_id": run.id, "error": str(e)},
            )
            return run

        gate_idx = workflow.index_of(gate_id)
        if gate_idx < 0:
            return run

        decided_at = iso_timestamp(now)
        variables = {
            "date": decided_at,
            "run.id": run.id,
            "workflow.id": workflow.id,
            "workflow.name": workflow.display_name,
        }
        team_dir = team_workspace_dir(self._home, team_id)

        nodes: list[NodeResult] = []
        for result in run.nodes:
            wf_idx = workflow.index_of(result.node_id)
            if wf_idx <= gate_idx or result.node_id not in resumed:
                nodes.append(result)
                continue
            wf_node = workflow.nodes[wf_idx]
            if wf_node.type is not NodeType.TOOL or wf_node.config_str("tool") != FS_APPEND_TOOL:
                nodes.append(result)
                continue

            args = wf_node.config.get("args")
            args = args if isinstance(args, dict) else {}
            rel_path = args.get("path")
            content = args.get("content")
            if not isinstance(rel_path, str) or not isinstance(content, str):
                nodes.append(result)
                continue
            if not rel_path or not content:
                nodes.append(result)
                continue

            rendered = render_template(content, variables)
            nodes.append(self._append(team_dir, result, rel_path, rendered))

        return run.model_copy(update={"nodes": nodes})

    def _append(
        self, team_dir: Path, result: NodeResult, rel_path: str, content: str
    ) -> NodeResult:
        try:
            target = team_dir / assert_safe_relative_path(rel_path)
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("a", encoding="utf-8") as fh:
                fh.write(content)
        except (OSError, ValueError) as e:
            logger.warning(
                "Post-approval append failed",
                extra={"node_id": result.node_id, "path": rel_path, "error": str(e)},
            )
            return result.model_copy(
                update={
                    "status": NodeStatus.ERROR,
                    "error": str(e),
                    "output": {"tool": FS_APPEND_TOOL},
                }
            )

        return result.model_copy(
            update={
                "output": {
                    "tool": FS_APPEND_TOOL,
                    "appendedTo": str(target),
                    "bytes": len(content.encode("utf-8")),
                }
            }
        )
