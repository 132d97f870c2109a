"""Run executors.

An executor turns a workflow into the initial state of a run. Nothing here calls
an LLM or a tool: the placeholder executor records that no engine is wired, and the
sample executor deterministically simulates a walk over the nodes, stopping at the
first human approval gate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import ClassVar, Protocol

from clawkitchen_workflows.workflows.models import NodeType, WorkflowFile, WorkflowNode
from clawkitchen_workflows.workflows.templates import MARKETING_CADENCE_TEMPLATE_ID

from .models import Approval, ApprovalState, NodeResult, NodeStatus, RunStatus, iso_timestamp

SAMPLE_STEP = timedelta(milliseconds=350)
SAMPLE_NODE_DURATION = timedelta(milliseconds=200)

APPROVAL_OPTIONS = ["approve", "request_changes", "cancel"]

MARKETING_DRAFTS: dict[str, dict[str, str]] = {
    "x": {
        "hook": "Stop losing hours to repetitive agent setup.",
        "body": (
            "ClawRecipes scaffolds entire teams of agents in one command — workflows, roles, "
            "conventions, and a human-approval gate before posting."
        ),
    },
    "instagram": {
        "hook": "Ship agent workflows faster.",
        "body": (
            "From idea → drafted assets → brand QC → approval → posting. "
            "File-first workflows you can export and version."
        ),
        "assetNotes": "Square image: diagram of workflow nodes + approval gate.",
    },
    "tiktok": {
        "hook": "POV: you stop copy/pasting prompts.",
        "script": (
            "Today I’m building a marketing cadence workflow that researches, drafts, QC’s, "
            "then waits for human approval before it posts. File-first. Portable. No magic."
        ),
        "assetNotes": "15–25s screen recording of the canvas + approval buttons.",
    },
    "youtube": {
        "hook": "Build a marketing cadence workflow (with human approval) in 2 minutes.",
        "script": (
            "We’ll wire research → drafts → QC → approval → post nodes, and persist the whole "
            "thing to shared-context/workflows/*.workflow.json so it’s portable."
        ),
        "assetNotes": "Thumbnail: workflow canvas with 'Approve & Post' highlighted.",
    },
}

MARKETING_RESEARCH_BULLETS = [
    "New agent teams are compelling when they’re portable + file-first.",
    "Human approval gates are mandatory for auto-post workflows.",
    "Cron triggers need timezone + preset suggestions.",
]

MARKETING_QC_NOTES = [
    "Keep claims concrete (no ‘magic’).",
    "Mention ClawRecipes before OpenClaw.",
    "Explicitly state: no posting without approval.",
]


@dataclass(slots=True)
class RunResult:
    """Initial state of a run as produced by an executor."""

    status: RunStatus
    summary: str
    started_at: str
    ended_at: str | None = None
    nodes: list[NodeResult] = field(default_factory=list)
    approval: Approval | None = None


class RunExecutor(Protocol):
    """Produces the initial state of a run for a creation mode."""

    needs_workflow: ClassVar[bool]

    def execute(self, workflow: WorkflowFile | None, *, started_at: datetime) -> RunResult: ...


class PlaceholderExecutor:
    """Records a run without executing anything."""

    needs_workflow: ClassVar[bool] = False

    def execute(self, workflow: WorkflowFile | None, *, started_at: datetime) -> RunResult:
        _ = workflow
        return RunResult(
            status=RunStatus.RUNNING,
            summary="Run created (execution engine not yet wired)",
            started_at=iso_timestamp(started_at),
        )


def _is_marketing_cadence(workflow: WorkflowFile) -> bool:
    return workflow.template_id == MARKETING_CADENCE_TEMPLATE_ID


def _llm_output(node: WorkflowNode, marketing: bool) -> dict[str, object]:
    if marketing and node.id == "research":
        return {
            "model": "(sample)",
            "kind": "research",
            "bullets": list(MARKETING_RESEARCH_BULLETS),
        }
    if marketing and node.id == "draft_assets":
        return {
            "model": "(sample)",
            "kind": "draft_assets",
            "drafts": {k: dict(v) for k, v in MARKETING_DRAFTS.items()},
        }
    if marketing and node.id == "qc_brand":
        return {"model": "(sample)", "kind": "qc_brand", "notes": list(MARKETING_QC_NOTES)}
    return {"model": "(sample)", "text": f"Sample output for {node.id}"}


def sample_output(node: WorkflowNode, *, marketing: bool = False) -> dict[str, object]:
    """Synthetic output for a node resolved before the approval gate."""

    node_type = node.type
    if node_type is NodeType.LLM:
        return _llm_output(node, marketing)
    if node_type is NodeType.TOOL:
        return {"tool": node.config_str("tool") or "(unknown)", "result": "(sample tool result)"}
    if node_type in (
        NodeType.START,
        NodeType.END,
        NodeType.CONDITION,
        NodeType.DELAY,
        NodeType.HUMAN_APPROVAL,
    ):
        return {"type": node_type.value, "result": "(sample)"}
    raise ValueError(f"Unhandled node type: {node_type}")


def approval_packet(*, marketing: bool) -> dict[str, object]:
    """Output recorded on the gate node while it waits for a decision."""

    out: dict[str, object] = {
        "channel": "(sample)",
        "decision": "pending",
        "options": list(APPROVAL_OPTIONS),
    }
    if marketing:
        out["packet"] = {
            "templateId": MARKETING_CADENCE_TEMPLATE_ID,
            "note": (
                "Per-platform drafts (sample) — approve to post, request changes to loop, "
                "or cancel."
            ),
            "platforms": {k: dict(v) for k, v in MARKETING_DRAFTS.items()},
        }
    return out


class SampleExecutor:
    """Deterministic simulation of a workflow run.

    Node ``i`` starts at ``t0 + i * 350ms`` and ends 200ms later. Nodes before the
    first ``human_approval`` gate succeed with synthetic output, the gate waits for
    a decision, and everything after it stays pending.
    """

    needs_workflow: ClassVar[bool] = True

    def execute(self, workflow: WorkflowFile | None, *, started_at: datetime) -> RunResult:
        if workflow is None:
            raise ValueError("Sample runs require a workflow definition")

        marketing = _is_marketing_cadence(workflow)
        approval_idx = workflow.first_approval_index()

        results: list[NodeResult] = []
        for idx, node in enumerate(workflow.nodes):
            node_start = started_at + idx * SAMPLE_STEP
            node_end = node_start + SAMPLE_NODE_DURATION

            if approval_idx < 0 or idx < approval_idx:
                results.append(
                    NodeResult(
                        node_id=node.id,
                        status=NodeStatus.SUCCESS,
                        started_at=iso_timestamp(node_start),
                        ended_at=iso_timestamp(node_end),
                        output=sample_output(node, marketing=marketing),
                    )
                )
            elif idx == approval_idx:
                results.append(
                    NodeResult(
                        node_id=node.id,
                        status=NodeStatus.WAITING,
                        started_at=iso_timestamp(node_start),
                        output=approval_packet(marketing=marketing),
                    )
                )
            else:
                results.append(
                    NodeResult(
                        node_id=node.id,
                        status=NodeStatus.PENDING,
                        started_at=iso_timestamp(node_start),
                    )
                )

        if approval_idx >= 0:
            gate = workflow.nodes[approval_idx]
            return RunResult(
                status=RunStatus.WAITING_FOR_APPROVAL,
                summary="Sample run (awaiting approval)",
                started_at=iso_timestamp(started_at),
                nodes=results,
                approval=Approval(
                    node_id=gate.id,
                    state=ApprovalState.PENDING,
                    requested_at=iso_timestamp(started_at + approval_idx * SAMPLE_STEP),
                ),
            )

        last_end = (
            started_at + (len(workflow.nodes) - 1) * SAMPLE_STEP + SAMPLE_NODE_DURATION
            if workflow.nodes
            else started_at
        )
        return RunResult(
            status=RunStatus.SUCCESS,
            summary="Sample run (generated by ClawKitchen UI)",
            started_at=iso_timestamp(started_at),
            ended_at=iso_timestamp(last_end),
            nodes=results,
        )


PLAIN_MODE = ""
SAMPLE_MODE = "sample"

DEFAULT_EXECUTORS: dict[str, RunExecutor] = {
    PLAIN_MODE: PlaceholderExecutor(),
    SAMPLE_MODE: SampleExecutor(),
}
