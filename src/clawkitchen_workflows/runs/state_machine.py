"""Human approval state machine for runs.

`apply_approval_action` is a pure function: (run, action, note, now) -> new run.
Persistence and side effects live in :mod:`clawkitchen_workflows.runs.service`.

Transitions:

    approve          approval=approved          run=success   gate=success  pending->success
    request_changes  approval=changes_requested run=waiting   gate=waiting  pending untouched
    cancel           approval=canceled          run=canceled  gate=error    pending->skipped
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import assert_never

from clawkitchen_workflows.errors import RunNotAwaitingApproval, UnsupportedAction

from .models import (
    Approval,
    ApprovalState,
    NodeResult,
    NodeStatus,
    RunStatus,
    WorkflowRun,
    iso_timestamp,
)

APPROVED_PENDING_NOTE = "(execution engine not yet wired)"
CANCELED_PENDING_NOTE = "skipped due to cancel"


class ApprovalAction(str, Enum):
    APPROVE = "approve"
    REQUEST_CHANGES = "request_changes"
    CANCEL = "cancel"

    @classmethod
    def parse(cls, value: str) -> ApprovalAction:
        try:
            return cls(value.strip())
        except ValueError:
            raise UnsupportedAction(value) from None

    @property
    def approval_state(self) -> ApprovalState:
        if self is ApprovalAction.APPROVE:
            return ApprovalState.APPROVED
        if self is ApprovalAction.REQUEST_CHANGES:
            return ApprovalState.CHANGES_REQUESTED
        if self is ApprovalAction.CANCEL:
            return ApprovalState.CANCELED
        assert_never(self)


def run_status_for(state: ApprovalState) -> RunStatus:
    if state is ApprovalState.PENDING or state is ApprovalState.CHANGES_REQUESTED:
        return RunStatus.WAITING_FOR_APPROVAL
    if state is ApprovalState.APPROVED:
        return RunStatus.SUCCESS
    if state is ApprovalState.CANCELED:
        return RunStatus.CANCELED
    assert_never(state)


def gate_status_for(state: ApprovalState) -> NodeStatus:
    if state is ApprovalState.PENDING or state is ApprovalState.CHANGES_REQUESTED:
        return NodeStatus.WAITING
    if state is ApprovalState.APPROVED:
        return NodeStatus.SUCCESS
    if state is ApprovalState.CANCELED:
        return NodeStatus.ERROR
    assert_never(state)


def awaiting_approval_node_id(run: WorkflowRun) -> str | None:
    """The gate a decision would apply to, or None if the run is not awaiting one.

    A recorded approval block is authoritative. Runs written without one fall back
    to the first node left in ``waiting``.
    """

    if run.approval is not None:
        state = run.approval.state
        if state is ApprovalState.PENDING or state is ApprovalState.CHANGES_REQUESTED:
            return run.approval.node_id
        if state is ApprovalState.APPROVED or state is ApprovalState.CANCELED:
            return None
        assert_never(state)

    for node in run.nodes:
        if node.status is NodeStatus.WAITING:
            return node.node_id
    return None


def _decide_gate(
    node: NodeResult, state: ApprovalState, decided_at: str, note: str | None
) -> NodeResult:
    previous = node.output if isinstance(node.output, dict) else {}
    output: dict[str, object] = {**previous, "decision": state.value}
    if note is not None:
        output["note"] = note
    return node.model_copy(
        update={
            "status": gate_status_for(state),
            "ended_at": node.ended_at if state is ApprovalState.CHANGES_REQUESTED else decided_at,
            "output": output,
        }
    )


def _settle_pending(node: NodeResult, state: ApprovalState, decided_at: str) -> NodeResult:
    if node.status is not NodeStatus.PENDING:
        return node

    if state is ApprovalState.APPROVED:
        status, default_note = NodeStatus.SUCCESS, APPROVED_PENDING_NOTE
    elif state is ApprovalState.CANCELED:
        status, default_note = NodeStatus.SKIPPED, CANCELED_PENDING_NOTE
    elif state is ApprovalState.PENDING or state is ApprovalState.CHANGES_REQUESTED:
        return node
    else:
        assert_never(state)

    return node.model_copy(
        update={
            "status": status,
            "started_at": node.started_at or decided_at,
            "ended_at": decided_at,
            "output": node.output if node.output is not None else {"note": default_note},
        }
    )


def apply_approval_action(
    run: WorkflowRun,
    action: ApprovalAction,
    *,
    now: datetime,
    note: str | None = None,
) -> WorkflowRun:
    """Apply a human decision to a run awaiting approval.

    Raises:
        RunNotAwaitingApproval: If there is no open approval gate on the run.
    """

    gate_id = awaiting_approval_node_id(run)
    if gate_id is None:
        raise RunNotAwaitingApproval(run.id)

    decided_at = iso_timestamp(now)
    state = action.approval_state
    status = run_status_for(state)

    nodes = [
        _decide_gate(n, state, decided_at, note)
        if n.node_id == gate_id
        else _settle_pending(n, state, decided_at)
        for n in run.nodes
    ]

    previous = run.approval
    approval = Approval(
        node_id=gate_id,
        state=state,
        requested_at=previous.requested_at if previous else None,
        decided_at=None if state is ApprovalState.CHANGES_REQUESTED else decided_at,
        note=note,
        outbound=previous.outbound if previous else None,
    )

    return run.model_copy(
        update={
            "status": status,
            "ended_at": decided_at if status.is_terminal else run.ended_at,
            "nodes": nodes,
            "approval": approval,
        }
    )
