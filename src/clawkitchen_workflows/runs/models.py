"""Typed run file (``clawkitchen.workflow-run.v1``).

Run files use camelCase keys on disk; attributes are snake_case. Optional fields
that are unset are left out of the file entirely.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RUN_SCHEMA = "clawkitchen.workflow-run.v1"


def iso_timestamp(dt: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""

    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class RunStatus(str, Enum):
    RUNNING = "running"
    WAITING_FOR_APPROVAL = "waiting_for_approval"
    SUCCESS = "success"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.SUCCESS, RunStatus.CANCELED)


class NodeStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    WAITING = "waiting"
    SKIPPED = "skipped"
    ERROR = "error"


class ApprovalState(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    CANCELED = "canceled"


class _RunPart(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class NodeResult(_RunPart):
    node_id: str
    status: NodeStatus
    started_at: str | None = None
    ended_at: str | None = None
    # Any JSON value; executors write objects, other writers may not.
    output: Any = None
    error: str | dict[str, object] | None = None


class OutboundDelivery(_RunPart):
    """Outcome of the approval notification attempt."""

    provider: str
    target: str
    sent_at: str | None = None
    attempted_at: str | None = None
    error: str | None = None

    @property
    def delivered(self) -> bool:
        return self.sent_at is not None and self.error is None


class Approval(_RunPart):
    node_id: str
    state: ApprovalState
    requested_at: str | None = None
    decided_at: str | None = None
    note: str | None = None
    outbound: OutboundDelivery | None = None


class WorkflowRun(_RunPart):
    schema_tag: str = Field(default=RUN_SCHEMA, alias="schema")
    id: str
    workflow_id: str
    team_id: str | None = None
    started_at: str
    ended_at: str | None = None
    status: RunStatus
    summary: str = ""
    nodes: list[NodeResult] = Field(default_factory=list)
    approval: Approval | None = None

    def node(self, node_id: str) -> NodeResult | None:
        for result in self.nodes:
            if result.node_id == node_id:
                return result
        return None

    def to_json(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
