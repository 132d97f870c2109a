"""Typed workflow file (``clawkitchen.workflow.v1``).

Workflow files are written by the editor UI; unknown keys are kept so a round
trip through these models never drops data.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

WORKFLOW_SCHEMA = "clawkitchen.workflow.v1"


class NodeType(str, Enum):
    START = "start"
    END = "end"
    LLM = "llm"
    TOOL = "tool"
    CONDITION = "condition"
    DELAY = "delay"
    HUMAN_APPROVAL = "human_approval"


class _WorkflowPart(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class CronTrigger(_WorkflowPart):
    kind: Literal["cron"] = "cron"
    id: str
    name: str | None = None
    enabled: bool | None = None
    expr: str
    tz: str | None = None


class WorkflowNode(_WorkflowPart):
    id: str
    type: NodeType
    name: str | None = None
    x: float | None = None
    y: float | None = None
    config: dict[str, object] = Field(default_factory=dict)

    def config_str(self, key: str) -> str:
        value = self.config.get(key)
        return value.strip() if isinstance(value, str) else ""


class WorkflowEdge(_WorkflowPart):
    id: str
    from_: str = Field(alias="from")
    to: str
    label: str | None = None


class WorkflowFile(_WorkflowPart):
    schema_tag: str = Field(default=WORKFLOW_SCHEMA, alias="schema")
    id: str
    name: str = ""
    version: int | None = None
    timezone: str | None = None
    triggers: list[CronTrigger] = Field(default_factory=list)
    nodes: list[WorkflowNode] = Field(default_factory=list)
    edges: list[WorkflowEdge] = Field(default_factory=list)
    meta: dict[str, object] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.name.strip() or self.id

    def meta_str(self, key: str) -> str:
        value = self.meta.get(key)
        return str(value).strip() if value is not None else ""

    @property
    def template_id(self) -> str | None:
        value = self.meta.get("templateId")
        return value if isinstance(value, str) else None

    def first_approval_index(self) -> int:
        """Index of the first ``human_approval`` node, or -1."""

        for idx, node in enumerate(self.nodes):
            if node.type is NodeType.HUMAN_APPROVAL:
                return idx
        return -1

    def index_of(self, node_id: str) -> int:
        for idx, node in enumerate(self.nodes):
            if node.id == node_id:
                return idx
        return -1

    def to_json(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
