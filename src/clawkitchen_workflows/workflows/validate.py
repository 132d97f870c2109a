"""Structural validation of workflow files.

Errors make a workflow unusable (the store refuses to write it). Warnings are
surfaced to the caller and logged, but never block a run.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import WORKFLOW_SCHEMA, NodeType, WorkflowFile


@dataclass(slots=True)
class WorkflowValidation:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _is_five_field_cron(expr: str) -> bool:
    return len(expr.split()) == 5


def validate_workflow(wf: WorkflowFile) -> WorkflowValidation:
    result = WorkflowValidation()
    errors = result.errors
    warnings = result.warnings

    if wf.schema_tag != WORKFLOW_SCHEMA:
        errors.append(f"schema must be {WORKFLOW_SCHEMA} (got {wf.schema_tag})")
    if not wf.id.strip():
        errors.append("id is required")
    if not wf.name.strip():
        errors.append("name is required")

    node_ids = [n.id.strip() for n in wf.nodes if n.id.strip()]
    if len(node_ids) != len(wf.nodes):
        errors.append("all nodes must have a non-empty id")
    if len(set(node_ids)) != len(node_ids):
        errors.append("node ids must be unique")

    edge_ids = [e.id.strip() for e in wf.edges if e.id.strip()]
    if len(edge_ids) != len(wf.edges):
        errors.append("all edges must have a non-empty id")
    if len(set(edge_ids)) != len(edge_ids):
        errors.append("edge ids must be unique")

    known = set(node_ids)
    for edge in wf.edges:
        src = edge.from_.strip()
        dst = edge.to.strip()
        if not src or not dst:
            errors.append(f"edge {edge.id or '(missing id)'} must have from/to")
            continue
        if src not in known:
            errors.append(f"edge {edge.id} references missing from node: {src}")
        if dst not in known:
            errors.append(f"edge {edge.id} references missing to node: {dst}")

    starts = [n for n in wf.nodes if n.type is NodeType.START]
    ends = [n for n in wf.nodes if n.type is NodeType.END]
    if not starts:
        warnings.append("no start node found")
    if len(starts) > 1:
        warnings.append("multiple start nodes found (execution order may be ambiguous)")
    if not ends:
        warnings.append("no end node found")

    for trigger in wf.triggers:
        if not trigger.id.strip():
            errors.append("cron trigger missing id")
        if not trigger.expr.strip():
            errors.append(f"cron trigger {trigger.id or '(missing id)'} missing expr")
        elif not _is_five_field_cron(trigger.expr):
            warnings.append(f"cron trigger {trigger.id} expr is not 5-field: {trigger.expr}")
        if trigger.tz and "/" not in trigger.tz:
            warnings.append(
                f"cron trigger {trigger.id} tz doesn't look like an IANA timezone: {trigger.tz}"
            )

    return result
