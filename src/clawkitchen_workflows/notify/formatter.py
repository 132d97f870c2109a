"""Plain-text approval message for chat channels."""

from __future__ import annotations

from collections.abc import Mapping

from clawkitchen_workflows.runs.models import WorkflowRun
from clawkitchen_workflows.workflows.models import WorkflowFile

CALL_TO_ACTION = "Reply in ClawKitchen: Approve / Request changes / Cancel."
NO_PACKET_LINE = "(No structured approval packet found in run file.)"

# (key in the platform draft, label in the message)
_DRAFT_FIELDS = (
    ("hook", "Hook"),
    ("body", "Body"),
    ("script", "Script"),
    ("assetNotes", "Notes"),
)


def _text(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""


def _approval_packet(run: WorkflowRun, approval_node_id: str) -> Mapping[str, object] | None:
    node = run.node(approval_node_id)
    output = node.output if node is not None and isinstance(node.output, Mapping) else {}
    packet = output.get("packet")
    return packet if isinstance(packet, Mapping) else None


def format_approval_message(
    workflow: WorkflowFile, run: WorkflowRun, approval_node_id: str
) -> str:
    lines = [f"{workflow.display_name} — Approval needed", f"Run: {run.id}", ""]

    packet = _approval_packet(run, approval_node_id)
    if packet is not None:
        note = _text(packet.get("note"))
        if note:
            lines += [note, ""]

    platforms = packet.get("platforms") if packet is not None else None
    if isinstance(platforms, Mapping):
        lines.append("Drafts:")
        for key, draft in platforms.items():
            if not draft:
                continue
            lines += ["", f"— {str(key).upper()} —"]
            if not isinstance(draft, Mapping):
                continue
            for field, label in _DRAFT_FIELDS:
                value = _text(draft.get(field))
                if value:
                    lines.append(f"{label}: {value}")
        lines.append("")
    else:
        lines += [NO_PACKET_LINE, ""]

    lines.append(CALL_TO_ACTION)
    return "\n".join(lines)
