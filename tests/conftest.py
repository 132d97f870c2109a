"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from clawkitchen_workflows.errors import GatewayError
from clawkitchen_workflows.notify.notifier import ApprovalNotifier
from clawkitchen_workflows.runs.service import RunService
from clawkitchen_workflows.workflows.models import WorkflowFile

FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=UTC)


class RecordingInvoker:
    """Stand-in for the gateway that records every tool invocation."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple[str, dict[str, object]]] = []

    def invoke(self, tool: str, args: dict[str, object]) -> Any:
        self.calls.append((tool, args))
        if self.fail:
            raise GatewayError("gateway unreachable")
        return {"ok": True}


WorkflowFactory = Callable[..., WorkflowFile]


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def make_workflow() -> WorkflowFactory:
    """Build a workflow from node dicts; keyword arguments override top-level keys."""

    def _make(nodes: list[dict[str, object]], **overrides: object) -> WorkflowFile:
        raw: dict[str, object] = {
            "schema": "clawkitchen.workflow.v1",
            "id": "wf1",
            "name": "Weekly Digest",
            "nodes": nodes,
            "edges": [],
        }
        raw.update(overrides)
        return WorkflowFile.model_validate(raw)

    return _make


@pytest.fixture
def approval_workflow(make_workflow: WorkflowFactory) -> WorkflowFactory:
    """research (llm) -> approve (human_approval) -> publish (tool)."""

    def _make(**overrides: object) -> WorkflowFile:
        return make_workflow(
            [
                {"id": "research", "type": "llm", "name": "Research"},
                {"id": "approve", "type": "human_approval", "name": "Approve"},
                {"id": "publish", "type": "tool", "name": "Publish"},
            ],
            **overrides,
        )

    return _make


@pytest.fixture
def openclaw_home(tmp_path: Path) -> Path:
    home = tmp_path / ".openclaw"
    home.mkdir()
    return home


@pytest.fixture
def invoker() -> RecordingInvoker:
    return RecordingInvoker()


@pytest.fixture
def failing_invoker() -> RecordingInvoker:
    return RecordingInvoker(fail=True)


def _service(home: Path, invoker: RecordingInvoker) -> RunService:
    return RunService(
        openclaw_home=home,
        notifier=ApprovalNotifier(invoker, clock=lambda: FIXED_NOW),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def service(openclaw_home: Path, invoker: RecordingInvoker) -> RunService:
    return _service(openclaw_home, invoker)


@pytest.fixture
def failing_service(openclaw_home: Path, failing_invoker: RecordingInvoker) -> RunService:
    return _service(openclaw_home, failing_invoker)
