"""Best-effort delivery of approval requests.

Delivery failures never interrupt run creation. They come back as an
:class:`OutboundDelivery` with ``error`` set, which the caller stores on the run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from clawkitchen_workflows.runs.models import (
    OutboundDelivery,
    WorkflowRun,
    iso_timestamp,
    utc_now,
)
from clawkitchen_workflows.workflows.models import WorkflowFile

from .formatter import format_approval_message
from .gateway import ToolInvoker

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "telegram"


class ApprovalNotifier:
    def __init__(self, invoker: ToolInvoker, *, clock: Callable[[], datetime] = utc_now) -> None:
        self._invoker = invoker
        self._clock = clock

    @staticmethod
    def channel_for(workflow: WorkflowFile) -> tuple[str, str]:
        """(provider, target) configured on the workflow; target may be empty."""

        provider = workflow.meta_str("approvalProvider") or DEFAULT_PROVIDER
        return provider, workflow.meta_str("approvalTarget")

    def send_approval_request(
        self, workflow: WorkflowFile, run: WorkflowRun, approval_node_id: str
    ) -> OutboundDelivery | None:
        """Send the approval message; None when the workflow has no target."""

        provider, target = self.channel_for(workflow)
        if not target:
            return None

        message = format_approval_message(workflow, run, approval_node_id)
        try:
            self._invoker.invoke(
                "message",
                {"action": "send", "channel": provider, "target": target, "message": message},
            )
        except Exception as e:
            logger.warning(
                "Approval request delivery failed",
                extra={"run_id": run.id, "provider": provider, "target": target, "error": str(e)},
            )
            return OutboundDelivery(
                provider=provider,
                target=target,
                error=str(e) or e.__class__.__name__,
                attempted_at=iso_timestamp(self._clock()),
            )

        logger.info(
            "Approval request sent",
            extra={"run_id": run.id, "provider": provider, "target": target},
        )
        return OutboundDelivery(
            provider=provider, target=target, sent_at=iso_timestamp(self._clock())
        )
