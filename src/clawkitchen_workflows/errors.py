"""Exceptions shared by the run service and the HTTP layer.

Only :class:`InvalidRequest` (and subclasses) map to a 400 response. Anything else
raised while handling a request is reported as a 500 with the message passed through.
"""

from __future__ import annotations


class InvalidRequest(ValueError):
    """The request itself is malformed or not applicable to the target run."""


class UnsupportedAction(InvalidRequest):
    def __init__(self, action: str) -> None:
        super().__init__(f"Unsupported action: {action}")
        self.action = action


class RunNotAwaitingApproval(InvalidRequest):
    def __init__(self, run_id: str) -> None:
        super().__init__("Run is not awaiting approval")
        self.run_id = run_id


class GatewayError(RuntimeError):
    """The OpenClaw gateway rejected or failed a tool invocation."""
