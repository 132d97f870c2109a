"""Minimal client for the OpenClaw gateway ``/tools/invoke`` endpoint."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import requests

from clawkitchen_workflows.config import Settings
from clawkitchen_workflows.errors import GatewayError

logger = logging.getLogger(__name__)


class ToolInvoker(Protocol):
    def invoke(self, tool: str, args: dict[str, object]) -> Any: ...


class GatewayClient:
    """Invokes gateway tools over HTTP with a bearer token.

    Each call is attempted exactly once; failures raise :class:`GatewayError`.
    """

    def __init__(
        self,
        *,
        base_url: str,
        token: str,
        timeout_seconds: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout_seconds
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> GatewayClient:
        return cls(
            base_url=settings.resolved_gateway_url(),
            token=settings.resolved_gateway_token(),
            timeout_seconds=settings.gateway_timeout_seconds,
        )

    def close(self) -> None:
        self._session.close()

    def invoke(self, tool: str, args: dict[str, object]) -> Any:
        if not self._token:
            raise GatewayError(
                "Missing gateway token (gateway.auth.token in openclaw.json or "
                "OPENCLAW_GATEWAY_TOKEN)"
            )

        url = f"{self._base_url}/tools/invoke"
        try:
            resp = self._session.post(
                url,
                json={"tool": tool, "args": args},
                headers={"Authorization": f"Bearer {self._token}"},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise GatewayError(f"tools/invoke request failed: {e}") from e

        try:
            payload = resp.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if not resp.ok or not payload.get("ok"):
            message = _error_message(payload) or f"tools/invoke failed ({resp.status_code})"
            raise GatewayError(message)

        logger.debug("Gateway tool invoked", extra={"tool": tool, "status": resp.status_code})
        return payload.get("result")


def _error_message(payload: dict[str, Any]) -> str:
    err = payload.get("error")
    if isinstance(err, dict):
        msg = err.get("message")
        return msg if isinstance(msg, str) else ""
    if isinstance(err, str):
        return err
    return ""
