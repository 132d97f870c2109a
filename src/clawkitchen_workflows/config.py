"""Configuration for the workflow runs service.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Gateway connection details may also come from the OpenClaw config file
(`<OPENCLAW_HOME>/openclaw.json`) when they are not set explicitly. The gateway is
only needed to deliver approval notifications, so the service starts without it.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from clawkitchen_workflows.paths import team_workspace_dir

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_PORT = 18789


class Settings(BaseSettings):
    """Settings for the run service, REST API and CLI.

    Environment variables:
    - OPENCLAW_HOME            (optional, default ``~/.openclaw``)
    - OPENCLAW_GATEWAY_URL     (optional)
    - OPENCLAW_GATEWAY_TOKEN   (optional)
    - GATEWAY_TIMEOUT_SECONDS  (optional)
    - LOG_LEVEL                (optional)
    - LOG_FORMAT               (optional, json or text)
    - CLAWKITCHEN_CORS_ORIGINS (optional)
    """

    openclaw_home: Path = Field(
        default_factory=lambda: Path.home() / ".openclaw",
        validation_alias="OPENCLAW_HOME",
        description="OpenClaw home directory; team workspaces live under it",
    )

    gateway_url: str = Field(
        default="",
        validation_alias="OPENCLAW_GATEWAY_URL",
        description="Gateway base URL. Derived from openclaw.json when empty.",
    )
    gateway_token: str = Field(
        default="",
        validation_alias="OPENCLAW_GATEWAY_TOKEN",
        description="Gateway bearer token. Read from openclaw.json when empty.",
    )
    gateway_timeout_seconds: float = Field(
        default=15.0,
        validation_alias="GATEWAY_TIMEOUT_SECONDS",
        gt=0,
        description="HTTP timeout for a single gateway tool invocation",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        validation_alias="LOG_FORMAT",
        description="Log line rendering: one JSON object per line, or plain text",
    )

    cors_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        validation_alias="CLAWKITCHEN_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def openclaw_config_file(self) -> Path:
        return self.openclaw_home / "openclaw.json"

    def team_workspace_dir(self, team_id: str) -> Path:
        """Directory holding a team's shared context (workflows, runs, notes)."""

        return team_workspace_dir(self.openclaw_home, team_id)

    def _read_openclaw_config(self) -> dict[str, object]:
        path = self.openclaw_config_file
        if not path.exists():
            return {}
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring unparseable OpenClaw config", extra={"path": str(path)})
            return {}
        return raw if isinstance(raw, dict) else {}

    def _gateway_section(self) -> dict[str, object]:
        gateway = self._read_openclaw_config().get("gateway")
        return gateway if isinstance(gateway, dict) else {}

    def resolved_gateway_url(self) -> str:
        if self.gateway_url.strip():
            return self.gateway_url.strip().rstrip("/")
        port = self._gateway_section().get("port")
        if not isinstance(port, int):
            port = DEFAULT_GATEWAY_PORT
        return f"http://127.0.0.1:{port}"

    def resolved_gateway_token(self) -> str:
        if self.gateway_token.strip():
            return self.gateway_token.strip()
        auth = self._gateway_section().get("auth")
        token = auth.get("token") if isinstance(auth, dict) else None
        return token.strip() if isinstance(token, str) else ""
