"""Structured logging configuration.

Log records go to stderr so that CLI commands can keep stdout for their JSON
results. Two renderings are available: one JSON object per line (default) or a
plain human-readable line for local use.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

_RESERVED_LOG_RECORD_ATTRS: set[str] = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"asctime", "message", "taskName"}

# Identifiers that are lifted to the top level of a JSON log line.
_CONTEXT_KEYS = ("team_id", "workflow_id", "run_id")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_LOG_RECORD_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """Render a log record as a single JSON line.

    ``team_id``, ``workflow_id`` and ``run_id`` passed through ``extra=`` sit next to
    the message; any other extra keys end up under ``extra``.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra = _extra_fields(record)
        for key in _CONTEXT_KEYS:
            if key in extra:
                payload[key] = extra.pop(key)
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """One readable line per record with extra fields appended as ``key=value``."""

    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extra = _extra_fields(record)
        if not extra:
            return line
        fields = " ".join(f"{k}={v}" for k, v in extra.items())
        head, sep, tail = line.partition("\n")
        return f"{head} [{fields}]{sep}{tail}"


def configure_logging(level: str, *, fmt: str = "json", stream: TextIO | None = None) -> None:
    """Configure root logging; ``fmt`` is ``json`` or ``text``."""

    root = logging.getLogger()

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=stream or sys.stderr)
    handler.setFormatter(TextFormatter() if fmt == "text" else JsonFormatter())

    root.addHandler(handler)
    root.setLevel(level.upper())

    # urllib3 logs every gateway connection at DEBUG.
    logging.getLogger("urllib3").setLevel(max(root.level, logging.INFO))
