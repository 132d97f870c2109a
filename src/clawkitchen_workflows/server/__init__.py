"""FastAPI server adapter for the workflow runs service.

Design intent:
- Keep run semantics in `clawkitchen_workflows.runs.*`
- Keep server-specific concerns (routing, CORS, error envelopes) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from clawkitchen_workflows.server.app import create_app
