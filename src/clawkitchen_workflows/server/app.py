"""FastAPI app factory.

Endpoints are intentionally thin wrappers over :class:`RunService`.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clawkitchen_workflows import __version__
from clawkitchen_workflows.config import Settings
from clawkitchen_workflows.notify.gateway import ToolInvoker
from clawkitchen_workflows.runs.service import RunService
from clawkitchen_workflows.server.router import error_response
from clawkitchen_workflows.server.router import router as runs_router

logger = logging.getLogger(__name__)


async def _invalid_body(_request: Request, exc: RequestValidationError) -> JSONResponse:
    # Unparseable JSON and non-object bodies both land here.
    logger.info("Rejected request body", extra={"errors": exc.errors()})
    return error_response("Invalid JSON body", 400)


def create_app(
    settings: Settings | None = None, *, invoker: ToolInvoker | None = None
) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(
        title="ClawKitchen Workflow Runs",
        version=__version__,
        description="File-first workflow runs with a human approval gate.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.state.settings = settings
    app.state.run_service = RunService.from_settings(settings, invoker=invoker)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _invalid_body)  # type: ignore[arg-type]

    app.include_router(runs_router, prefix="/api")
    return app
