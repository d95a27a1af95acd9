"""FastAPI factory for the optional tagtrail status API.

The app only reads state handed to it: the running watchers, the change
pipeline and the loaded config.  It never talks to the cluster itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tagtrail.api.routes import metrics_router, router
from tagtrail.api.schemas import ErrorResponse

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tagtrail.models.config import TagtrailConfig
    from tagtrail.pipeline import ChangePipeline

_log = structlog.get_logger(component="api.app")

API_PREFIX = "/api/v1"


async def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    _log.error(
        "status api request failed",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    body = ErrorResponse(error="INTERNAL_ERROR", detail="An unexpected error occurred.")
    return JSONResponse(status_code=500, content=body.model_dump())


def create_app(
    watchers: Sequence[Any],
    pipeline: ChangePipeline | None = None,
    config: TagtrailConfig | None = None,
) -> FastAPI:
    """Build the status API around *watchers*.

    ``/api/v1/status`` reports readiness per watched kind and, when a
    *pipeline* is given, its running counters.  ``/metrics`` serves the
    Prometheus registry.
    """
    from tagtrail import __version__

    app = FastAPI(
        title="tagtrail",
        summary="Container image tag change audit trail",
        version=__version__,
        docs_url=f"{API_PREFIX}/docs",
        redoc_url=None,
        openapi_url=f"{API_PREFIX}/openapi.json",
    )
    app.state.watchers = list(watchers)
    app.state.pipeline = pipeline
    app.state.config = config

    app.include_router(router, prefix=API_PREFIX)
    app.include_router(metrics_router)
    app.add_exception_handler(Exception, _internal_error)
    return app
