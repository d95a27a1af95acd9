"""Status API routes."""

from __future__ import annotations

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from tagtrail.api.schemas import HealthResponse, LastRecord, StatusResponse, WatcherStatus
from tagtrail.emitter.manager import serialize_record

router = APIRouter()
metrics_router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    from tagtrail import __version__

    return HealthResponse(version=__version__)


@router.get("/status", response_model=StatusResponse)
async def status(request: Request) -> JSONResponse:
    """Return 200 once every watcher has listed its kind, 503 before."""
    state = request.app.state
    watchers = [
        WatcherStatus(kind=w.kind, ready=w.is_ready, workloads=w.cached_count) for w in state.watchers
    ]
    ready = bool(watchers) and all(w.ready for w in watchers)

    body = StatusResponse(
        ready=ready,
        image_pattern=state.config.detection.image_pattern if state.config else "",
        excluded_namespaces=list(state.config.excluded_namespaces) if state.config else [],
        watchers=watchers,
    )
    stats = getattr(state.pipeline, "stats", None)
    if stats is not None:
        body.events_seen = stats.events_seen
        body.events_excluded = stats.events_excluded
        body.records_emitted = stats.records_emitted
        body.emit_failures = stats.emit_failures
        if stats.last_record is not None:
            body.last_record = LastRecord.model_validate_json(serialize_record(stats.last_record))

    return JSONResponse(status_code=200 if ready else 503, content=body.model_dump())


@metrics_router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
