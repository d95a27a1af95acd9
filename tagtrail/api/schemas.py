"""Pydantic response models for the status API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error envelope returned for every non-2xx response."""

    error: str
    detail: str = ""


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str


class WatcherStatus(BaseModel):
    kind: str
    ready: bool
    workloads: int


class LastRecord(BaseModel):
    image_name: str
    old_tag: str
    new_tag: str
    update_at: str


class StatusResponse(BaseModel):
    """Readiness of every watcher plus pipeline counters."""

    ready: bool
    image_pattern: str
    excluded_namespaces: list[str] = Field(default_factory=list)
    watchers: list[WatcherStatus] = Field(default_factory=list)
    events_seen: int = 0
    events_excluded: int = 0
    records_emitted: int = 0
    emit_failures: int = 0
    last_record: LastRecord | None = None
