"""Change record emitter for tagtrail.

Writes ChangeRecord instances as NDJSON lines to one or more sinks.

Exports:
    RecordSink       -- Abstract base for all sink implementations.
    RecordEmitter    -- Writes a record to every sink, one attempt each.
    StreamSink       -- Standard output (or any text stream).
    FileSink         -- Append-only file, opened per record.
    serialize_record -- Fixed-order single-line JSON encoding.
    parse_record     -- Inverse of serialize_record.
    build_record_emitter -- Factory used by the application bootstrap.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from tagtrail.emitter.file import FileSink
from tagtrail.emitter.manager import RecordEmitter, RecordSink, parse_record, serialize_record
from tagtrail.emitter.stream import StreamSink

if TYPE_CHECKING:
    from tagtrail.models.config import SinkConfig

_log = structlog.get_logger(component="emitter")

__all__ = [
    "FileSink",
    "RecordEmitter",
    "RecordSink",
    "StreamSink",
    "build_record_emitter",
    "parse_record",
    "serialize_record",
]


def build_record_emitter(config: SinkConfig) -> RecordEmitter:
    """Build a RecordEmitter with the sinks enabled in *config*."""
    sinks: list[RecordSink] = []

    if config.stdout:
        sinks.append(StreamSink())
        _log.info("stdout_sink_enabled")

    if config.record_path:
        file_sink = FileSink(config.record_path)
        if not file_sink.path.parent.is_dir():
            # Writes will fail and be logged per record; warn once up front.
            _log.warning("file_sink_directory_missing", path=str(file_sink.path))
        sinks.append(file_sink)
        _log.info("file_sink_enabled", path=str(file_sink.path))

    if not sinks:
        _log.warning("no_record_sinks_configured")

    return RecordEmitter(sinks=sinks)
