"""Record emitter and sink base class.

RecordSink   -- ABC every sink must implement.
RecordEmitter -- Serialises a ChangeRecord once and writes the line to every
                 sink; a failing sink never blocks the others or the
                 detection pipeline, and is never retried.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import UTC, datetime

import structlog

from tagtrail.errors import EmitError
from tagtrail.models.records import ChangeRecord
from tagtrail.observability.metrics import records_emitted_total, sink_writes_total

_log = structlog.get_logger(component="emitter.manager")

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def serialize_record(record: ChangeRecord) -> str:
    """Encode *record* as a single-line JSON object with a fixed key order."""
    payload = {
        "image_name": record.image_name,
        "old_tag": record.old_tag,
        "new_tag": record.new_tag,
        "update_at": record.update_at.astimezone(UTC).strftime(_TIMESTAMP_FORMAT),
    }
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def parse_record(line: str) -> ChangeRecord:
    """Decode a line written by serialize_record.

    Raises:
        ValueError: the line is not a valid record.
    """
    payload = json.loads(line)
    try:
        return ChangeRecord(
            image_name=payload["image_name"],
            old_tag=payload["old_tag"],
            new_tag=payload["new_tag"],
            update_at=datetime.fromisoformat(payload["update_at"]).astimezone(UTC),
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"not a change record: {line!r}") from exc


class RecordSink(ABC):
    """Abstract base class for all record sinks.

    ``write`` must be a complete, unbuffered write of one line and must raise
    EmitError on failure.
    """

    @property
    @abstractmethod
    def sink_name(self) -> str:
        """Identifier used in metrics and logs."""

    @abstractmethod
    def write(self, line: str) -> None:
        """Write *line* followed by a newline."""


class RecordEmitter:
    """Writes each change record to every configured sink exactly once."""

    def __init__(self, sinks: list[RecordSink]) -> None:
        self._sinks = sinks

    @property
    def sinks(self) -> list[RecordSink]:
        return list(self._sinks)

    def emit(self, record: ChangeRecord) -> bool:
        """Emit *record*; returns True when every sink accepted it.

        Never raises.  Serialisation failures drop the record, sink failures
        are logged per sink.
        """
        try:
            line = serialize_record(record)
        except (AttributeError, TypeError, ValueError) as exc:
            _log.error("record_serialization_failed", image_name=record.image_name, error=str(exc))
            return False

        ok = True
        for sink in self._sinks:
            try:
                sink.write(line)
            except EmitError as exc:
                ok = False
                sink_writes_total.labels(sink=sink.sink_name, success="false").inc()
                _log.error("record_write_failed", sink=sink.sink_name, error=str(exc.cause))
                continue
            sink_writes_total.labels(sink=sink.sink_name, success="true").inc()

        if ok:
            records_emitted_total.inc()
        _log.info(
            "image_tag_changed",
            kind=record.kind,
            namespace=record.namespace,
            workload=record.workload,
            container=record.container,
            image_name=record.image_name,
            old_tag=record.old_tag,
            new_tag=record.new_tag,
            written=ok,
        )
        return ok
