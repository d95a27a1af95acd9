"""Change pipeline: the per-event handler invoked by the workload watchers.

Flow for one delivered (old, new) pair:
    namespace exclusion -> tag diff -> emit every resulting record

The handler is synchronous and spawns no work of its own, so records reach
the sinks in the order the watcher delivered the transitions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from tagtrail.detection.classifier import ImageMatcher
from tagtrail.detection.diff import TagDiffEngine
from tagtrail.detection.namespaces import is_excluded
from tagtrail.emitter.manager import RecordEmitter
from tagtrail.models.config import TagtrailConfig
from tagtrail.models.records import ChangeRecord
from tagtrail.models.snapshots import WorkloadSnapshot
from tagtrail.observability.logging import get_logger
from tagtrail.observability.metrics import updates_skipped_total, workload_updates_total

_logger = get_logger("pipeline")


class UpdateHandler(Protocol):
    """Receives one (old, new) snapshot pair per observed workload update."""

    def handle(self, old: WorkloadSnapshot, new: WorkloadSnapshot) -> object: ...


@dataclass
class PipelineStats:
    """Running counters exposed by the status API."""

    events_seen: int = 0
    events_excluded: int = 0
    records_emitted: int = 0
    emit_failures: int = 0
    last_record: ChangeRecord | None = None


class ChangePipeline:
    """Default UpdateHandler: detects tag changes and emits them."""

    def __init__(
        self,
        config: TagtrailConfig,
        engine: TagDiffEngine,
        emitter: RecordEmitter,
    ) -> None:
        self._excluded = config.excluded_namespaces
        self._engine = engine
        self._emitter = emitter
        self.stats = PipelineStats()

    def handle(self, old: WorkloadSnapshot, new: WorkloadSnapshot) -> list[ChangeRecord]:
        """Process one snapshot pair and return the records that were emitted."""
        self.stats.events_seen += 1
        workload_updates_total.labels(kind=new.kind).inc()

        if is_excluded(new.namespace, self._excluded):
            self.stats.events_excluded += 1
            updates_skipped_total.labels(reason="namespace_excluded").inc()
            return []

        if old.resource_version == new.resource_version:
            updates_skipped_total.labels(reason="unchanged").inc()
            return []

        records = self._engine.diff(old, new)
        if not records:
            updates_skipped_total.labels(reason="no_tag_change").inc()
            return []

        for record in records:
            if self._emitter.emit(record):
                self.stats.records_emitted += 1
            else:
                self.stats.emit_failures += 1
            self.stats.last_record = record
        return records


def build_pipeline(config: TagtrailConfig, emitter: RecordEmitter) -> ChangePipeline:
    """Wire the detection core from *config*."""
    engine = TagDiffEngine(
        ImageMatcher(config.detection.image_pattern),
        report_all=config.detection.report_all_changes,
        report_image_swaps=config.detection.report_image_swaps,
    )
    _logger.debug(
        "pipeline_built",
        pattern=config.detection.image_pattern,
        excluded_namespaces=list(config.excluded_namespaces),
        report_all=config.detection.report_all_changes,
        report_image_swaps=config.detection.report_image_swaps,
    )
    return ChangePipeline(config, engine, emitter)
