"""Prometheus metrics for tagtrail."""

from __future__ import annotations

from prometheus_client import Counter, Gauge

workload_updates_total = Counter(
    "tagtrail_workload_updates_total",
    "Snapshot pairs delivered to the change pipeline.",
    ["kind"],
)

updates_skipped_total = Counter(
    "tagtrail_updates_skipped_total",
    "Snapshot pairs that produced no record.",
    ["reason"],
)

records_emitted_total = Counter(
    "tagtrail_records_emitted_total",
    "Change records written to every configured sink.",
)

sink_writes_total = Counter(
    "tagtrail_sink_writes_total",
    "Record write attempts per sink.",
    ["sink", "success"],
)

watch_restarts_total = Counter(
    "tagtrail_watch_restarts_total",
    "Watch stream restarts by cause.",
    ["kind", "reason"],
)

watched_workloads = Gauge(
    "tagtrail_watched_workloads",
    "Workloads currently held in the watcher cache.",
    ["kind"],
)
