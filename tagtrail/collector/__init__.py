"""Collector package for tagtrail.

Provides the Kubernetes list/watch facility that feeds workload snapshot
pairs into the change pipeline.

Submodules
----------
watcher -- WorkloadWatcher: snapshot cache, resync, relist on 410, exponential back-off.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from tagtrail.collector.watcher import WorkloadWatcher
from tagtrail.detection.namespaces import field_selector

if TYPE_CHECKING:
    from tagtrail.models.config import TagtrailConfig
    from tagtrail.pipeline import UpdateHandler

# kind -> AppsV1Api cluster-wide list method
LIST_METHODS = {
    "Deployment": "list_deployment_for_all_namespaces",
    "StatefulSet": "list_stateful_set_for_all_namespaces",
    "DaemonSet": "list_daemon_set_for_all_namespaces",
}

__all__ = ["LIST_METHODS", "WorkloadWatcher", "build_watchers"]


def build_watchers(
    config: TagtrailConfig,
    handler: UpdateHandler,
    apps_api: Any,
    api_client: Any,
) -> list[WorkloadWatcher]:
    """Create one watcher per configured kind, sharing *handler*."""
    selector = field_selector(config.excluded_namespaces)
    return [
        WorkloadWatcher(
            kind=kind,
            list_fn=getattr(apps_api, LIST_METHODS[kind]),
            handler=handler,
            api_client=api_client,
            field_selector=selector,
            resync_seconds=config.watch.resync_seconds,
        )
        for kind in config.watch.kinds
    ]
