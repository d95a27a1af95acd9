"""Workload watcher: list + watch with a local snapshot cache.

Delivers one (old, new) WorkloadSnapshot pair per observed update of a
watched workload kind to an UpdateHandler.

Lifecycle of the background task:
    relist -> watch (timeout = resync period) -> resync -> watch -> ...

* relist    -- full list; rebuilds the cache and delivers (cached, fresh)
               for every workload whose resourceVersion moved while the
               watch was down.
* watch     -- streams ADDED/MODIFIED/DELETED events from the last seen
               resourceVersion.  ``410 Gone`` triggers a relist.
* resync    -- when a watch window closes normally every cached snapshot is
               redelivered as (s, s); the diff engine absorbs these.
* failures  -- any other error is logged and retried after an exponential
               back-off (1 s doubling to 30 s), starting again with a relist.

Events are delivered serially from the single watcher task.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import Any

from kubernetes_asyncio import watch  # type: ignore[import-untyped]
from kubernetes_asyncio.client.exceptions import ApiException  # type: ignore[import-untyped]

from tagtrail.models.snapshots import WorkloadSnapshot
from tagtrail.observability.logging import get_logger
from tagtrail.observability.metrics import watch_restarts_total, watched_workloads
from tagtrail.pipeline import UpdateHandler

_INITIAL_BACKOFF = 1.0
_MAX_BACKOFF = 30.0
_HTTP_GONE = 410


class _RelistRequired(Exception):
    """The watch resourceVersion expired; the cache must be rebuilt."""


class WorkloadWatcher:
    """Watches one workload kind across all namespaces.

    Args:
        kind:           Workload kind label used in snapshots, logs and metrics.
        list_fn:        kubernetes_asyncio list function for the kind, e.g.
                        ``AppsV1Api.list_deployment_for_all_namespaces``.
        handler:        Receives (old, new) pairs.
        api_client:     ApiClient used to turn listed models into raw dicts.
        field_selector: Server-side filter, e.g. namespace exclusions.
        resync_seconds: Watch window length; cached snapshots are redelivered
                        at the end of every window.
        watch_factory:  Creates the Watch used for streaming.
    """

    def __init__(
        self,
        kind: str,
        list_fn: Callable[..., Awaitable[Any]],
        handler: UpdateHandler,
        api_client: Any,
        field_selector: str = "",
        resync_seconds: int = 60,
        watch_factory: Callable[[], Any] = watch.Watch,
    ) -> None:
        self.kind = kind
        self._list_fn = list_fn
        self._handler = handler
        self._api_client = api_client
        self._field_selector = field_selector
        self._resync_seconds = resync_seconds
        self._watch_factory = watch_factory

        self._store: dict[tuple[str, str], WorkloadSnapshot] = {}
        self._resource_version = ""
        self._ready = asyncio.Event()
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._log = get_logger("collector.watcher", kind=kind)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_ready(self) -> bool:
        """True once the initial list has populated the cache."""
        return self._ready.is_set()

    @property
    def cached_count(self) -> int:
        return len(self._store)

    async def start(self) -> None:
        """Launch the background watch task.  Calling twice is a no-op."""
        if self._task is not None:
            return
        self._running = True
        self._task = asyncio.create_task(self._run(), name=f"watch-{self.kind}")
        self._log.info("watcher started", field_selector=self._field_selector or None)

    async def stop(self) -> None:
        """Cancel the watch task; safe to call on a watcher that never started."""
        self._running = False
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self._log.info("watcher stopped")

    async def wait_ready(self, timeout: float | None = None) -> bool:
        """Wait for the initial list; returns False if *timeout* expires first."""
        try:
            await asyncio.wait_for(self._ready.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        backoff = _INITIAL_BACKOFF
        while self._running:
            try:
                await self._relist()
                backoff = _INITIAL_BACKOFF
                await self._watch_until_relist()
            except _RelistRequired:
                watch_restarts_total.labels(kind=self.kind, reason="expired").inc()
                self._log.info("watch resource version expired; relisting")
            except ApiException as exc:
                if exc.status == _HTTP_GONE:
                    watch_restarts_total.labels(kind=self.kind, reason="expired").inc()
                    self._log.info("watch resource version expired; relisting")
                    continue
                await self._backoff(backoff, exc)
                backoff = min(backoff * 2, _MAX_BACKOFF)
            except Exception as exc:  # noqa: BLE001
                await self._backoff(backoff, exc)
                backoff = min(backoff * 2, _MAX_BACKOFF)

    async def _backoff(self, delay: float, exc: Exception) -> None:
        watch_restarts_total.labels(kind=self.kind, reason="error").inc()
        self._log.warning("watch failed; retrying", error=str(exc), retry_in=delay)
        await asyncio.sleep(delay)

    async def _relist(self) -> None:
        kwargs: dict[str, Any] = {}
        if self._field_selector:
            kwargs["field_selector"] = self._field_selector
        result = await self._list_fn(**kwargs)

        fresh: dict[tuple[str, str], WorkloadSnapshot] = {}
        for item in result.items or []:
            snapshot = WorkloadSnapshot.from_raw(self.kind, self._api_client.sanitize_for_serialization(item))
            fresh[snapshot.key] = snapshot

        previous = self._store
        self._store = fresh
        self._resource_version = str(result.metadata.resource_version or "")
        watched_workloads.labels(kind=self.kind).set(len(fresh))

        for key, snapshot in fresh.items():
            cached = previous.get(key)
            if cached is not None and cached.resource_version != snapshot.resource_version:
                self._deliver(cached, snapshot)

        if not self._ready.is_set():
            self._ready.set()
            self._log.info("watcher ready", workloads=len(fresh))
        else:
            self._log.debug("relisted", workloads=len(fresh))

    async def _watch_until_relist(self) -> None:
        """Stream watch windows back to back; raises _RelistRequired on 410."""
        while self._running:
            kwargs: dict[str, Any] = {
                "resource_version": self._resource_version,
                "timeout_seconds": self._resync_seconds,
                "allow_watch_bookmarks": True,
            }
            if self._field_selector:
                kwargs["field_selector"] = self._field_selector

            async with self._watch_factory() as w:
                async for event in w.stream(self._list_fn, **kwargs):
                    self._apply(event)
            self._resync()

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def _apply(self, event: dict[str, Any]) -> None:
        event_type = str(event.get("type", ""))
        raw = event.get("raw_object")
        if not isinstance(raw, dict):
            raw = self._api_client.sanitize_for_serialization(event.get("object"))

        if event_type == "ERROR":
            if isinstance(raw, dict) and raw.get("code") == _HTTP_GONE:
                raise _RelistRequired()
            raise RuntimeError(f"watch error event: {raw}")

        version = str(((raw or {}).get("metadata") or {}).get("resourceVersion") or "")
        if version:
            self._resource_version = version
        if event_type == "BOOKMARK":
            return

        snapshot = WorkloadSnapshot.from_raw(self.kind, raw or {})
        cached = self._store.get(snapshot.key)

        if event_type == "DELETED":
            self._store.pop(snapshot.key, None)
        elif event_type in ("ADDED", "MODIFIED"):
            self._store[snapshot.key] = snapshot
            if cached is not None:
                self._deliver(cached, snapshot)
        else:
            self._log.debug("ignoring watch event", event_type=event_type)
        watched_workloads.labels(kind=self.kind).set(len(self._store))

    def _resync(self) -> None:
        for snapshot in list(self._store.values()):
            self._deliver(snapshot, snapshot)
        self._log.debug("resynced", workloads=len(self._store))

    def _deliver(self, old: WorkloadSnapshot, new: WorkloadSnapshot) -> None:
        try:
            self._handler.handle(old, new)
        except Exception as exc:  # noqa: BLE001
            self._log.error(
                "handler raised; event dropped",
                namespace=new.namespace,
                name=new.name,
                error=str(exc),
                exc_info=True,
            )
