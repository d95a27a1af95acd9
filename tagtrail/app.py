"""tagtrail process bootstrap.

Components come up in dependency order:

    logging -> Kubernetes client -> record emitter -> change pipeline
            -> one watcher per kind -> status API (optional)

and are torn down in the reverse order.  A component that fails to stop is
logged and skipped so the rest of the teardown still runs.
"""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from tagtrail.config import load_config
from tagtrail.errors import ConfigError
from tagtrail.models.config import TagtrailConfig
from tagtrail.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

    from tagtrail.collector.watcher import WorkloadWatcher
    from tagtrail.emitter.manager import RecordEmitter
    from tagtrail.pipeline import ChangePipeline

_STOP_TIMEOUT_SECONDS = 15


class _ComponentError(Exception):
    """A component the process cannot run without failed to come up."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"{component} failed to start: {cause}")
        self.component = component
        self.cause = cause


@contextmanager
def _starting(component: str) -> Iterator[None]:
    try:
        yield
    except Exception as exc:
        raise _ComponentError(component, exc) from exc


class TagtrailApp:
    """Owns the watchers, pipeline and sinks of one tagtrail process.

    ``stop()`` may be called on an app that never started, failed half-way
    through ``start()``, or was already stopped.
    """

    def __init__(self, config: TagtrailConfig) -> None:
        self.config = config

        self._api_client: Any = None
        self._apps_api: Any = None
        self._emitter: RecordEmitter | None = None
        self._pipeline: ChangePipeline | None = None
        self._watchers: list[WorkloadWatcher] = []
        self._rest_server: Any = None
        self._rest_task: asyncio.Task[None] | None = None

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def log(self) -> structlog.stdlib.BoundLogger:
        if self._log is None:
            self._log = get_logger("app")
        return self._log

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Bring every component up.

        Raises:
            _ComponentError: the Kubernetes client, emitter, pipeline,
                watchers or status API could not be started.
        """
        setup_logging(self.config.log.level)
        self._log = get_logger("app")
        self.log.info(
            "tagtrail starting",
            version=_tagtrail_version(),
            pattern=self.config.detection.image_pattern,
            excluded_namespaces=list(self.config.excluded_namespaces),
            kinds=list(self.config.watch.kinds),
        )

        await self._connect_cluster()
        self._build_pipeline()
        await self._start_watchers()
        await self._start_status_api()

        self._running = True
        self.log.info("tagtrail running")

    async def _connect_cluster(self) -> None:
        """Configure kubernetes-asyncio: service account first, kubeconfig otherwise."""
        with _starting("k8s_client"):
            import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]
            from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

            try:
                k8s_config.load_incluster_config()
                source = "in-cluster"
            except k8s_config.ConfigException:
                # Unlike the in-cluster loader, this one is a coroutine.
                await k8s_config.load_kube_config()
                source = "kubeconfig"

            self._api_client = k8s_client.ApiClient()
            self._apps_api = k8s_client.AppsV1Api(self._api_client)
        self.log.info("k8s client configured", source=source)

    def _build_pipeline(self) -> None:
        from tagtrail.emitter import build_record_emitter
        from tagtrail.pipeline import build_pipeline

        with _starting("emitter"):
            self._emitter = build_record_emitter(self.config.sinks)
        with _starting("pipeline"):
            self._pipeline = build_pipeline(self.config, self._emitter)
        self.log.info("change pipeline ready", sinks=[s.sink_name for s in self._emitter.sinks])

    async def _start_watchers(self) -> None:
        """Start one watcher per kind, then give each its initial list."""
        from tagtrail.collector import build_watchers

        assert self._pipeline is not None
        with _starting("watchers"):
            self._watchers = build_watchers(self.config, self._pipeline, self._apps_api, self._api_client)
            for watcher in self._watchers:
                await watcher.start()

        for watcher in self._watchers:
            if not await watcher.wait_ready(timeout=self.config.watch.resync_seconds):
                # Not fatal: the watcher keeps retrying its list in the background.
                self.log.warning("initial list still pending", kind=watcher.kind)
        self.log.info("watching workloads", kinds=[w.kind for w in self._watchers])

    async def _start_status_api(self) -> None:
        if not self.config.api.enabled:
            self.log.debug("status api disabled")
            return

        with _starting("status_api"):
            import uvicorn  # type: ignore[import-untyped]

            from tagtrail.api import build_app

            server = uvicorn.Server(
                uvicorn.Config(
                    app=build_app(watchers=self._watchers, pipeline=self._pipeline, config=self.config),
                    host="0.0.0.0",
                    port=self.config.api.port,
                    log_config=None,
                    access_log=False,
                )
            )
            self._rest_task = asyncio.create_task(server.serve(), name="status-api")
            self._rest_server = server
        self.log.info("status api listening", port=self.config.api.port)

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Tear components down in reverse start order."""
        if self._log is None:
            return

        self.log.info("tagtrail stopping")
        self._running = False

        if self._rest_server is not None:
            self._rest_server.should_exit = True
        for watcher in reversed(self._watchers):
            await self._stop_quietly(f"watcher.{watcher.kind}", watcher.stop)
        self._watchers = []

        rest_task, self._rest_task = self._rest_task, None
        if rest_task is not None and not rest_task.done():
            rest_task.cancel()
            await asyncio.gather(rest_task, return_exceptions=True)

        api_client, self._api_client = self._api_client, None
        if api_client is not None:
            await self._stop_quietly("k8s_client", api_client.close)

        self.log.info("tagtrail stopped")

    async def _stop_quietly(self, name: str, stop_fn: Any) -> None:
        try:
            result = stop_fn()
            if asyncio.iscoroutine(result):
                await asyncio.wait_for(result, timeout=_STOP_TIMEOUT_SECONDS)
        except TimeoutError:
            self.log.warning("stop timed out", component=name, timeout=_STOP_TIMEOUT_SECONDS)
        except Exception as exc:
            self.log.error("stop failed", component=name, error=str(exc))


def _tagtrail_version() -> str:
    from tagtrail import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main(overrides: Mapping[str, object] | None = None) -> None:
    """Run tagtrail until SIGINT or SIGTERM.

    Exits with status 1 when the configuration is invalid (before any
    watch is opened) or when a component cannot be started.
    """
    try:
        config = load_config(overrides)
    except ConfigError as exc:
        setup_logging("info")
        get_logger("app").critical("invalid configuration", error=str(exc))
        raise SystemExit(1) from exc

    app = TagtrailApp(config)
    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown.set)

    try:
        await app.start()
        await shutdown.wait()
    except _ComponentError as exc:
        app.log.critical("startup failed", component=exc.component, error=str(exc.cause))
        raise SystemExit(1) from exc
    finally:
        await app.stop()
