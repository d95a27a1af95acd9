"""Shared fixtures and fakes for tagtrail tests.

Provides raw Kubernetes object factories and a scripted stand-in for
``kubernetes_asyncio.watch.Watch`` so watcher tests never touch a cluster.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from tagtrail.models.snapshots import WorkloadSnapshot
from tagtrail.observability.logging import setup_logging


@pytest.fixture(autouse=True, scope="session")
def _configure_logging() -> None:
    """Route structlog output to stderr so stdout only ever carries records."""
    setup_logging("debug")


# ---------------------------------------------------------------------------
# Raw object factories
# ---------------------------------------------------------------------------


def make_raw_deployment(
    name: str = "web",
    namespace: str = "shop",
    resource_version: str = "1",
    images: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Create a raw apps/v1 Deployment dict with the given container images."""
    if images is None:
        images = {"app": "registry.example.com/app:1.2.0"}
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": name, "namespace": namespace, "resourceVersion": resource_version},
        "spec": {
            "replicas": 2,
            "template": {
                "metadata": {"labels": {"app": name}},
                "spec": {"containers": [{"name": c, "image": i} for c, i in images.items()]},
            },
        },
    }


def make_list_result(items: list[dict[str, Any]], resource_version: str = "100") -> SimpleNamespace:
    """Mimic a V1DeploymentList returned by a kubernetes_asyncio list call."""
    return SimpleNamespace(items=items, metadata=SimpleNamespace(resource_version=resource_version))


def make_event(event_type: str, raw: dict[str, Any]) -> dict[str, Any]:
    return {"type": event_type, "object": None, "raw_object": raw}


def make_api_client() -> MagicMock:
    """ApiClient whose sanitize_for_serialization passes raw dicts through."""
    api_client = MagicMock()
    api_client.sanitize_for_serialization.side_effect = lambda obj: obj
    return api_client


def make_list_fn(*results: Any) -> AsyncMock:
    """List function returning (or raising) *results* in order, then repeating the last one."""
    queue = list(results)

    async def _list(**kwargs: Any) -> Any:
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    return AsyncMock(side_effect=_list)


# ---------------------------------------------------------------------------
# Watch fake
# ---------------------------------------------------------------------------


class WatchScript:
    """Scripted watch windows shared by every FakeWatch it creates.

    Each ``stream()`` call consumes one window (a list of events or
    exceptions).  When the script is exhausted the stream blocks until the
    watcher is cancelled.
    """

    def __init__(self, *windows: list[Any]) -> None:
        self.windows = list(windows)
        self.calls: list[dict[str, Any]] = []

    def factory(self) -> FakeWatch:
        return FakeWatch(self)


class FakeWatch:
    def __init__(self, script: WatchScript) -> None:
        self._script = script

    async def __aenter__(self) -> FakeWatch:
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None

    def stream(self, func: Any, **kwargs: Any) -> AsyncIterator[dict[str, Any]]:
        self._script.calls.append(kwargs)
        if self._script.windows:
            return _replay(self._script.windows.pop(0))
        return _block()


async def _replay(window: list[Any]) -> AsyncIterator[dict[str, Any]]:
    for item in window:
        await asyncio.sleep(0)
        if isinstance(item, Exception):
            raise item
        yield item


async def _block() -> AsyncIterator[dict[str, Any]]:
    await asyncio.Event().wait()
    yield {}


class RecordingHandler:
    """UpdateHandler that records every delivered pair."""

    def __init__(self) -> None:
        self.pairs: list[tuple[WorkloadSnapshot, WorkloadSnapshot]] = []

    def handle(self, old: WorkloadSnapshot, new: WorkloadSnapshot) -> None:
        self.pairs.append((old, new))


async def wait_for(condition: Any, timeout: float = 2.0) -> None:
    """Poll *condition* until it is truthy or fail after *timeout* seconds."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not condition():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)
