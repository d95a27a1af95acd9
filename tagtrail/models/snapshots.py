"""Workload snapshot data structures."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ContainerSpec:
    """One container of a pod template."""

    name: str
    image: str


@dataclass(frozen=True)
class WorkloadSnapshot:
    """Immutable view of one workload resource at one point in time.

    ``containers`` keeps the pod template's order; container names are unique
    within a snapshot (the API server enforces this).
    """

    kind: str
    namespace: str
    name: str
    resource_version: str
    containers: tuple[ContainerSpec, ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        """Return the (namespace, name) identity of the workload."""
        return (self.namespace, self.name)

    @classmethod
    def from_raw(cls, kind: str, raw: Mapping[str, Any]) -> WorkloadSnapshot:
        """Build a snapshot from a raw (camelCase) Kubernetes object.

        Missing fields become empty values instead of raising, so a partially
        populated object never aborts processing.
        """
        metadata = raw.get("metadata") or {}
        spec = raw.get("spec") or {}
        template_spec = (spec.get("template") or {}).get("spec") or {}
        containers = tuple(
            ContainerSpec(name=str(c.get("name") or ""), image=str(c.get("image") or ""))
            for c in template_spec.get("containers") or []
            if isinstance(c, Mapping)
        )
        return cls(
            kind=kind,
            namespace=str(metadata.get("namespace") or ""),
            name=str(metadata.get("name") or ""),
            resource_version=str(metadata.get("resourceVersion") or ""),
            containers=containers,
        )
