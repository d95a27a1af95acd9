"""Namespace exclusion filter.

The exclusion set is configured as a pipe-delimited string, e.g.
``kube-system|kube-public|kube-node-lease``.  It is applied twice: pushed
down into list/watch calls as a field selector, and re-checked on every
delivered snapshot pair.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable

_FIELD = "metadata.namespace"


def parse_namespaces(value: str) -> tuple[str, ...]:
    """Split a pipe-delimited namespace list, dropping empty entries and duplicates."""
    names: list[str] = []
    for part in value.split("|"):
        name = part.strip()
        if name and name not in names:
            names.append(name)
    return tuple(names)


def is_excluded(namespace: str, excluded: Collection[str]) -> bool:
    """Exact-match membership test; the empty namespace is never excluded."""
    return bool(namespace) and namespace in excluded


def field_selector(excluded: Iterable[str]) -> str:
    """Build a ``metadata.namespace!=x`` conjunction for the API server."""
    return ",".join(f"{_FIELD}!={name}" for name in excluded if name)
