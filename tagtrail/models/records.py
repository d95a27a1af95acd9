"""Change record data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current UTC time truncated to whole seconds (the RFC 3339 resolution we emit)."""
    return datetime.now(tz=UTC).replace(microsecond=0)


@dataclass(frozen=True)
class ChangeRecord:
    """A detected image tag change.

    Produced by the Tag Diff Engine, consumed by the emitter. Only the first
    four fields are serialised; the remaining ones are context for logs.
    """

    image_name: str
    old_tag: str
    new_tag: str
    update_at: datetime = field(default_factory=utc_now)
    kind: str = field(default="", compare=False)
    namespace: str = field(default="", compare=False)
    workload: str = field(default="", compare=False)
    container: str = field(default="", compare=False)
