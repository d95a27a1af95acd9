"""Tag diff engine.

Compares the monitored images of two snapshots of the same workload and
produces a ChangeRecord for every container whose image base name stayed
the same while its tag changed.

Containers are visited in the old snapshot's container order.  With
``report_all=False`` (the default) only the first change is reported, so
when several containers change in one update the record always belongs to
the container listed first in the old pod template.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from tagtrail.detection.classifier import ImageMatcher
from tagtrail.detection.extractor import extract_images
from tagtrail.models.records import ChangeRecord, utc_now
from tagtrail.models.snapshots import WorkloadSnapshot
from tagtrail.observability.logging import get_logger

_logger = get_logger("detection.diff")


def split_reference(reference: str) -> tuple[str, str] | None:
    """Split ``repo/image:tag`` into ``(base, tag)``.

    Returns None for references that cannot be diffed: no tag, a registry
    port (``host:5000/app:1.0``) or a digest (``app@sha256:...``).
    """
    if "@" in reference:
        return None
    parts = reference.split(":")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


class TagDiffEngine:
    """Finds image tag changes between an old and a new WorkloadSnapshot.

    Args:
        matcher:            Classifier selecting the monitored containers.
        report_all:         Report every changed container instead of the first.
        report_image_swaps: Also report containers whose image base changed.
                            The record then carries the new base as
                            ``image_name`` and the full old reference as
                            ``old_tag``.
        clock:              Source of detection timestamps.
    """

    def __init__(
        self,
        matcher: ImageMatcher,
        report_all: bool = False,
        report_image_swaps: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._matcher = matcher
        self._report_all = report_all
        self._report_image_swaps = report_image_swaps
        self._clock = clock

    def diff(self, old: WorkloadSnapshot, new: WorkloadSnapshot) -> list[ChangeRecord]:
        """Return the change records for the transition *old* -> *new*.

        An empty list means nothing reportable happened, including the case of
        a redelivery with an unchanged resourceVersion.
        """
        if old.resource_version == new.resource_version:
            return []

        old_images = extract_images(old, self._matcher)
        new_images = extract_images(new, self._matcher)

        records: list[ChangeRecord] = []
        for container, old_ref in old_images.items():
            new_ref = new_images.get(container)
            if new_ref is None:
                continue

            record = self._compare(new, container, old_ref, new_ref)
            if record is None:
                continue
            if not self._report_all:
                return [record]
            records.append(record)
        return records

    def _compare(
        self,
        workload: WorkloadSnapshot,
        container: str,
        old_ref: str,
        new_ref: str,
    ) -> ChangeRecord | None:
        old_parts = split_reference(old_ref)
        new_parts = split_reference(new_ref)
        if old_parts is None or new_parts is None:
            _logger.debug(
                "reference_not_diffable",
                namespace=workload.namespace,
                workload=workload.name,
                container=container,
                old_ref=old_ref,
                new_ref=new_ref,
            )
            return None

        old_base, old_tag = old_parts
        new_base, new_tag = new_parts
        if old_base != new_base:
            if not self._report_image_swaps:
                return None
            old_tag = old_ref
        elif old_tag == new_tag:
            return None

        return ChangeRecord(
            image_name=new_base,
            old_tag=old_tag,
            new_tag=new_tag,
            update_at=self._clock(),
            kind=workload.kind,
            namespace=workload.namespace,
            workload=workload.name,
            container=container,
        )
