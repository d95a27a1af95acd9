"""Snapshot image extractor."""

from __future__ import annotations

from tagtrail.detection.classifier import ImageMatcher
from tagtrail.models.snapshots import WorkloadSnapshot

# container name -> image reference, in the snapshot's container order
ImageMap = dict[str, str]


def extract_images(snapshot: WorkloadSnapshot, matcher: ImageMatcher) -> ImageMap:
    """Return the images of the monitored containers of *snapshot*.

    Unmonitored containers are omitted entirely.
    """
    images: ImageMap = {}
    for container in snapshot.containers:
        if matcher.matches(container.image):
            images[container.name] = container.image
    return images
