"""Change-detection core.

Submodules
----------
classifier -- ImageMatcher: decides whether a container image is monitored.
extractor  -- extract_images: container name -> image map for monitored containers.
namespaces -- Namespace exclusion set parsing, membership and field selectors.
diff       -- TagDiffEngine: finds image tag changes between two snapshots.
"""

from tagtrail.detection.classifier import ImageMatcher, compile_pattern, matches
from tagtrail.detection.diff import TagDiffEngine, split_reference
from tagtrail.detection.extractor import ImageMap, extract_images
from tagtrail.detection.namespaces import field_selector, is_excluded, parse_namespaces

__all__ = [
    "ImageMap",
    "ImageMatcher",
    "TagDiffEngine",
    "compile_pattern",
    "extract_images",
    "field_selector",
    "is_excluded",
    "matches",
    "parse_namespaces",
    "split_reference",
]
