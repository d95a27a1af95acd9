"""Image reference classifier.

A container is *monitored* when the configured regular expression matches
anywhere in its full image reference (registry, repository and tag).
"""

from __future__ import annotations

import re

from tagtrail.errors import ConfigError


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile the monitor pattern, failing fast on an empty or invalid one."""
    if not pattern:
        raise ConfigError("image pattern must not be empty")
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigError(f"invalid image pattern {pattern!r}: {exc}") from exc


class ImageMatcher:
    """Classifies image references against a pattern compiled once at startup."""

    def __init__(self, pattern: str) -> None:
        self._regex = compile_pattern(pattern)

    @property
    def pattern(self) -> str:
        return self._regex.pattern

    def matches(self, reference: str) -> bool:
        """Return True if *reference* is monitored.

        Never raises: anything that cannot be matched is simply not monitored.
        """
        try:
            return self._regex.search(reference) is not None
        except TypeError:
            return False


def matches(reference: str, pattern: str) -> bool:
    """One-shot form of ImageMatcher.matches; a bad pattern matches nothing."""
    try:
        return ImageMatcher(pattern).matches(reference)
    except ConfigError:
        return False
