"""Exception hierarchy for tagtrail."""

from __future__ import annotations


class TagtrailError(Exception):
    """Base class for all tagtrail errors."""


class ConfigError(TagtrailError):
    """Raised when the process configuration is missing or invalid.

    Always fatal: the process refuses to start.
    """


class EmitError(TagtrailError):
    """Raised by a record sink when a write fails."""

    def __init__(self, sink: str, cause: Exception) -> None:
        super().__init__(f"Sink '{sink}' write failed: {cause}")
        self.sink = sink
        self.cause = cause
