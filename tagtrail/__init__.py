"""tagtrail: append-only audit trail of container image tag changes."""

__version__ = "0.1.0"
