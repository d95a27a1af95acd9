"""Configuration data structures.

Every config object is frozen: the configuration is built once at startup
and passed explicitly into the components that need it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_EXCLUDED_NAMESPACES = "kube-system|kube-public|kube-node-lease"
DEFAULT_RECORD_PATH = "~/.deploy_image_record.log"


@dataclass(frozen=True)
class DetectionConfig:
    """Change-detection configuration."""

    image_pattern: str
    excluded_namespaces: tuple[str, ...] = ("kube-system", "kube-public", "kube-node-lease")
    report_all_changes: bool = False
    report_image_swaps: bool = False


@dataclass(frozen=True)
class WatchConfig:
    """Workload watcher configuration."""

    kinds: tuple[str, ...] = ("Deployment",)
    resync_seconds: int = 60


@dataclass(frozen=True)
class SinkConfig:
    """Record sink configuration."""

    record_path: str = DEFAULT_RECORD_PATH  # "" disables the file sink
    stdout: bool = True


@dataclass(frozen=True)
class APIConfig:
    """Status API configuration."""

    enabled: bool = False
    port: int = 8080


@dataclass(frozen=True)
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass(frozen=True)
class TagtrailConfig:
    """Top-level tagtrail configuration."""

    detection: DetectionConfig
    watch: WatchConfig = field(default_factory=WatchConfig)
    sinks: SinkConfig = field(default_factory=SinkConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def excluded_namespaces(self) -> tuple[str, ...]:
        return self.detection.excluded_namespaces
