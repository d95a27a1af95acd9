"""Configuration loading from environment variables and CLI overrides."""

from __future__ import annotations

import os
from collections.abc import Mapping

from tagtrail.detection.classifier import compile_pattern
from tagtrail.detection.namespaces import parse_namespaces
from tagtrail.errors import ConfigError
from tagtrail.models.config import (
    DEFAULT_EXCLUDED_NAMESPACES,
    DEFAULT_RECORD_PATH,
    APIConfig,
    DetectionConfig,
    LogConfig,
    SinkConfig,
    TagtrailConfig,
    WatchConfig,
)

SUPPORTED_KINDS = ("Deployment", "StatefulSet", "DaemonSet")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"TAGTRAIL_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = _env(key, str(default))
    try:
        val = int(raw)
    except ValueError as exc:
        raise ConfigError(f"TAGTRAIL_{key} must be an integer, got {raw!r}") from exc
    return _clamp(val, min_val, max_val)


def _clamp(val: int, min_val: int | None, max_val: int | None) -> int:
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ConfigError(f"Invalid log level: {value}. Must be one of {sorted(valid)}")
    return value.lower()


def _validate_kinds(value: str) -> tuple[str, ...]:
    kinds = parse_namespaces(value)  # same pipe-delimited list format
    if not kinds:
        raise ConfigError("at least one workload kind must be watched")
    unknown = [k for k in kinds if k not in SUPPORTED_KINDS]
    if unknown:
        raise ConfigError(f"Unsupported workload kind(s) {unknown}. Must be among {list(SUPPORTED_KINDS)}")
    return kinds


def load_config(overrides: Mapping[str, object] | None = None) -> TagtrailConfig:
    """Load configuration from TAGTRAIL_* environment variables.

    *overrides* holds command-line values; a key mapped to None falls back
    to the environment.  Recognised keys: image_pattern, excluded_namespaces,
    record_path, stdout, kinds, resync_seconds, report_all_changes,
    report_image_swaps, api_enabled, api_port, log_level.

    Raises:
        ConfigError: the image pattern is missing or invalid, or another
            value is out of its domain.
    """
    given = {k: v for k, v in (overrides or {}).items() if v is not None}

    image_pattern = str(given.get("image_pattern", _env("IMAGE_HOST")))
    compile_pattern(image_pattern)

    excluded = str(given.get("excluded_namespaces", _env("EXCLUDED_NAMESPACES", DEFAULT_EXCLUDED_NAMESPACES)))

    if "resync_seconds" in given:
        resync_seconds = _clamp(int(given["resync_seconds"]), 10, 3600)  # type: ignore[call-overload]
    else:
        resync_seconds = _env_int("RESYNC_SECONDS", 60, min_val=10, max_val=3600)

    if "api_port" in given:
        api_port = _clamp(int(given["api_port"]), 1024, 65535)  # type: ignore[call-overload]
    else:
        api_port = _env_int("API_PORT", 8080, min_val=1024, max_val=65535)

    return TagtrailConfig(
        detection=DetectionConfig(
            image_pattern=image_pattern,
            excluded_namespaces=parse_namespaces(excluded),
            report_all_changes=bool(given.get("report_all_changes", _env_bool("REPORT_ALL_CHANGES", False))),
            report_image_swaps=bool(given.get("report_image_swaps", _env_bool("REPORT_IMAGE_SWAPS", False))),
        ),
        watch=WatchConfig(
            kinds=_validate_kinds(str(given.get("kinds", _env("KINDS", "Deployment")))),
            resync_seconds=resync_seconds,
        ),
        sinks=SinkConfig(
            record_path=str(given.get("record_path", _env("RECORD_PATH", DEFAULT_RECORD_PATH))),
            stdout=bool(given.get("stdout", _env_bool("STDOUT", True))),
        ),
        api=APIConfig(
            enabled=bool(given.get("api_enabled", _env_bool("API_ENABLED", False))),
            port=api_port,
        ),
        log=LogConfig(
            level=_validate_log_level(str(given.get("log_level", _env("LOG_LEVEL", "info")))),
        ),
    )
