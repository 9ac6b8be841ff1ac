"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from railwatch.models.config import (
    DEFAULT_ENDPOINT,
    APIConfig,
    LogConfig,
    NotificationConfig,
    PollConfig,
    RailwatchConfig,
    RemoteConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"RAILWATCH_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float | None = None, max_val: float | None = None) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_endpoint(value: str) -> str:
    if not value.startswith(("http://", "https://")):
        raise ValueError(f"Invalid endpoint URL: {value}")
    return value


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def load_config() -> RailwatchConfig:
    """Load configuration from RAILWATCH_* environment variables."""
    return RailwatchConfig(
        remote=RemoteConfig(
            endpoint=_validate_endpoint(_env("ENDPOINT", DEFAULT_ENDPOINT)),
            api_token=_env("API_TOKEN", "").strip(),
            timeout_seconds=_env_float("REQUEST_TIMEOUT", 15.0, min_val=1.0, max_val=120.0),
        ),
        poll=PollConfig(
            tree_interval_seconds=_env_float("TREE_POLL_INTERVAL", 30.0, min_val=5.0, max_val=3600.0),
            log_interval_seconds=_env_float("LOG_POLL_INTERVAL", 5.0, min_val=1.0, max_val=300.0),
            deployments_limit=_env_int("DEPLOYMENTS_LIMIT", 10, min_val=1, max_val=100),
            log_limit=_env_int("LOG_LIMIT", 500, min_val=1, max_val=5000),
            log_auto_refresh=_env_bool("LOG_AUTO_REFRESH", False),
        ),
        notifications=NotificationConfig(
            webhook_secret_ref=_env("NOTIFICATIONS_WEBHOOK_SECRET_REF", ""),
        ),
        api=APIConfig(
            enabled=_env_bool("API_ENABLED", True),
            host=_env("API_HOST", "127.0.0.1"),
            port=_env_int("API_PORT", 8080, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
