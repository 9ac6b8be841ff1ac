"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_ENDPOINT = "https://backboard.railway.app/graphql/v2"


@dataclass
class RemoteConfig:
    """GraphQL endpoint configuration."""

    endpoint: str = DEFAULT_ENDPOINT
    api_token: str = ""
    timeout_seconds: float = 15.0


@dataclass
class PollConfig:
    """Tree and log polling configuration."""

    tree_interval_seconds: float = 30.0
    log_interval_seconds: float = 5.0
    deployments_limit: int = 10
    log_limit: int = 500
    log_auto_refresh: bool = False


@dataclass
class NotificationConfig:
    """Notification channel configuration."""

    webhook_secret_ref: str = ""


@dataclass
class APIConfig:
    """Host bridge REST API configuration."""

    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class RailwatchConfig:
    """Top-level railwatch configuration."""

    remote: RemoteConfig = field(default_factory=RemoteConfig)
    poll: PollConfig = field(default_factory=PollConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
