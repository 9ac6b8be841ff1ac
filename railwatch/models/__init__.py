"""Core data structures for railwatch."""

from railwatch.models.config import RailwatchConfig
from railwatch.models.events import Notice, NoticeKind, TransitionEvent
from railwatch.models.resources import (
    Deployment,
    DeploymentStatus,
    Environment,
    LogLine,
    LogSeverity,
    Project,
    ResourceKind,
    ResourceRef,
    Service,
    UnknownDeploymentStatus,
)

__all__ = [
    "Deployment",
    "DeploymentStatus",
    "Environment",
    "LogLine",
    "LogSeverity",
    "Notice",
    "NoticeKind",
    "Project",
    "RailwatchConfig",
    "ResourceKind",
    "ResourceRef",
    "Service",
    "TransitionEvent",
    "UnknownDeploymentStatus",
]
