"""Resource snapshots for the project → environment → service → deployment hierarchy.

Every snapshot is immutable.  ``from_node`` constructors accept the ``node``
dict of a GraphQL edge and raise ``ValueError`` on unusable input; the client
turns that into ``MalformedResponse``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any


class DeploymentStatus(StrEnum):
    """Deployment lifecycle status as reported by the platform."""

    BUILDING = "BUILDING"
    DEPLOYING = "DEPLOYING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    CRASHED = "CRASHED"
    REMOVED = "REMOVED"
    REMOVING = "REMOVING"


class LogSeverity(StrEnum):
    """Severity of a single log line."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ResourceKind(StrEnum):
    """Hierarchy level of a resource shown in the host tree."""

    PROJECT = "project"
    ENVIRONMENT = "environment"
    SERVICE = "service"
    DEPLOYMENT = "deployment"


class UnknownDeploymentStatus(ValueError):
    """A deployment node carries a status outside DeploymentStatus (e.g. QUEUED)."""


def _require_str(node: dict[str, Any], key: str) -> str:
    value = node.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"missing or invalid field {key!r}")
    return value


def _parse_time(node: dict[str, Any], key: str) -> datetime:
    raw = _require_str(node, key)
    try:
        return datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValueError(f"invalid timestamp in {key!r}: {raw!r}") from exc


@dataclass(frozen=True)
class Project:
    """Root of the hierarchy."""

    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    description: str | None = None

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> Project:
        description = node.get("description")
        return cls(
            id=_require_str(node, "id"),
            name=_require_str(node, "name"),
            created_at=_parse_time(node, "createdAt"),
            updated_at=_parse_time(node, "updatedAt"),
            description=description if isinstance(description, str) else None,
        )


@dataclass(frozen=True)
class Environment:
    id: str
    name: str
    project_id: str

    @classmethod
    def from_node(cls, node: dict[str, Any], project_id: str) -> Environment:
        return cls(id=_require_str(node, "id"), name=_require_str(node, "name"), project_id=project_id)


@dataclass(frozen=True)
class Service:
    id: str
    name: str
    project_id: str

    @classmethod
    def from_node(cls, node: dict[str, Any], project_id: str) -> Service:
        return cls(id=_require_str(node, "id"), name=_require_str(node, "name"), project_id=project_id)


@dataclass(frozen=True)
class Deployment:
    """A single deployment of a service into an environment.

    ``status`` is the only field whose change between polls matters; the
    transition detector keys on ``id``.
    """

    id: str
    status: DeploymentStatus
    created_at: datetime
    updated_at: datetime
    service_id: str
    environment_id: str
    static_url: str | None = None

    @property
    def bucket(self) -> tuple[str, str]:
        """The (service_id, environment_id) pair this deployment is listed under."""
        return (self.service_id, self.environment_id)

    @classmethod
    def from_node(cls, node: dict[str, Any], service_id: str, environment_id: str) -> Deployment:
        raw_status = _require_str(node, "status")
        try:
            status = DeploymentStatus(raw_status.upper())
        except ValueError as exc:
            raise UnknownDeploymentStatus(f"unknown deployment status: {raw_status!r}") from exc
        static_url = node.get("staticUrl")
        return cls(
            id=_require_str(node, "id"),
            status=status,
            created_at=_parse_time(node, "createdAt"),
            updated_at=_parse_time(node, "updatedAt"),
            service_id=service_id,
            environment_id=environment_id,
            static_url=static_url if isinstance(static_url, str) and static_url else None,
        )


@dataclass(frozen=True)
class LogLine:
    """One line of a fetched log window.  Lines carry no identity."""

    message: str
    timestamp: str
    severity: LogSeverity = LogSeverity.INFO

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> LogLine:
        message = node.get("message")
        if not isinstance(message, str):
            raise ValueError("log line without message")
        timestamp = node.get("timestamp")
        raw_severity = node.get("severity")
        # Build logs carry no severity; anything unrecognised is shown as info.
        try:
            severity = LogSeverity(str(raw_severity).lower()) if raw_severity else LogSeverity.INFO
        except ValueError:
            severity = LogSeverity.INFO
        return cls(
            message=message,
            timestamp=timestamp if isinstance(timestamp, str) else "",
            severity=severity,
        )


@dataclass(frozen=True)
class ResourceRef:
    """Identifies a node in the host tree together with the parent ids needed to expand it.

    ``project_id`` is required to expand an environment (services are scoped
    per project); ``environment_id`` is required to expand a service or to
    read its application logs.
    """

    kind: ResourceKind
    id: str
    project_id: str | None = None
    environment_id: str | None = None
