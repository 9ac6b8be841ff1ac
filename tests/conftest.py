"""Shared factories and fakes for railwatch tests.

Provides snapshot factories with sensible defaults and a scripted fake of
RailwayClient so monitor tests run without any network.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from railwatch.models.resources import (
    Deployment,
    DeploymentStatus,
    Environment,
    LogLine,
    LogSeverity,
    Project,
    Service,
)
from railwatch.notifications import NotificationDispatcher

_NOW = datetime.now(UTC)
_1H_AGO = _NOW - timedelta(hours=1)


def make_project(project_id: str = "proj-1", name: str = "shop") -> Project:
    return Project(id=project_id, name=name, created_at=_1H_AGO, updated_at=_NOW, description=None)


def make_environment(env_id: str = "env-1", project_id: str = "proj-1", name: str = "production") -> Environment:
    return Environment(id=env_id, name=name, project_id=project_id)


def make_service(service_id: str = "svc-1", project_id: str = "proj-1", name: str = "api") -> Service:
    return Service(id=service_id, name=name, project_id=project_id)


def make_deployment(
    deployment_id: str = "d1",
    status: DeploymentStatus = DeploymentStatus.BUILDING,
    service_id: str = "svc-1",
    environment_id: str = "env-1",
) -> Deployment:
    return Deployment(
        id=deployment_id,
        status=status,
        created_at=_1H_AGO,
        updated_at=_NOW,
        service_id=service_id,
        environment_id=environment_id,
    )


def make_log_line(message: str = "listening on :8080", severity: LogSeverity = LogSeverity.INFO) -> LogLine:
    return LogLine(message=message, timestamp=_NOW.isoformat(), severity=severity)


def make_client() -> MagicMock:
    """A RailwayClient stand-in whose fetches return empty lists by default."""
    client = MagicMock()
    client.has_credential = True
    client.fetch_projects = AsyncMock(return_value=[])
    client.fetch_environments = AsyncMock(return_value=[])
    client.fetch_services = AsyncMock(return_value=[])
    client.fetch_deployments = AsyncMock(return_value=[])
    client.fetch_deployment_status = AsyncMock(return_value=None)
    client.fetch_logs = AsyncMock(return_value=[])
    client.check_connection = AsyncMock(return_value=None)
    client.set_credential = MagicMock()
    client.clear_credential = MagicMock()
    return client


@pytest.fixture
def client() -> MagicMock:
    return make_client()


@pytest.fixture
def listener() -> MagicMock:
    return MagicMock()


@pytest.fixture
def dispatcher(listener: MagicMock) -> NotificationDispatcher:
    return NotificationDispatcher(listener=listener)
