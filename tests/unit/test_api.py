"""Unit tests for the host bridge REST API.

A real DeploymentMonitor runs behind the app with a scripted client, so the
tests cover routing, serialisation and the error envelope together.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from railwatch.api import EventFeed, create_app
from railwatch.client import Unauthorized
from railwatch.models.resources import DeploymentStatus
from railwatch.monitor import UNAUTHORIZED_MESSAGE, DeploymentMonitor
from railwatch.notifications import NotificationDispatcher
from tests.conftest import (
    make_client,
    make_deployment,
    make_environment,
    make_log_line,
    make_project,
    make_service,
)


@pytest.fixture
def remote() -> MagicMock:
    client = make_client()
    client.fetch_projects.return_value = [make_project()]
    client.fetch_environments.return_value = [make_environment()]
    client.fetch_services.return_value = [make_service()]
    client.fetch_deployments.return_value = [make_deployment(status=DeploymentStatus.SUCCESS)]
    client.fetch_logs.return_value = [make_log_line()]
    return client


@pytest.fixture
def feed() -> EventFeed:
    return EventFeed()


@pytest.fixture
def monitor(remote: MagicMock, feed: EventFeed) -> DeploymentMonitor:
    return DeploymentMonitor(client=remote, dispatcher=NotificationDispatcher(listener=feed))


@pytest.fixture
def api(monitor: DeploymentMonitor, feed: EventFeed) -> TestClient:
    return TestClient(create_app(monitor=monitor, feed=feed))


class TestHierarchyRoutes:
    def test_projects(self, api: TestClient) -> None:
        resp = api.get("/api/v1/projects")
        assert resp.status_code == 200
        body = resp.json()
        assert body[0]["id"] == "proj-1"
        assert body[0]["name"] == "shop"

    def test_projects_are_cached_between_requests(self, api: TestClient, remote: MagicMock) -> None:
        api.get("/api/v1/projects")
        api.get("/api/v1/projects")
        assert remote.fetch_projects.await_count == 1

    def test_environments_and_services(self, api: TestClient) -> None:
        assert api.get("/api/v1/projects/proj-1/environments").json()[0]["name"] == "production"
        assert api.get("/api/v1/projects/proj-1/services").json()[0]["name"] == "api"

    def test_deployments(self, api: TestClient) -> None:
        resp = api.get("/api/v1/services/svc-1/environments/env-1/deployments")
        assert resp.status_code == 200
        assert resp.json()[0]["status"] == "SUCCESS"

    def test_select_service_returns_deployments(self, api: TestClient) -> None:
        resp = api.post(
            "/api/v1/select",
            json={"kind": "service", "id": "svc-1", "environment_id": "env-1"},
        )
        assert resp.status_code == 200
        assert resp.json()[0]["service_id"] == "svc-1"

    def test_select_environment_without_project_is_400(self, api: TestClient) -> None:
        resp = api.post("/api/v1/select", json={"kind": "environment", "id": "env-1"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "HTTP_400"

    def test_unknown_kind_is_invalid_request(self, api: TestClient) -> None:
        resp = api.post("/api/v1/select", json={"kind": "cluster", "id": "x"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_REQUEST"

    def test_refresh_refetches(self, api: TestClient, remote: MagicMock) -> None:
        api.get("/api/v1/projects")
        assert api.post("/api/v1/refresh").status_code == 204
        api.get("/api/v1/projects")
        assert remote.fetch_projects.await_count == 2


class TestLogRoutes:
    def test_open_deployment_logs(self, api: TestClient, remote: MagicMock) -> None:
        resp = api.post("/api/v1/logs", json={"kind": "deployment", "id": "d1"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["source"] == "deployment"
        assert body["auto_refresh"] is False
        remote.fetch_logs.assert_awaited_once_with(deployment_id="d1", limit=500)

    def test_logs_for_project_is_400(self, api: TestClient) -> None:
        resp = api.post("/api/v1/logs", json={"kind": "project", "id": "proj-1"})
        assert resp.status_code == 400

    def test_toggle_without_view_is_409(self, api: TestClient) -> None:
        resp = api.post("/api/v1/logs/auto-refresh")
        assert resp.status_code == 409
        assert resp.json()["error"] == "HTTP_409"

    def test_close_view(self, api: TestClient, monitor: DeploymentMonitor) -> None:
        api.post("/api/v1/logs", json={"kind": "deployment", "id": "d1"})
        assert api.delete("/api/v1/logs").status_code == 204
        assert monitor.scheduler.views.current() is None


class TestCredentialRoutes:
    def test_set_credential(self, api: TestClient, remote: MagicMock) -> None:
        resp = api.put("/api/v1/credential", json={"token": "tok-123"})
        assert resp.status_code == 204
        remote.set_credential.assert_called_once_with("tok-123")

    def test_blank_token_is_400(self, api: TestClient, remote: MagicMock) -> None:
        remote.set_credential.side_effect = ValueError("API token must not be empty")
        resp = api.put("/api/v1/credential", json={"token": "   "})
        assert resp.status_code == 400

    def test_clear_credential(self, api: TestClient, remote: MagicMock) -> None:
        assert api.delete("/api/v1/credential").status_code == 204
        remote.clear_credential.assert_called_once()


class TestHealthAndEvents:
    def test_health_ok(self, api: TestClient) -> None:
        body = api.get("/api/v1/health").json()
        assert body["status"] == "ok"
        assert body["monitor"]["suspended"] is False

    def test_rejected_credential_shows_in_health_and_feed(self, api: TestClient, remote: MagicMock) -> None:
        remote.fetch_projects.side_effect = Unauthorized("credential rejected (HTTP 401)", "projects")
        assert api.get("/api/v1/projects").json() == []

        assert api.get("/api/v1/health").json()["status"] == "suspended"
        events = api.get("/api/v1/events").json()
        errors = [event for event in events if event["type"] == "error"]
        assert [event["payload"]["message"] for event in errors] == [UNAUTHORIZED_MESSAGE]

    def test_events_after_cursor(self, api: TestClient) -> None:
        api.post("/api/v1/refresh")
        api.post("/api/v1/refresh")
        events = api.get("/api/v1/events").json()
        assert [event["seq"] for event in events] == [1, 2]
        assert [event["seq"] for event in api.get("/api/v1/events", params={"after": 1}).json()] == [2]

    def test_negative_cursor_is_invalid(self, api: TestClient) -> None:
        assert api.get("/api/v1/events", params={"after": -1}).status_code == 400


def test_unhandled_error_is_500_envelope(feed: EventFeed) -> None:
    monitor = MagicMock()
    monitor.projects = AsyncMock(side_effect=RuntimeError("boom"))
    api = TestClient(create_app(monitor=monitor, feed=feed), raise_server_exceptions=False)
    resp = api.get("/api/v1/projects")
    assert resp.status_code == 500
    assert resp.json() == {"error": "INTERNAL_ERROR", "detail": "An unexpected error occurred."}
