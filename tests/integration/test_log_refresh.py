"""Integration tests for log views: opening, replacement, and auto-refresh timers."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import httpx
import pytest

from railwatch.client import RailwayClient, Unauthorized
from railwatch.models.config import PollConfig
from railwatch.models.resources import ResourceKind, ResourceRef
from railwatch.monitor import UNAUTHORIZED_MESSAGE, DeploymentMonitor
from railwatch.notifications import NotificationDispatcher
from tests.conftest import make_log_line

_DEPLOYMENT = ResourceRef(ResourceKind.DEPLOYMENT, "d1")
_SERVICE = ResourceRef(ResourceKind.SERVICE, "svc-1", environment_id="env-1")


def _monitor(client: MagicMock, listener: MagicMock, **poll: object) -> DeploymentMonitor:
    return DeploymentMonitor(
        client=client,
        dispatcher=NotificationDispatcher(listener=listener),
        poll=PollConfig(**poll),  # type: ignore[arg-type]
    )


class TestOpen:
    async def test_deployment_logs_are_delivered(self, client: MagicMock, listener: MagicMock) -> None:
        lines = [make_log_line()]
        client.fetch_logs.return_value = lines
        monitor = _monitor(client, listener)

        view = await monitor.open_log_view(_DEPLOYMENT)

        client.fetch_logs.assert_awaited_once_with(deployment_id="d1", limit=500)
        listener.on_logs_updated.assert_called_once_with(view.view_id, lines)
        assert view.auto_refresh is False

    async def test_service_opens_application_logs(self, client: MagicMock, listener: MagicMock) -> None:
        monitor = _monitor(client, listener, log_limit=50)
        view = await monitor.open_log_view(_SERVICE)
        assert view.source == "application"
        client.fetch_logs.assert_awaited_once_with(service_id="svc-1", environment_id="env-1", limit=50)

    async def test_invalid_targets_raise(self, client: MagicMock, listener: MagicMock) -> None:
        monitor = _monitor(client, listener)
        with pytest.raises(ValueError):
            await monitor.open_log_view(ResourceRef(ResourceKind.PROJECT, "proj-1"))
        with pytest.raises(ValueError):
            await monitor.open_log_view(ResourceRef(ResourceKind.SERVICE, "svc-1"))
        client.fetch_logs.assert_not_awaited()

    async def test_auto_refresh_on_open_when_configured(self, client: MagicMock, listener: MagicMock) -> None:
        monitor = _monitor(client, listener, log_auto_refresh=True, log_interval_seconds=0.01)
        view = await monitor.open_log_view(_DEPLOYMENT)
        try:
            assert view.auto_refresh is True
            await asyncio.sleep(0.05)
            assert client.fetch_logs.await_count >= 2
        finally:
            await monitor.stop()

    async def test_suspended_monitor_skips_log_fetch(self, client: MagicMock, listener: MagicMock) -> None:
        client.fetch_projects.side_effect = Unauthorized("rejected", "projects")
        monitor = _monitor(client, listener)
        await monitor.projects()

        await monitor.open_log_view(_DEPLOYMENT)
        client.fetch_logs.assert_not_awaited()


class TestReplacement:
    async def test_result_for_replaced_view_is_discarded(self, client: MagicMock, listener: MagicMock) -> None:
        entered = asyncio.Event()
        release = asyncio.Event()
        old_lines = [make_log_line("old")]
        new_lines = [make_log_line("new")]

        async def fetch_logs(**kwargs: object) -> list:
            if kwargs.get("deployment_id") == "d1":
                entered.set()
                await release.wait()
                return old_lines
            return new_lines

        client.fetch_logs.side_effect = fetch_logs
        monitor = _monitor(client, listener)

        first = asyncio.create_task(monitor.open_log_view(_DEPLOYMENT))
        await entered.wait()
        second = await monitor.open_log_view(_SERVICE)
        release.set()
        await first

        listener.on_logs_updated.assert_called_once_with(second.view_id, new_lines)

    async def test_replacing_view_stops_its_timer(self, client: MagicMock, listener: MagicMock) -> None:
        monitor = _monitor(client, listener, log_interval_seconds=0.01)
        first = await monitor.open_log_view(_DEPLOYMENT)
        assert await monitor.toggle_auto_refresh() is True

        await monitor.open_log_view(_SERVICE)

        assert first.auto_refresh is False
        await monitor.stop()


class TestToggle:
    async def test_toggle_without_view_is_none(self, client: MagicMock, listener: MagicMock) -> None:
        monitor = _monitor(client, listener)
        assert await monitor.toggle_auto_refresh() is None

    async def test_on_off_on_runs_a_single_timer(self, client: MagicMock, listener: MagicMock) -> None:
        monitor = _monitor(client, listener, log_interval_seconds=0.02)
        await monitor.open_log_view(_DEPLOYMENT)

        assert await monitor.toggle_auto_refresh() is True
        assert await monitor.toggle_auto_refresh() is False
        assert await monitor.toggle_auto_refresh() is True

        client.fetch_logs.reset_mock()
        await asyncio.sleep(0.21)
        await monitor.stop()

        # About 10 ticks for one 20ms timer; a leaked second timer would double it.
        assert 1 <= client.fetch_logs.await_count <= 12

    async def test_close_stops_refresh(self, client: MagicMock, listener: MagicMock) -> None:
        monitor = _monitor(client, listener, log_interval_seconds=0.01)
        view = await monitor.open_log_view(_DEPLOYMENT)
        await monitor.toggle_auto_refresh()

        await monitor.close_log_view()
        client.fetch_logs.reset_mock()
        await asyncio.sleep(0.04)

        assert view.auto_refresh is False
        client.fetch_logs.assert_not_awaited()


class TestRejectedCredential:
    async def test_auto_refresh_stops_after_log_request_is_rejected(self, listener: MagicMock) -> None:
        requests = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal requests
            requests += 1
            return httpx.Response(401, json={"message": "invalid token"})

        client = RailwayClient(
            endpoint="https://railway.test/graphql/v2", token="revoked", transport=httpx.MockTransport(handler)
        )
        monitor = DeploymentMonitor(
            client=client,
            dispatcher=NotificationDispatcher(listener=listener),
            poll=PollConfig(log_auto_refresh=True, log_interval_seconds=0.02),
        )
        try:
            await monitor.open_log_view(_DEPLOYMENT)
            await asyncio.sleep(0.2)
        finally:
            await monitor.stop()
            await client.close()

        assert requests == 1
        assert monitor.suspended is True
        listener.on_error.assert_called_once_with(UNAUTHORIZED_MESSAGE)
        listener.on_warning.assert_not_called()

    async def test_new_credential_resumes_log_fetching(self, client: MagicMock, listener: MagicMock) -> None:
        client.fetch_logs.side_effect = Unauthorized("credential rejected (HTTP 401)", "deployment_logs")
        monitor = _monitor(client, listener)
        await monitor.open_log_view(_DEPLOYMENT)
        assert monitor.suspended is True

        client.fetch_logs.side_effect = None
        client.fetch_logs.return_value = [make_log_line()]
        monitor.set_credential("fresh-token")

        assert await monitor.refresh_logs() == [make_log_line()]
