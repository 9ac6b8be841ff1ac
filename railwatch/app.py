"""Application bootstrap for railwatch.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → notifications → client → monitor (tree poll)
              → credential check → REST bridge

Shutdown is graceful: components are stopped in reverse startup order.
Each component's stop error is caught and logged independently so that a
single failure does not prevent the rest from shutting down cleanly.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

from railwatch.config import load_config
from railwatch.models.config import RailwatchConfig
from railwatch.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

    from railwatch.api.feed import EventFeed
    from railwatch.client import RailwayClient
    from railwatch.monitor import DeploymentMonitor
    from railwatch.notifications import NotificationDispatcher

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class RailwatchApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    Calling ``stop()`` on an app that was never started (or already
    stopped) is safe.
    """

    def __init__(self, config: RailwatchConfig | None = None) -> None:
        self.config = config

        self._feed: EventFeed | None = None
        self._dispatcher: NotificationDispatcher | None = None
        self._client: RailwayClient | None = None
        self.monitor: DeploymentMonitor | None = None
        self._rest_server: object | None = None

        self._background_tasks: list[asyncio.Task[None]] = []

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        if self.config is None:
            self.config = load_config()

        setup_logging(self.config.log.level)
        self._log = get_logger("app")
        self._log.info("railwatch starting", version=_railwatch_version())

        await self._start_notifications()
        await self._start_client()
        await self._start_monitor()
        await self._check_credential()
        await self._start_rest()

        self._running = True
        self._log.info("railwatch started", tree_interval=self.config.poll.tree_interval_seconds)

    async def _start_notifications(self) -> None:
        """Build the dispatcher with the event feed as host listener."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting notifications")
        try:
            from railwatch.api.feed import EventFeed
            from railwatch.notifications import build_notification_dispatcher

            self._feed = EventFeed()
            self._dispatcher = build_notification_dispatcher(self.config.notifications, listener=self._feed)
            self._log.info("notifications started")
        except Exception as exc:
            raise _ComponentError("notifications", exc) from exc

    async def _start_client(self) -> None:
        assert self._log is not None
        assert self.config is not None
        assert self._dispatcher is not None
        self._log.debug("starting remote client")
        try:
            from railwatch.client import RailwayClient

            remote = self.config.remote
            self._client = RailwayClient(
                endpoint=remote.endpoint,
                token=remote.api_token or None,
                timeout=remote.timeout_seconds,
                on_warning=self._dispatcher.warning,
            )
            self._log.info("remote client started", endpoint=remote.endpoint, has_credential=bool(remote.api_token))
        except Exception as exc:
            raise _ComponentError("client", exc) from exc

    async def _start_monitor(self) -> None:
        """Create the monitor and start the tree poll timer."""
        assert self._log is not None
        assert self.config is not None
        assert self._client is not None
        self._log.debug("starting monitor")
        try:
            from railwatch.monitor import DeploymentMonitor

            monitor = DeploymentMonitor(
                client=self._client,
                dispatcher=self._dispatcher,
                poll=self.config.poll,
            )
            monitor.start()
            self.monitor = monitor
            self._log.info("monitor started")
        except Exception as exc:
            raise _ComponentError("monitor", exc) from exc

    async def _check_credential(self) -> None:
        """Validate the configured credential.  Non-fatal: the host can set one later."""
        assert self._log is not None
        assert self.monitor is not None
        if self._client is None or not self._client.has_credential:
            self._log.warning("no api token configured; set one through the host bridge")
            if self._dispatcher is not None:
                self._dispatcher.warning("Railway Monitor: set an API token to start monitoring")
            return
        ok = await self.monitor.check_credential()
        self._log.info("credential check finished", ok=ok)

    async def _start_rest(self) -> None:
        """Start the uvicorn host bridge.  Non-fatal: embedders may drive the monitor directly."""
        assert self._log is not None
        assert self.config is not None
        if not self.config.api.enabled:
            self._log.info("rest bridge disabled (api.enabled=false)")
            return
        self._log.debug("starting rest bridge")
        try:
            import uvicorn

            from railwatch.api import create_app

            fastapi_app = create_app(monitor=self.monitor, feed=self._feed)
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host=self.config.api.host,
                port=self.config.api.port,
                log_config=None,  # structlog handles all logging
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            task = asyncio.create_task(server.serve(), name="rest-server")
            self._background_tasks.append(task)
            self._rest_server = server
            self._log.info("rest bridge started", host=self.config.api.host, port=self.config.api.port)
        except Exception as exc:
            self._log.warning("rest bridge failed to start; host bridge unavailable", error=str(exc))
            self._rest_server = None

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Gracefully stop all components in reverse startup order."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("railwatch shutting down")

        self._running = False

        if self._rest_server is not None:
            self._rest_server.should_exit = True  # type: ignore[attr-defined]
        for task in reversed(self._background_tasks):
            if not task.done():
                task.cancel()
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks.clear()

        await self._stop_component("monitor", self.monitor)
        await self._stop_component("client", self._client)
        await self._stop_component("notifications", self._dispatcher)

        log.info("railwatch stopped")

    async def _stop_component(self, name: str, component: object | None) -> None:
        """Call stop() on a component if it has that method, catching all errors."""
        if component is None:
            return
        log = self._log or get_logger("app")
        stop_fn = getattr(component, "stop", None)
        if stop_fn is None:
            return
        try:
            result = stop_fn()
            if asyncio.iscoroutine(result):
                await asyncio.wait_for(result, timeout=_SHUTDOWN_GRACE_SECONDS)
        except TimeoutError:
            log.warning("component stop timed out", component=name, timeout=_SHUTDOWN_GRACE_SECONDS)
        except Exception as exc:
            log.error("component stop raised an error", component=name, error=str(exc))


def _railwatch_version() -> str:
    from railwatch import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = RailwatchApp()
    loop = asyncio.get_running_loop()

    shutdown_triggered = False

    def _request_shutdown() -> None:
        nonlocal shutdown_triggered
        if shutdown_triggered:
            return
        shutdown_triggered = True
        asyncio.create_task(app.stop(), name="shutdown")

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.start()
        while app._running:
            await asyncio.sleep(1)
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app._running:
            await app.stop()


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())
