"""Deployment monitor: the state-tracking core behind a host UI.

Data flows one way: the poll scheduler drives the client, results land in
the hierarchy cache, deployments go through the transition detector, and
everything the host must render or show leaves through the notification
dispatcher.

The host drives the monitor through:
    refresh, select_resource, open_log_view, toggle_auto_refresh,
    close_log_view, set_credential, clear_credential

All methods run on the event loop thread; the cache and the detector are
only mutated from here, so no lock is taken.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable, Sequence
from typing import Any

import structlog

from railwatch.cache import CacheLevel, HierarchyCache
from railwatch.client import MalformedResponse, RailwayClient, Unauthorized, Unreachable
from railwatch.models.config import PollConfig
from railwatch.models.resources import (
    Deployment,
    DeploymentStatus,
    Environment,
    LogLine,
    Project,
    ResourceKind,
    ResourceRef,
    Service,
)
from railwatch.notifications import NotificationDispatcher
from railwatch.scheduler import DEFAULT_PANEL, LogView, PollScheduler
from railwatch.scheduler.timer import TickFn
from railwatch.tracker import TransitionDetector

_log = structlog.get_logger(component="monitor")

UNAUTHORIZED_MESSAGE = "Railway API authentication failed. Please check your API token."


class DeploymentMonitor:
    """Owns the cache, the detector and the poll scheduler for one session.

    Args:
        client:     RailwayClient used for every remote fetch.
        dispatcher: Outbound boundary to the host UI and channels.
        poll:       Intervals and limits; defaults to PollConfig().
        cache:      Optional pre-built HierarchyCache.
        detector:   Optional pre-built TransitionDetector.
        scheduler:  Optional pre-built PollScheduler.
    """

    def __init__(
        self,
        client: RailwayClient,
        dispatcher: NotificationDispatcher | None = None,
        poll: PollConfig | None = None,
        cache: HierarchyCache | None = None,
        detector: TransitionDetector | None = None,
        scheduler: PollScheduler | None = None,
    ) -> None:
        self._client = client
        self._poll = poll or PollConfig()
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.cache = cache or HierarchyCache()
        self.detector = detector or TransitionDetector()
        self.scheduler = scheduler or PollScheduler(
            tree_interval=self._poll.tree_interval_seconds,
            log_interval=self._poll.log_interval_seconds,
        )
        self._inflight: dict[tuple[CacheLevel, Hashable], asyncio.Task[list[Any]]] = {}
        self._suspended = False

    @property
    def suspended(self) -> bool:
        """True after the credential was rejected, until a new one is set."""
        return self._suspended

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        self.scheduler.start_tree(self.poll_deployments)

    async def stop(self) -> None:
        await self.scheduler.stop()
        for task in list(self._inflight.values()):
            task.cancel()
        self._inflight.clear()

    async def check_credential(self) -> bool:
        """Validate the configured credential with a trivial query.

        A rejected credential suspends polling exactly as a rejected listing
        query would.
        """
        try:
            await self._client.check_connection()
        except Unauthorized as exc:
            self._credential_rejected(exc)
            return False
        except Unreachable as exc:
            _log.warning("connection_check_unreachable", error=str(exc))
            self.dispatcher.warning(f"Failed to connect to Railway API: {exc}")
            return False
        _log.info("connection_check_ok")
        return True

    # ------------------------------------------------------------------
    # Hierarchy (read-through)
    # ------------------------------------------------------------------

    async def projects(self) -> list[Project]:
        return await self._read_through(CacheLevel.PROJECTS, None, self._client.fetch_projects)

    async def environments(self, project_id: str) -> list[Environment]:
        return await self._read_through(
            CacheLevel.ENVIRONMENTS, project_id, lambda: self._client.fetch_environments(project_id)
        )

    async def services(self, project_id: str) -> list[Service]:
        return await self._read_through(
            CacheLevel.SERVICES, project_id, lambda: self._client.fetch_services(project_id)
        )

    async def deployments(self, service_id: str, environment_id: str) -> list[Deployment]:
        return await self._read_through(
            CacheLevel.DEPLOYMENTS,
            (service_id, environment_id),
            lambda: self._client.fetch_deployments(service_id, environment_id, self._poll.deployments_limit),
        )

    async def select_resource(self, ref: ResourceRef) -> Sequence[Environment | Service | Deployment]:
        """Return the children of *ref*, fetching them on a cache miss.

        Raises:
            ValueError: if *ref* lacks the parent id its level needs.
        """
        if ref.kind is ResourceKind.PROJECT:
            return await self.environments(ref.id)
        if ref.kind is ResourceKind.ENVIRONMENT:
            if not ref.project_id:
                raise ValueError("selecting an environment requires project_id")
            return await self.services(ref.project_id)
        if ref.kind is ResourceKind.SERVICE:
            if not ref.environment_id:
                raise ValueError("selecting a service requires environment_id")
            return await self.deployments(ref.id, ref.environment_id)
        return []

    async def deployment_status(self, deployment_id: str) -> DeploymentStatus | None:
        """Look up one deployment's live status without touching the cache."""
        if self._suspended:
            return None
        try:
            return await self._client.fetch_deployment_status(deployment_id)
        except Unauthorized as exc:
            self._credential_rejected(exc)
        except Unreachable as exc:
            _log.warning("deployment_status_unreachable", deployment_id=deployment_id, error=str(exc))
        return None

    def refresh(self) -> None:
        """Drop every cached level and ask the host to re-render the tree."""
        self.cache.clear_all()
        self.dispatcher.hierarchy_changed()

    async def _read_through(
        self,
        level: CacheLevel,
        key: Hashable,
        fetch: Callable[[], Awaitable[list[Any]]],
    ) -> list[Any]:
        cached = self.cache.get(level, key)
        if cached is not None:
            return list(cached)
        if self._suspended:
            return []

        slot = (level, key)
        task = self._inflight.get(slot)
        if task is None:
            task = asyncio.create_task(self._load(level, key, fetch), name=f"load-{level.value}")
            self._inflight[slot] = task

            def _forget(done: asyncio.Task[list[Any]]) -> None:
                if self._inflight.get(slot) is done:
                    del self._inflight[slot]

            task.add_done_callback(_forget)
        else:
            _log.debug("fetch_coalesced", level=level.value, key=str(key))
        return list(await asyncio.shield(task))

    async def _load(
        self,
        level: CacheLevel,
        key: Hashable,
        fetch: Callable[[], Awaitable[list[Any]]],
    ) -> list[Any]:
        generation = self.cache.generation
        try:
            items = await fetch()
        except Unauthorized as exc:
            self._credential_rejected(exc)
            return []
        except Unreachable as exc:
            _log.warning("read_through_unreachable", level=level.value, key=str(key), error=str(exc))
            return []

        if self.cache.generation != generation:
            _log.debug("stale_fetch_discarded", level=level.value, key=str(key))
            return items

        self.cache.put(level, key, items)
        if level is CacheLevel.DEPLOYMENTS:
            self._observe(items)
        return items

    # ------------------------------------------------------------------
    # Tree poll
    # ------------------------------------------------------------------

    async def poll_deployments(self) -> None:
        """One tree-poll tick: re-fetch every cached deployment bucket.

        Unreachable or malformed buckets keep their cached list until the
        next tick.  A
        refresh during the tick discards the rest of it.
        """
        if self._suspended:
            _log.debug("poll_skipped_suspended")
            return

        generation = self.cache.generation
        buckets = self.cache.deployment_buckets()
        for service_id, environment_id in buckets:
            try:
                deployments = await self._client.fetch_deployments(
                    service_id, environment_id, self._poll.deployments_limit, strict=True
                )
            except Unauthorized as exc:
                self._credential_rejected(exc)
                return
            except Unreachable as exc:
                _log.warning(
                    "poll_bucket_unreachable",
                    service_id=service_id,
                    environment_id=environment_id,
                    error=str(exc),
                )
                continue
            except MalformedResponse as exc:
                _log.warning(
                    "poll_bucket_malformed",
                    service_id=service_id,
                    environment_id=environment_id,
                    error=str(exc),
                )
                continue

            if self.cache.generation != generation:
                _log.debug("poll_results_discarded", reason="cache cleared during tick")
                return
            self.cache.put(CacheLevel.DEPLOYMENTS, (service_id, environment_id), deployments)
            self._observe(deployments)

        _log.debug("poll_tick_done", buckets=len(buckets), tracked=len(self.detector))
        self.dispatcher.hierarchy_changed()

    def _observe(self, deployments: Sequence[Deployment]) -> None:
        for event in self.detector.observe_all(deployments):
            self.dispatcher.transition(event)

    # ------------------------------------------------------------------
    # Log views
    # ------------------------------------------------------------------

    async def open_log_view(self, ref: ResourceRef, panel: str = DEFAULT_PANEL) -> LogView:
        """Show logs for a deployment or a service in *panel*.

        Any view already in the panel is replaced after its timer stops.

        Raises:
            ValueError: for resources without logs or a service without environment.
        """
        if ref.kind is ResourceKind.SERVICE and not ref.environment_id:
            raise ValueError("application logs require environment_id")
        if ref.kind not in (ResourceKind.DEPLOYMENT, ResourceKind.SERVICE):
            raise ValueError(f"no logs for resource kind {ref.kind.value!r}")

        view = LogView(target=ref, limit=self._poll.log_limit)
        await self.scheduler.views.claim(view, panel)
        await self.refresh_logs(panel)
        if self._poll.log_auto_refresh:
            await self.scheduler.start_log_refresh(view, self._view_tick(view, panel))
        return view

    async def refresh_logs(self, panel: str = DEFAULT_PANEL) -> list[LogLine]:
        view = self.scheduler.views.current(panel)
        if view is None:
            return []
        return await self._refresh_view(view, panel)

    async def toggle_auto_refresh(self, panel: str = DEFAULT_PANEL) -> bool | None:
        """Flip log auto-refresh for *panel*; None when no view is open."""
        return await self.scheduler.toggle_log_refresh(lambda view: self._view_tick(view, panel), panel)

    async def close_log_view(self, panel: str = DEFAULT_PANEL) -> None:
        await self.scheduler.views.release(panel)

    def _view_tick(self, view: LogView, panel: str) -> TickFn:
        async def _tick() -> None:
            await self._refresh_view(view, panel)

        return _tick

    async def _refresh_view(self, view: LogView, panel: str) -> list[LogLine]:
        if self._suspended:
            return []
        target = view.target
        try:
            if target.kind is ResourceKind.DEPLOYMENT:
                lines = await self._client.fetch_logs(deployment_id=target.id, limit=view.limit)
            else:
                lines = await self._client.fetch_logs(
                    service_id=target.id, environment_id=target.environment_id, limit=view.limit
                )
        except Unauthorized as exc:
            self._credential_rejected(exc)
            return []

        if not self.scheduler.views.is_current(view, panel):
            _log.debug("log_result_discarded", view_id=view.view_id)
            return lines
        self.dispatcher.logs_updated(view.view_id, lines)
        return lines

    # ------------------------------------------------------------------
    # Credential
    # ------------------------------------------------------------------

    def set_credential(self, token: str) -> None:
        """Install a new credential, lift suspension and rebuild the tree."""
        self._client.set_credential(token)
        self._suspended = False
        self.dispatcher.reset_suppression()
        self.refresh()

    def clear_credential(self) -> None:
        self._client.clear_credential()
        self.refresh()

    def _credential_rejected(self, exc: Unauthorized) -> None:
        if self._suspended:
            return
        self._suspended = True
        _log.error("credential_rejected", operation=exc.operation, error=str(exc))
        self.dispatcher.error(UNAUTHORIZED_MESSAGE)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def stats(self) -> dict[str, Any]:
        timer = self.scheduler.tree_timer
        view = self.scheduler.views.current()
        return {
            "suspended": self._suspended,
            "has_credential": self._client.has_credential,
            "cache_generation": self.cache.generation,
            "cached": {level.value: self.cache.size(level) for level in CacheLevel},
            "tracked_deployments": len(self.detector),
            "tree_poll": {
                "running": timer is not None and timer.running,
                "ticks_started": timer.ticks_started if timer else 0,
                "ticks_completed": timer.ticks_completed if timer else 0,
                "ticks_skipped": timer.ticks_skipped if timer else 0,
            },
            "log_view": None
            if view is None
            else {"view_id": view.view_id, "source": view.source, "auto_refresh": view.auto_refresh},
        }
