"""Poll scheduler: the tree timer and per-panel log refresh, not coupled."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import structlog

from railwatch.scheduler.timer import PollTimer, TickFn
from railwatch.scheduler.views import DEFAULT_PANEL, LogView, LogViewRegistry

_log = structlog.get_logger(component="scheduler.poller")


class PollScheduler:
    """Owns the tree poll timer and the log view registry.

    Args:
        tree_interval: Seconds between tree poll ticks (default 30).
        log_interval:  Seconds between log refresh ticks (default 5).
    """

    def __init__(self, tree_interval: float = 30.0, log_interval: float = 5.0) -> None:
        self.tree_interval = tree_interval
        self.log_interval = log_interval
        self.tree_timer: PollTimer | None = None
        self.views = LogViewRegistry()

    def start_tree(self, tick_fn: TickFn) -> PollTimer:
        if self.tree_timer is None:
            self.tree_timer = PollTimer("tree", self.tree_interval, tick_fn)
        self.tree_timer.start()
        _log.info("tree_poll_started", interval=self.tree_interval)
        return self.tree_timer

    async def stop_tree(self) -> None:
        if self.tree_timer is not None:
            await self.tree_timer.stop()

    async def start_log_refresh(self, view: LogView, tick_fn: TickFn) -> None:
        await view.start_refresh(self.log_interval, tick_fn)
        _log.info("log_refresh_started", view_id=view.view_id, interval=self.log_interval)

    async def stop_log_refresh(self, view: LogView) -> None:
        await view.stop_refresh()
        _log.info("log_refresh_stopped", view_id=view.view_id)

    async def toggle_log_refresh(
        self, tick_for: Callable[[LogView], TickFn], panel: str = DEFAULT_PANEL
    ) -> bool | None:
        """Flip auto-refresh on the view in *panel*.

        Returns the new state, or None when the panel shows nothing.
        """
        view = self.views.current(panel)
        if view is None:
            return None
        if view.auto_refresh:
            await self.stop_log_refresh(view)
            return False
        await self.start_log_refresh(view, tick_for(view))
        return True

    async def stop(self) -> None:
        """Stop every timer, then wait for ticks already in flight.  Nothing is persisted."""
        timers = [timer for timer in (self.tree_timer, *(view.timer for view in self.views)) if timer is not None]
        await self.stop_tree()
        await self.views.close_all()
        await asyncio.gather(*(timer.wait_idle() for timer in timers))
        _log.info("scheduler_stopped", timers=len(timers))
