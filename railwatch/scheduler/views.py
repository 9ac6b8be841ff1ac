"""Registry of open log views.

A panel holds at most one view.  A view owns its auto-refresh timer, and the
registry tears that timer down before a new view may claim the panel.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from uuid import uuid4

import structlog

from railwatch.models.resources import ResourceKind, ResourceRef
from railwatch.scheduler.timer import PollTimer, TickFn

_log = structlog.get_logger(component="scheduler.views")

DEFAULT_PANEL = "logs"


@dataclass(eq=False)
class LogView:
    """The resource a log panel is showing and its optional refresh timer."""

    target: ResourceRef
    limit: int = 500
    view_id: str = field(default_factory=lambda: str(uuid4()))
    timer: PollTimer | None = None

    @property
    def source(self) -> str:
        return "deployment" if self.target.kind is ResourceKind.DEPLOYMENT else "application"

    @property
    def auto_refresh(self) -> bool:
        return self.timer is not None and self.timer.running

    async def start_refresh(self, interval: float, tick_fn: TickFn) -> None:
        """Start auto-refresh, stopping any timer this view already runs."""
        await self.stop_refresh()
        self.timer = PollTimer("logs", interval, tick_fn)
        self.timer.start()

    async def stop_refresh(self) -> None:
        timer = self.timer
        self.timer = None
        if timer is not None:
            await timer.stop()


class LogViewRegistry:
    """Maps panel names to the single view each currently shows."""

    def __init__(self) -> None:
        self._views: dict[str, LogView] = {}

    def current(self, panel: str = DEFAULT_PANEL) -> LogView | None:
        return self._views.get(panel)

    def is_current(self, view: LogView, panel: str = DEFAULT_PANEL) -> bool:
        return self._views.get(panel) is view

    async def claim(self, view: LogView, panel: str = DEFAULT_PANEL) -> LogView | None:
        """Install *view* in *panel*; returns the displaced view, if any."""
        prior = self._views.get(panel)
        if prior is not None:
            await prior.stop_refresh()
        self._views[panel] = view
        _log.info(
            "log_view_opened",
            panel=panel,
            view_id=view.view_id,
            source=view.source,
            resource_id=view.target.id,
            replaced=prior.view_id if prior else None,
        )
        return prior

    async def release(self, panel: str = DEFAULT_PANEL) -> LogView | None:
        view = self._views.pop(panel, None)
        if view is not None:
            await view.stop_refresh()
            _log.info("log_view_closed", panel=panel, view_id=view.view_id)
        return view

    async def close_all(self) -> None:
        for panel in list(self._views):
            await self.release(panel)

    def __iter__(self) -> Iterator[LogView]:
        return iter(list(self._views.values()))

    def __len__(self) -> int:
        return len(self._views)
