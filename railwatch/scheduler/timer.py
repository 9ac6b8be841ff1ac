"""Fixed-interval poll timer with at-most-one-outstanding-tick semantics.

Each interval spawns a tick as its own task.  If the previous tick is still
running the new one is skipped, not queued.  ``stop`` cancels only the
sleeping loop: an in-flight tick is left to finish.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable

import structlog

from railwatch.observability.metrics import poll_ticks_total

_log = structlog.get_logger(component="scheduler.timer")

TickFn = Callable[[], Awaitable[None]]


class PollTimer:
    """Runs *tick_fn* every *interval* seconds until stopped.

    Counters (``ticks_started``, ``ticks_completed``, ``ticks_skipped``,
    ``ticks_failed``) are kept per instance for health reporting.
    """

    def __init__(self, name: str, interval: float, tick_fn: TickFn) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = interval
        self._tick_fn = tick_fn
        self._loop_task: asyncio.Task[None] | None = None
        self._tick_tasks: set[asyncio.Task[bool]] = set()
        self._in_flight = False

        self.ticks_started = 0
        self.ticks_completed = 0
        self.ticks_skipped = 0
        self.ticks_failed = 0

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def start(self) -> None:
        """Start the interval loop.  Calling start on a running timer is a no-op."""
        if self.running:
            return
        self._loop_task = asyncio.create_task(self._loop(), name=f"poll-{self.name}")
        _log.debug("timer_started", timer=self.name, interval=self.interval)

    async def stop(self) -> None:
        """Cancel the interval loop.  Safe to call on a stopped timer."""
        task = self._loop_task
        self._loop_task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        _log.debug("timer_stopped", timer=self.name)

    async def tick(self) -> bool:
        """Run one tick now.  Returns False if skipped because a tick is in flight."""
        if self._in_flight:
            self.ticks_skipped += 1
            poll_ticks_total.labels(timer=self.name, outcome="skipped").inc()
            _log.debug("tick_skipped", timer=self.name)
            return False

        self._in_flight = True
        self.ticks_started += 1
        poll_ticks_total.labels(timer=self.name, outcome="started").inc()
        try:
            await self._tick_fn()
        except Exception as exc:
            self.ticks_failed += 1
            poll_ticks_total.labels(timer=self.name, outcome="failed").inc()
            _log.error("tick_failed", timer=self.name, error=str(exc), exc_info=True)
        else:
            self.ticks_completed += 1
            poll_ticks_total.labels(timer=self.name, outcome="completed").inc()
        finally:
            self._in_flight = False
        return True

    async def wait_idle(self) -> None:
        """Wait for every spawned tick task to finish."""
        if self._tick_tasks:
            await asyncio.gather(*self._tick_tasks, return_exceptions=True)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            task = asyncio.create_task(self.tick(), name=f"tick-{self.name}")
            self._tick_tasks.add(task)
            task.add_done_callback(self._tick_tasks.discard)
