"""Notification dispatcher for railwatch.

HostListener          -- the outbound interface a host UI implements.
NotificationChannel   -- ABC for external delivery of notices (webhooks).
MessageDeduplicator   -- cooldown for repeated warnings/errors.
NotificationDispatcher -- routes transitions, render signals and surfaced
                          issues to the host listener and channels; never
                          raises into the poll pipeline.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Protocol

import structlog

from railwatch.models.events import Notice, TransitionEvent
from railwatch.models.resources import LogLine
from railwatch.observability.metrics import notifications_total
from railwatch.tracker.policy import build_notice

_log = structlog.get_logger(component="notifications.manager")

_MESSAGE_COOLDOWN_SECONDS = 60.0


class HostListener(Protocol):
    """Callbacks a host UI provides to render state and surface issues."""

    def on_hierarchy_changed(self) -> None: ...

    def on_logs_updated(self, view_id: str, lines: Sequence[LogLine]) -> None: ...

    def on_transition(self, event: TransitionEvent, notice: Notice | None) -> None: ...

    def on_warning(self, message: str) -> None: ...

    def on_error(self, message: str) -> None: ...


class NullListener:
    """Listener used when no host is attached; everything is only logged."""

    def on_hierarchy_changed(self) -> None:
        pass

    def on_logs_updated(self, view_id: str, lines: Sequence[LogLine]) -> None:
        pass

    def on_transition(self, event: TransitionEvent, notice: Notice | None) -> None:
        pass

    def on_warning(self, message: str) -> None:
        pass

    def on_error(self, message: str) -> None:
        pass


class NotificationChannel(ABC):
    """Abstract base class for external notice delivery.

    ``send`` must not raise; return ``False`` on failure instead.
    """

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Human-readable channel identifier used in metrics and logs."""

    @abstractmethod
    async def send(self, notice: Notice) -> bool:
        """Deliver *notice*; True if the remote endpoint accepted it."""

    async def close(self) -> None:
        """Release connections held by the channel."""
        return None


class MessageDeduplicator:
    """Suppresses an identical warning or error repeated within the cooldown.

    Log auto-refresh can fail every few seconds; the host should see the
    message once per cooldown, not once per tick.
    """

    def __init__(self, cooldown_seconds: float = _MESSAGE_COOLDOWN_SECONDS) -> None:
        self._cooldown = cooldown_seconds
        self._last_sent: dict[tuple[str, str], float] = {}

    def should_send(self, level: str, message: str) -> bool:
        key = (level, message)
        now = time.monotonic()
        last = self._last_sent.get(key)
        if last is not None and (now - last) < self._cooldown:
            _log.debug("message_suppressed", level=level, message=message)
            return False
        self._last_sent[key] = now
        return True

    def reset(self) -> None:
        self._last_sent.clear()


class NotificationDispatcher:
    """Fans core output out to the host listener and external channels.

    * Host callbacks run synchronously; an exception from the host is logged
      and swallowed so a broken renderer cannot stall polling.
    * Channel delivery is fire-and-forget on background tasks.
    """

    def __init__(
        self,
        listener: HostListener | None = None,
        channels: list[NotificationChannel] | None = None,
        deduplicator: MessageDeduplicator | None = None,
    ) -> None:
        self._listener: HostListener = listener or NullListener()
        self._channels = channels or []
        self._deduplicator = deduplicator or MessageDeduplicator()
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def listener(self) -> HostListener:
        return self._listener

    def attach(self, listener: HostListener) -> None:
        self._listener = listener

    # ------------------------------------------------------------------
    # Inbound from the core
    # ------------------------------------------------------------------

    def transition(self, event: TransitionEvent) -> Notice | None:
        """Report *event*; returns the Notice when the policy deems it worth one."""
        notice = build_notice(event)
        self._call("on_transition", event, notice)
        if notice is not None and self._channels:
            task = asyncio.ensure_future(self._fan_out(notice))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        return notice

    def hierarchy_changed(self) -> None:
        self._call("on_hierarchy_changed")

    def logs_updated(self, view_id: str, lines: Sequence[LogLine]) -> None:
        self._call("on_logs_updated", view_id, lines)

    def warning(self, message: str) -> None:
        if self._deduplicator.should_send("warning", message):
            _log.warning("surfaced_warning", message=message)
            self._call("on_warning", message)

    def error(self, message: str) -> None:
        if self._deduplicator.should_send("error", message):
            _log.error("surfaced_error", message=message)
            self._call("on_error", message)

    def reset_suppression(self) -> None:
        self._deduplicator.reset()

    async def stop(self) -> None:
        """Wait for in-flight channel deliveries, then close the channels."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        for channel in self._channels:
            try:
                await channel.close()
            except Exception as exc:  # noqa: BLE001
                _log.error("notification_channel_close_error", channel=channel.channel_name, error=str(exc))

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def _call(self, method: str, *args: object) -> None:
        try:
            getattr(self._listener, method)(*args)
        except Exception as exc:  # noqa: BLE001
            _log.error("host_listener_error", callback=method, error=str(exc))

    async def _fan_out(self, notice: Notice) -> None:
        tasks = [self._send_one(channel, notice) for channel in self._channels]
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _send_one(self, channel: NotificationChannel, notice: Notice) -> None:
        try:
            success = await channel.send(notice)
        except Exception as exc:  # noqa: BLE001
            _log.error(
                "notification_channel_unexpected_error",
                channel=channel.channel_name,
                notice_id=notice.notice_id,
                error=str(exc),
            )
            success = False

        label = "true" if success else "false"
        notifications_total.labels(channel=channel.channel_name, success=label).inc()

        if success:
            _log.info(
                "notification_sent",
                channel=channel.channel_name,
                notice_id=notice.notice_id,
                kind=notice.kind.value,
                deployment_id=notice.event.deployment_id,
            )
        else:
            _log.warning("notification_failed", channel=channel.channel_name, notice_id=notice.notice_id)
