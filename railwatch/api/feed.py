"""Outbound event feed for hosts that poll the bridge instead of embedding the core.

EventFeed implements HostListener and keeps the most recent outbound events
in a bounded ring, each tagged with a monotonically increasing sequence
number so a host can ask for everything after the last one it saw.
"""

from __future__ import annotations

import itertools
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from railwatch.models.events import Notice, TransitionEvent
from railwatch.models.resources import LogLine

_DEFAULT_CAPACITY = 1000


@dataclass(frozen=True)
class FeedEvent:
    seq: int
    type: str
    payload: dict[str, Any]
    emitted_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


class EventFeed:
    """HostListener that records events instead of rendering them."""

    def __init__(self, capacity: int = _DEFAULT_CAPACITY) -> None:
        self._events: deque[FeedEvent] = deque(maxlen=capacity)
        self._seq = itertools.count(1)

    def after(self, seq: int = 0) -> list[FeedEvent]:
        return [event for event in self._events if event.seq > seq]

    def _emit(self, event_type: str, payload: dict[str, Any]) -> None:
        self._events.append(FeedEvent(seq=next(self._seq), type=event_type, payload=payload))

    def on_hierarchy_changed(self) -> None:
        self._emit("hierarchy_changed", {})

    def on_logs_updated(self, view_id: str, lines: Sequence[LogLine]) -> None:
        self._emit(
            "logs_updated",
            {
                "view_id": view_id,
                "lines": [
                    {"message": line.message, "timestamp": line.timestamp, "severity": line.severity.value}
                    for line in lines
                ],
            },
        )

    def on_transition(self, event: TransitionEvent, notice: Notice | None) -> None:
        payload: dict[str, Any] = {
            "deployment_id": event.deployment_id,
            "from_status": event.from_status.value,
            "to_status": event.to_status.value,
            "notice": None,
        }
        if notice is not None:
            payload["notice"] = {
                "kind": notice.kind.value,
                "message": notice.message,
                "actions": list(notice.actions),
            }
        self._emit("transition", payload)

    def on_warning(self, message: str) -> None:
        self._emit("warning", {"message": message})

    def on_error(self, message: str) -> None:
        self._emit("error", {"message": message})
