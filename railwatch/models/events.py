"""Transition events and the user-facing notices derived from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import uuid4

from railwatch.models.resources import DeploymentStatus


class NoticeKind(StrEnum):
    """Category of a user-facing notice."""

    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class TransitionEvent:
    """Emitted by the TransitionDetector once per observed status change."""

    deployment_id: str
    from_status: DeploymentStatus
    to_status: DeploymentStatus
    observed_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


@dataclass(frozen=True)
class Notice:
    """A notification-worthy transition, ready for display or delivery."""

    kind: NoticeKind
    message: str
    event: TransitionEvent
    actions: tuple[str, ...] = ()
    notice_id: str = field(default_factory=lambda: str(uuid4()))
