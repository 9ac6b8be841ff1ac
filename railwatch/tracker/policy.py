"""Which transitions deserve a user-facing notice.

Only build-completion transitions qualify: ``from`` is BUILDING or DEPLOYING
and ``to`` is SUCCESS, FAILED, CRASHED or CANCELLED.  Everything else is
reported by the detector but stays silent.
"""

from __future__ import annotations

from railwatch.models.events import Notice, NoticeKind, TransitionEvent
from railwatch.models.resources import DeploymentStatus

VIEW_LOGS_ACTION = "View Logs"

_IN_PROGRESS = frozenset({DeploymentStatus.BUILDING, DeploymentStatus.DEPLOYING})


def classify_transition(event: TransitionEvent) -> NoticeKind | None:
    if event.from_status not in _IN_PROGRESS:
        return None
    if event.to_status is DeploymentStatus.SUCCESS:
        return NoticeKind.SUCCESS
    if event.to_status in (DeploymentStatus.FAILED, DeploymentStatus.CRASHED):
        return NoticeKind.FAILURE
    if event.to_status is DeploymentStatus.CANCELLED:
        return NoticeKind.CANCELLED
    return None


def build_notice(event: TransitionEvent) -> Notice | None:
    """Turn *event* into a Notice, or None when it is not notification-worthy.

    Failures and successes offer the log-view action; cancellations are
    informational only.
    """
    kind = classify_transition(event)
    if kind is None:
        return None

    stamp = event.observed_at.astimezone().strftime("%H:%M:%S")
    if kind is NoticeKind.SUCCESS:
        return Notice(kind=kind, message=f"Deployment successful! ({stamp})", event=event, actions=(VIEW_LOGS_ACTION,))
    if kind is NoticeKind.FAILURE:
        return Notice(
            kind=kind,
            message=f"Deployment {event.to_status.value.lower()}! ({stamp})",
            event=event,
            actions=(VIEW_LOGS_ACTION,),
        )
    return Notice(kind=kind, message=f"Deployment cancelled ({stamp})", event=event)
