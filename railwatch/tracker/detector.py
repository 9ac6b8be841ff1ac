"""Deployment status transition detection.

The detector keeps the last status seen per deployment id and reports a
``TransitionEvent`` exactly once per change.  Entries are never removed: the
map lives for the session and grows with the number of deployments seen.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from railwatch.models.events import TransitionEvent
from railwatch.models.resources import Deployment, DeploymentStatus
from railwatch.observability.metrics import transitions_total

_log = structlog.get_logger(component="tracker.detector")


class TransitionDetector:
    """Compares each observed status with the last one recorded for the same id."""

    def __init__(self) -> None:
        self._last_status: dict[str, DeploymentStatus] = {}

    def observe(self, deployment: Deployment) -> TransitionEvent | None:
        """Record *deployment*'s status and return an event if it changed.

        The first observation of an id only records the status.
        """
        previous = self._last_status.get(deployment.id)
        self._last_status[deployment.id] = deployment.status
        if previous is None or previous == deployment.status:
            return None

        event = TransitionEvent(
            deployment_id=deployment.id,
            from_status=previous,
            to_status=deployment.status,
        )
        transitions_total.labels(from_status=previous.value, to_status=deployment.status.value).inc()
        _log.info(
            "deployment_transition",
            deployment_id=deployment.id,
            from_status=previous.value,
            to_status=deployment.status.value,
        )
        return event

    def observe_all(self, deployments: Sequence[Deployment]) -> list[TransitionEvent]:
        events = []
        for deployment in deployments:
            event = self.observe(deployment)
            if event is not None:
                events.append(event)
        return events

    def last_status(self, deployment_id: str) -> DeploymentStatus | None:
        return self._last_status.get(deployment_id)

    def __len__(self) -> int:
        return len(self._last_status)
