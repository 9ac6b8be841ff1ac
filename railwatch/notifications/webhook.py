"""Deployment notice webhook.

Each Notice is POSTed as JSON.  The top-level ``text`` line is what chat
receivers (Slack/Discord incoming webhooks) render as-is; ``deployment``
carries the transition for receivers that want structured data.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from railwatch.models.events import Notice, NoticeKind
from railwatch.notifications.manager import NotificationChannel

_log = structlog.get_logger(component="notifications.webhook")

_KIND_PREFIX = {
    NoticeKind.SUCCESS: "[ok]",
    NoticeKind.FAILURE: "[failed]",
    NoticeKind.CANCELLED: "[cancelled]",
}


class WebhookNotificationChannel(NotificationChannel):
    """Delivers deployment notices to one webhook URL over a shared connection pool.

    Args:
        url:       Receiver URL, usually read from a secret-ref env var.
        headers:   Extra request headers, e.g. a receiver-side auth token.
        timeout:   Seconds per delivery attempt.
        transport: httpx transport override used by tests.
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url:
            raise ValueError("webhook url is empty")
        self._url = url
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport, headers=headers)

    @property
    def channel_name(self) -> str:
        return "webhook"

    async def send(self, notice: Notice) -> bool:
        try:
            response = await self._http.post(self._url, json=notice_payload(notice))
        except httpx.HTTPError as exc:
            _log.warning(
                "webhook_delivery_failed",
                deployment_id=notice.event.deployment_id,
                error_type=type(exc).__name__,
            )
            return False
        if not response.is_success:
            _log.warning(
                "webhook_rejected",
                deployment_id=notice.event.deployment_id,
                status_code=response.status_code,
            )
            return False
        return True

    async def close(self) -> None:
        await self._http.aclose()


def notice_payload(notice: Notice) -> dict[str, Any]:
    """JSON body for *notice*: a one-line summary plus the transition itself."""
    event = notice.event
    return {
        "text": f"{_KIND_PREFIX[notice.kind]} {notice.message} deployment {event.deployment_id}",
        "kind": notice.kind.value,
        "deployment": {
            "id": event.deployment_id,
            "from_status": event.from_status.value,
            "to_status": event.to_status.value,
            "observed_at": event.observed_at.isoformat(),
        },
        "actions": list(notice.actions),
        "notice_id": notice.notice_id,
    }
