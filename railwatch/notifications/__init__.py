"""Notification boundary for railwatch.

Exports:
    HostListener           -- outbound callbacks implemented by a host UI.
    NotificationDispatcher -- routes core output to the host and channels.
    MessageDeduplicator    -- cooldown for repeated warnings/errors.
    NotificationChannel    -- ABC for external notice delivery.
    WebhookNotificationChannel -- JSON POST channel.
    build_notification_dispatcher -- factory used by the application bootstrap.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import structlog

from railwatch.notifications.manager import (
    HostListener,
    MessageDeduplicator,
    NotificationChannel,
    NotificationDispatcher,
    NullListener,
)
from railwatch.notifications.webhook import WebhookNotificationChannel

if TYPE_CHECKING:
    from railwatch.models.config import NotificationConfig

_log = structlog.get_logger(component="notifications")

__all__ = [
    "HostListener",
    "MessageDeduplicator",
    "NotificationChannel",
    "NotificationDispatcher",
    "NullListener",
    "WebhookNotificationChannel",
    "build_notification_dispatcher",
]


def build_notification_dispatcher(
    config: NotificationConfig,
    listener: HostListener | None = None,
) -> NotificationDispatcher:
    """Build a NotificationDispatcher with the channels *config* enables.

    ``webhook_secret_ref`` names the environment variable holding the
    webhook URL, so the URL itself never appears in configuration dumps.
    """
    channels: list[NotificationChannel] = []

    webhook_ref = config.webhook_secret_ref
    if webhook_ref:
        webhook_url = os.environ.get(webhook_ref, "")
        if webhook_url:
            try:
                channels.append(WebhookNotificationChannel(url=webhook_url))
                _log.info("webhook_channel_enabled")
            except ValueError as exc:
                _log.warning("webhook_channel_disabled", reason=str(exc))
        else:
            _log.debug("webhook_channel_skipped", reason="secret ref env var is empty")

    if not channels:
        _log.info("no_notification_channels_configured")

    return NotificationDispatcher(listener=listener, channels=channels)
