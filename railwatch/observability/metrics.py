"""Prometheus counters for railwatch.

All metrics live in the default registry; the host bridge does not expose
them itself, so embedders scrape them with ``prometheus_client`` directly.
"""

from __future__ import annotations

from prometheus_client import Counter

fetches_total = Counter(
    "railwatch_fetches_total",
    "Remote fetch operations by outcome.",
    ["operation", "outcome"],
)

cache_lookups_total = Counter(
    "railwatch_cache_lookups_total",
    "Hierarchy cache lookups by level and hit/miss.",
    ["level", "result"],
)

transitions_total = Counter(
    "railwatch_transitions_total",
    "Deployment status transitions detected.",
    ["from_status", "to_status"],
)

poll_ticks_total = Counter(
    "railwatch_poll_ticks_total",
    "Poll timer ticks by timer and outcome.",
    ["timer", "outcome"],
)

notifications_total = Counter(
    "railwatch_notifications_total",
    "Notices delivered to external channels.",
    ["channel", "success"],
)
