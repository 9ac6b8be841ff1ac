"""Read-through store for the resource hierarchy.

The cache never fetches: ``get`` returning None is the caller's signal to
fetch and ``put``.  Entries live until ``clear_all``; there is no TTL and no
per-level invalidation.
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from enum import StrEnum
from typing import Any

import structlog

from railwatch.observability.metrics import cache_lookups_total

_log = structlog.get_logger(component="cache.hierarchy")

_PROJECTS_SLOT = "*"


class CacheLevel(StrEnum):
    """One map per hierarchy level.

    PROJECTS is a single slot (any key maps to it); ENVIRONMENTS and SERVICES
    are keyed by project id; DEPLOYMENTS by ``(service_id, environment_id)``.
    """

    PROJECTS = "projects"
    ENVIRONMENTS = "environments"
    SERVICES = "services"
    DEPLOYMENTS = "deployments"


class HierarchyCache:
    """Four independent maps plus a generation counter.

    ``generation`` increases on every ``clear_all`` so that a fetch started
    before a refresh can tell its result is stale and drop it.
    """

    def __init__(self) -> None:
        self._store: dict[CacheLevel, dict[Hashable, Sequence[Any]]] = {level: {} for level in CacheLevel}
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def get(self, level: CacheLevel, key: Hashable = None) -> Sequence[Any] | None:
        """Return the cached sequence for *key* at *level*, or None on a miss."""
        value = self._store[level].get(self._slot(level, key))
        cache_lookups_total.labels(level=level.value, result="miss" if value is None else "hit").inc()
        return value

    def put(self, level: CacheLevel, key: Hashable, value: Sequence[Any]) -> None:
        """Store *value*, replacing any previous entry for the same key."""
        self._store[level][self._slot(level, key)] = value

    def clear_all(self) -> None:
        """Empty every level at once and start a new generation."""
        for entries in self._store.values():
            entries.clear()
        self._generation += 1
        _log.info("cache_cleared", generation=self._generation)

    def deployment_buckets(self) -> list[tuple[str, str]]:
        """Snapshot of the ``(service_id, environment_id)`` keys currently cached."""
        return list(self._store[CacheLevel.DEPLOYMENTS])  # type: ignore[arg-type]

    def size(self, level: CacheLevel) -> int:
        return len(self._store[level])

    @staticmethod
    def _slot(level: CacheLevel, key: Hashable) -> Hashable:
        return _PROJECTS_SLOT if level is CacheLevel.PROJECTS else key
