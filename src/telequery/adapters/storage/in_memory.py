"""In-memory adapters for the metric store and the cache."""

import dataclasses
import time
from collections.abc import Callable
from datetime import datetime, timedelta

from telequery.core.filters import matches
from telequery.core.models import (
    Metric,
    MetricFilter,
    UpdateMetricRequest,
    new_metric_id,
    utc_now,
)

DEFAULT_RETENTION_SECONDS = 30 * 24 * 60 * 60


class InMemoryMetricStore:
    """In-memory implementation of MetricStorePort.

    Stores metrics in a list. Suitable for testing and low-volume
    deployments where persistence is not required.
    """

    def __init__(self, retention_seconds: int = DEFAULT_RETENTION_SECONDS) -> None:
        self._metrics: list[Metric] = []
        self._retention = timedelta(seconds=retention_seconds)

    async def insert(self, metric: Metric) -> Metric:
        """Persist a metric, assigning a fresh identity."""
        stored = dataclasses.replace(metric, id=new_metric_id())
        self._metrics.append(stored)
        return stored

    async def find(self, metric_filter: MetricFilter) -> list[Metric]:
        """Return matching metrics, newest first.

        Equal timestamps are ordered newest insert first.
        """
        found = [m for m in reversed(self._metrics) if matches(m, metric_filter)]
        return sorted(found, key=lambda m: m.timestamp, reverse=True)

    async def update(
        self, metric_id: str, update: UpdateMetricRequest
    ) -> Metric | None:
        """Apply the set fields of update to the metric with metric_id."""
        if update.is_empty():
            return None
        for index, metric in enumerate(self._metrics):
            if metric.id == metric_id:
                changes = {
                    k: v
                    for k, v in (
                        ("name", update.name),
                        ("tags", update.tags),
                        ("value", update.value),
                    )
                    if v is not None
                }
                updated = dataclasses.replace(metric, **changes)
                self._metrics[index] = updated
                return updated
        return None

    async def delete(self, metric_id: str) -> bool:
        """Delete the metric with metric_id; return True if it existed."""
        for index, metric in enumerate(self._metrics):
            if metric.id == metric_id:
                del self._metrics[index]
                return True
        return False

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Drop metrics older than the retention window."""
        cutoff = (now or utc_now()) - self._retention
        kept = [m for m in self._metrics if m.timestamp >= cutoff]
        purged = len(self._metrics) - len(kept)
        self._metrics = kept
        return purged


class InMemoryCache:
    """In-memory implementation of CachePort with per-entry expiry.

    Args:
        clock: Monotonic clock in seconds. Defaults to time.monotonic;
            tests inject a controllable clock to simulate expiry.
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or time.monotonic
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> str | None:
        """Return the payload for key unless it is missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store value under key for ttl_seconds."""
        self._entries[key] = (value, self._clock() + ttl_seconds)

    async def clear(self) -> None:
        """Remove every entry."""
        self._entries.clear()
