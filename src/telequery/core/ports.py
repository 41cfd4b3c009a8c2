"""Port interfaces for store and cache adapters.

These protocols define the contracts that adapters must implement.
The core domain and services depend only on these interfaces, not on
concrete implementations.
"""

from datetime import datetime
from typing import Protocol, runtime_checkable

from telequery.core.models import Metric, MetricFilter, UpdateMetricRequest


@runtime_checkable
class MetricStorePort(Protocol):
    """Port for the persistent metric store.

    Examples: InMemoryMetricStore, SQLiteMetricStore.
    """

    async def insert(self, metric: Metric) -> Metric:
        """Persist a metric and return it with its assigned identity."""
        ...

    async def find(self, metric_filter: MetricFilter) -> list[Metric]:
        """Return metrics matching the filter.

        Args:
            metric_filter: Name equality, tag membership (match-any) and
                inclusive timestamp bounds. Unparseable bounds are ignored.

        Returns:
            Matching metrics ordered by timestamp descending (newest first).
        """
        ...

    async def update(
        self, metric_id: str, update: UpdateMetricRequest
    ) -> Metric | None:
        """Apply the set fields of update; return the updated metric or None."""
        ...

    async def delete(self, metric_id: str) -> bool:
        """Delete a metric by identity; return True if it existed."""
        ...

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Delete metrics older than the retention window; return the count."""
        ...


@runtime_checkable
class CachePort(Protocol):
    """Port for the best-effort key-value cache.

    Examples: InMemoryCache, RedisCache.
    """

    async def get(self, key: str) -> str | None:
        """Return the cached payload for key, or None on a miss."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store value under key, expiring after ttl_seconds."""
        ...
