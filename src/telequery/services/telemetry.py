"""Telemetry service: metric CRUD and the cache-aside read path."""

import logging

from telequery.core.encoding.documents import decode_metrics, encode_metrics
from telequery.core.filters import canonical_key
from telequery.core.models import (
    CreateMetricRequest,
    Metric,
    MetricFilter,
    UpdateMetricRequest,
    parse_metric_id,
    utc_now,
)
from telequery.core.ports import CachePort, MetricStorePort

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 300


class TelemetryService:
    """Creates, lists, updates and deletes metrics.

    Listing goes through the cache first. A cached result is served for up
    to cache_ttl_seconds and writes do not invalidate it, so a list may lag
    the store by at most that window.
    """

    def __init__(
        self,
        store: MetricStorePort,
        cache: CachePort,
        cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
    ) -> None:
        self._store = store
        self._cache = cache
        self._cache_ttl_seconds = cache_ttl_seconds

    async def create_metric(self, request: CreateMetricRequest) -> Metric:
        """Record a new metric stamped with the current UTC time."""
        metric = Metric(
            name=request.name,
            tags=request.tags,
            value=request.value,
            timestamp=utc_now(),
        )
        return await self._store.insert(metric)

    async def get_metrics(self, metric_filter: MetricFilter) -> list[Metric]:
        """Fetch metrics matching the filter, newest first.

        Cache failures degrade to a store read; store failures propagate.
        """
        cache_key = canonical_key(metric_filter)

        cached = await self._read_cache(cache_key)
        if cached is not None:
            return cached

        metrics = await self._store.find(metric_filter)
        await self._write_cache(cache_key, metrics)
        return metrics

    async def _read_cache(self, cache_key: str) -> list[Metric] | None:
        try:
            payload = await self._cache.get(cache_key)
        except Exception:
            logger.warning("Cache read failed for key %s", cache_key, exc_info=True)
            return None
        if payload is None:
            logger.debug("Cache miss for key: %s", cache_key)
            return None
        try:
            metrics = decode_metrics(payload)
        except ValueError:
            logger.debug("Discarding undecodable cache entry: %s", cache_key)
            return None
        logger.debug("Cache hit for key: %s", cache_key)
        return metrics

    async def _write_cache(self, cache_key: str, metrics: list[Metric]) -> None:
        try:
            await self._cache.set(
                cache_key, encode_metrics(metrics), self._cache_ttl_seconds
            )
        except Exception:
            logger.warning("Cache write failed for key %s", cache_key, exc_info=True)

    async def update_metric(
        self, raw_id: str, request: UpdateMetricRequest
    ) -> Metric | None:
        """Update a metric by identity; None means not found.

        A malformed identity or a request with no fields set is reported as
        not found.
        """
        metric_id = parse_metric_id(raw_id)
        if metric_id is None or request.is_empty():
            return None
        return await self._store.update(metric_id, request)

    async def delete_metric(self, raw_id: str) -> bool:
        """Delete a metric by identity; False means not found."""
        metric_id = parse_metric_id(raw_id)
        if metric_id is None:
            return False
        return await self._store.delete(metric_id)
