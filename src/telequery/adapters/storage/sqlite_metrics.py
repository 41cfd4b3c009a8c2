"""SQLite storage adapter for metrics."""

import json
import logging
import math
from datetime import UTC, datetime, timedelta
from typing import Any

import aiosqlite

from telequery.adapters.storage.in_memory import DEFAULT_RETENTION_SECONDS
from telequery.adapters.storage.sqlite_base import AsyncConnectionManager
from telequery.core.filters import resolve_bounds
from telequery.core.models import (
    Metric,
    MetricFilter,
    UpdateMetricRequest,
    new_metric_id,
    utc_now,
)

logger = logging.getLogger(__name__)

# value is nullable because SQLite stores NaN as NULL.
_METRICS_SCHEMA = """
CREATE TABLE IF NOT EXISTS metrics (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    tags TEXT,
    value REAL,
    timestamp_ms INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_metrics_name ON metrics(name);
CREATE INDEX IF NOT EXISTS idx_metrics_timestamp ON metrics(timestamp_ms DESC);
CREATE INDEX IF NOT EXISTS idx_metrics_name_timestamp
    ON metrics(name, timestamp_ms DESC);
"""

_INSERT_METRIC = """
INSERT INTO metrics (id, name, tags, value, timestamp_ms) VALUES (?, ?, ?, ?, ?)
"""

_SELECT_COLUMNS = "SELECT id, name, tags, value, timestamp_ms FROM metrics"

_SELECT_BY_ID = _SELECT_COLUMNS + " WHERE id = ?"

_DELETE_BY_ID = "DELETE FROM metrics WHERE id = ?"

_DELETE_BEFORE = "DELETE FROM metrics WHERE timestamp_ms < ?"

_ORDER_NEWEST_FIRST = " ORDER BY timestamp_ms DESC, seq DESC"

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_MILLISECOND = timedelta(milliseconds=1)


def _to_epoch_ms(instant: datetime) -> int:
    """Floor an instant to whole epoch milliseconds."""
    return (instant - _EPOCH) // _MILLISECOND


def _to_epoch_ms_ceil(instant: datetime) -> int:
    return -((_EPOCH - instant) // _MILLISECOND)


def _from_epoch_ms(value: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=value)


def _encode_tags(tags: tuple[str, ...] | None) -> str | None:
    return json.dumps(list(tags)) if tags is not None else None


def _safe_json_list(data: str | None) -> list[str] | None:
    """Parse a JSON array column, returning None for NULL or corrupt data."""
    if data is None:
        return None
    try:
        result = json.loads(data)
    except json.JSONDecodeError:
        return None
    if not isinstance(result, list):
        return None
    return [str(item) for item in result]


def _from_row(row: aiosqlite.Row) -> Metric:
    tags = _safe_json_list(row["tags"])
    value = row["value"]
    return Metric(
        id=row["id"],
        name=row["name"],
        tags=tuple(tags) if tags is not None else None,
        value=math.nan if value is None else value,
        timestamp=_from_epoch_ms(row["timestamp_ms"]),
    )


def _where_clause(metric_filter: MetricFilter) -> tuple[str, list[Any]]:
    """Translate a filter into a SQL WHERE clause and its parameters."""
    clauses: list[str] = []
    params: list[Any] = []
    if metric_filter.name is not None:
        clauses.append("name = ?")
        params.append(metric_filter.name)
    if metric_filter.tags is not None:
        if metric_filter.tags:
            placeholders = ", ".join("?" for _ in metric_filter.tags)
            clauses.append(
                "EXISTS (SELECT 1 FROM json_each(metrics.tags) "
                f"WHERE json_each.value IN ({placeholders}))"
            )
            params.extend(metric_filter.tags)
        else:
            clauses.append("0")
    start, end = resolve_bounds(metric_filter)
    if start is not None:
        clauses.append("timestamp_ms >= ?")
        params.append(_to_epoch_ms_ceil(start))
    if end is not None:
        clauses.append("timestamp_ms <= ?")
        params.append(_to_epoch_ms(end))
    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


class SQLiteMetricStore:
    """SQLite implementation of MetricStorePort.

    Uses aiosqlite for non-blocking access and WAL mode for concurrent
    readers. Timestamps are stored as integer epoch milliseconds and tags
    as a JSON array, queried through json_each for match-any membership.

    For :memory: databases a single persistent connection is kept since
    in-memory databases are connection-scoped in SQLite.
    """

    def __init__(
        self, db_path: str, retention_seconds: int = DEFAULT_RETENTION_SECONDS
    ) -> None:
        self._db_path = db_path
        self._retention = timedelta(seconds=retention_seconds)
        self._manager = AsyncConnectionManager(db_path, _METRICS_SCHEMA)

    async def insert(self, metric: Metric) -> Metric:
        """Persist a metric, assigning a fresh identity."""
        metric_id = new_metric_id()
        async with self._manager.transaction() as db:
            await db.execute(
                _INSERT_METRIC,
                (
                    metric_id,
                    metric.name,
                    _encode_tags(metric.tags),
                    metric.value,
                    _to_epoch_ms(metric.timestamp),
                ),
            )
        return Metric(
            id=metric_id,
            name=metric.name,
            tags=metric.tags,
            value=metric.value,
            timestamp=_from_epoch_ms(_to_epoch_ms(metric.timestamp)),
        )

    async def find(self, metric_filter: MetricFilter) -> list[Metric]:
        """Return matching metrics, newest first."""
        where, params = _where_clause(metric_filter)
        query = _SELECT_COLUMNS + where + _ORDER_NEWEST_FIRST
        async with self._manager.connection() as db:
            async with db.execute(query, params) as cursor:
                return [_from_row(row) async for row in cursor]

    async def update(
        self, metric_id: str, update: UpdateMetricRequest
    ) -> Metric | None:
        """Apply the set fields of update to the metric with metric_id."""
        assignments: list[str] = []
        params: list[Any] = []
        if update.name is not None:
            assignments.append("name = ?")
            params.append(update.name)
        if update.tags is not None:
            assignments.append("tags = ?")
            params.append(_encode_tags(update.tags))
        if update.value is not None:
            assignments.append("value = ?")
            params.append(update.value)
        if not assignments:
            return None

        statement = f"UPDATE metrics SET {', '.join(assignments)} WHERE id = ?"
        async with self._manager.transaction() as db:
            cursor = await db.execute(statement, (*params, metric_id))
            if cursor.rowcount == 0:
                return None
            async with db.execute(_SELECT_BY_ID, (metric_id,)) as select:
                row = await select.fetchone()
        return _from_row(row) if row is not None else None

    async def delete(self, metric_id: str) -> bool:
        """Delete the metric with metric_id; return True if it existed."""
        async with self._manager.transaction() as db:
            cursor = await db.execute(_DELETE_BY_ID, (metric_id,))
            return cursor.rowcount > 0

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Delete metrics older than the retention window."""
        cutoff = (now or utc_now()) - self._retention
        async with self._manager.transaction() as db:
            cursor = await db.execute(_DELETE_BEFORE, (_to_epoch_ms(cutoff),))
            purged = cursor.rowcount
        if purged:
            logger.info("Purged %d expired metrics", purged)
        return purged

    async def close(self) -> None:
        """Close persistent connection (for :memory: databases)."""
        await self._manager.close()
