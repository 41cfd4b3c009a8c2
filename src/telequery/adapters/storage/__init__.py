"""Storage adapters implementing MetricStorePort (and the in-memory cache)."""

from telequery.adapters.storage.in_memory import InMemoryCache, InMemoryMetricStore
from telequery.adapters.storage.sqlite_metrics import SQLiteMetricStore

__all__ = [
    "InMemoryCache",
    "InMemoryMetricStore",
    "SQLiteMetricStore",
]
