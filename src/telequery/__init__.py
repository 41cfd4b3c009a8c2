"""telequery - telemetry metrics with prompt-driven queries.

Metrics are recorded through TelemetryService and read back either with a
structured MetricFilter or with a constrained free-text prompt through
QueryService. Reads go through a cache first (cache-aside).
"""

from telequery.adapters.cache.redis_cache import RedisCache
from telequery.adapters.storage.in_memory import InMemoryCache, InMemoryMetricStore
from telequery.adapters.storage.sqlite_metrics import SQLiteMetricStore
from telequery.core.aggregation import aggregate, apply_limit
from telequery.core.filters import build_filter, canonical_key
from telequery.core.models import (
    AggregationType,
    Average,
    Count,
    CreateMetricRequest,
    Metric,
    MetricFilter,
    ParsedQuery,
    QueryPrompt,
    Sum,
    TimeRange,
    TopN,
    UpdateMetricRequest,
)
from telequery.core.parser import PromptParser
from telequery.core.ports import CachePort, MetricStorePort
from telequery.services.query import QueryService
from telequery.services.telemetry import TelemetryService

__all__ = [
    "AggregationType",
    "Average",
    "CachePort",
    "Count",
    "CreateMetricRequest",
    "InMemoryCache",
    "InMemoryMetricStore",
    "Metric",
    "MetricFilter",
    "MetricStorePort",
    "ParsedQuery",
    "PromptParser",
    "QueryPrompt",
    "QueryService",
    "RedisCache",
    "SQLiteMetricStore",
    "Sum",
    "TelemetryService",
    "TimeRange",
    "TopN",
    "UpdateMetricRequest",
    "aggregate",
    "apply_limit",
    "build_filter",
    "canonical_key",
]
