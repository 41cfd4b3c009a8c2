"""Shared test fixtures for all test modules."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from telequery.adapters.storage.in_memory import InMemoryCache, InMemoryMetricStore
from telequery.core.models import Metric, MetricFilter
from telequery.core.parser import PromptParser
from telequery.services.query import QueryService
from telequery.services.telemetry import TelemetryService

try:
    import httpx
except ImportError:
    httpx = None

FIXED_NOW = datetime(2024, 3, 15, 14, 30, 45, 123000, tzinfo=UTC)


class CountingMetricStore(InMemoryMetricStore):
    """In-memory store that counts find() calls."""

    def __init__(self) -> None:
        super().__init__()
        self.find_calls = 0

    async def find(self, metric_filter: MetricFilter) -> list[Metric]:
        self.find_calls += 1
        return await super().find(metric_filter)


class ManualClock:
    """Monotonic clock advanced explicitly by tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fixed_now() -> datetime:
    """The instant returned by the fixed parser clock."""
    return FIXED_NOW


@pytest.fixture
def parser() -> PromptParser:
    """Prompt parser anchored to FIXED_NOW."""
    return PromptParser(clock=lambda: FIXED_NOW)


@pytest.fixture
def make_metric() -> Callable[..., Metric]:
    """Factory for metrics with sensible defaults.

    age_minutes places the timestamp that many minutes before FIXED_NOW.
    """

    def _make(
        name: str = "cpu",
        value: float = 1.0,
        tags: tuple[str, ...] | None = None,
        age_minutes: float = 0,
        metric_id: str | None = None,
    ) -> Metric:
        return Metric(
            id=metric_id,
            name=name,
            value=value,
            tags=tags,
            timestamp=FIXED_NOW - timedelta(minutes=age_minutes),
        )

    return _make


@pytest.fixture
def store() -> CountingMetricStore:
    """Empty in-memory store that counts reads."""
    return CountingMetricStore()


@pytest.fixture
def cache_clock() -> ManualClock:
    """Controllable clock for the in-memory cache."""
    return ManualClock()


@pytest.fixture
def cache(cache_clock: ManualClock) -> InMemoryCache:
    """Empty in-memory cache driven by cache_clock."""
    return InMemoryCache(clock=cache_clock)


@pytest.fixture
def telemetry_service(
    store: CountingMetricStore, cache: InMemoryCache
) -> TelemetryService:
    """Telemetry service over the in-memory store and cache."""
    return TelemetryService(store, cache)


@pytest.fixture
def query_service(
    telemetry_service: TelemetryService, parser: PromptParser
) -> QueryService:
    """Query service using the fixed-clock parser."""
    return QueryService(telemetry_service, parser=parser)


@pytest.fixture
def metrics_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for metric store tests."""
    return str(tmp_path / "metrics.db")


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_app(settings, store=store, cache=cache)
            async with asgi_test_client(app) as client:
                response = await client.get("/query", params={"prompt": "..."})
    """
    if httpx is None:
        pytest.skip("httpx not installed")

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
