"""Application bootstrap: wiring settings, adapters, services and routes.

Run with:
    telequery
or:
    uvicorn telequery.app:create_app --factory
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version

from fastapi import FastAPI

from telequery.adapters.cache.redis_cache import RedisCache
from telequery.adapters.frameworks.fastapi import create_telemetry_router
from telequery.adapters.storage.in_memory import InMemoryCache
from telequery.adapters.storage.sqlite_metrics import SQLiteMetricStore
from telequery.config import Settings
from telequery.core.ports import CachePort, MetricStorePort
from telequery.services.query import QueryService
from telequery.services.telemetry import TelemetryService

logger = logging.getLogger(__name__)


def _package_version() -> str:
    try:
        return version("telequery")
    except PackageNotFoundError:
        return "0.0.0"


async def _sweep_expired(store: MetricStorePort, interval_seconds: int) -> None:
    """Periodically purge metrics past the retention window."""
    while True:
        try:
            await store.purge_expired()
        except Exception:
            logger.exception("Retention sweep failed")
        await asyncio.sleep(interval_seconds)


def create_app(
    settings: Settings | None = None,
    store: MetricStorePort | None = None,
    cache: CachePort | None = None,
) -> FastAPI:
    """Create the telemetry FastAPI application.

    Args:
        settings: Runtime settings. Defaults to Settings.from_env().
        store: Metric store to use instead of the configured SQLite file.
        cache: Cache to use instead of Redis or the in-process cache.

    Returns:
        FastAPI app exposing /metrics, /query, /health and /version.
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    owned_store: SQLiteMetricStore | None = None
    owned_cache: RedisCache | None = None
    if store is None:
        owned_store = SQLiteMetricStore(
            settings.database_path, retention_seconds=settings.retention_seconds
        )
        store = owned_store
    if cache is None:
        if settings.redis_url:
            owned_cache = RedisCache.from_url(settings.redis_url)
            cache = owned_cache
        else:
            cache = InMemoryCache()

    telemetry_service = TelemetryService(
        store, cache, cache_ttl_seconds=settings.cache_ttl_seconds
    )
    query_service = QueryService(telemetry_service)
    app_version = _package_version()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Server version: %s (built on %s)", app_version, settings.build_date)
        logger.info("Environment: %s", settings.app_env)
        if owned_store is not None:
            logger.info("Database: %s", settings.database_path)
        if owned_cache is not None:
            try:
                await owned_cache.ping()
                logger.info("Connected to Redis successfully")
            except Exception:
                logger.warning("Redis unreachable; cache reads will miss until it recovers")
        sweeper = asyncio.create_task(
            _sweep_expired(store, settings.retention_sweep_seconds)
        )
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            if owned_cache is not None:
                await owned_cache.close()
            if owned_store is not None:
                await owned_store.close()

    app = FastAPI(title="Telemetry Server", version=app_version, lifespan=lifespan)
    app.include_router(create_telemetry_router(telemetry_service, query_service))

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    @app.get("/version")
    async def get_version() -> dict[str, str]:
        return {"version": app_version, "build_date": settings.build_date}

    return app


def main() -> None:
    """Run the server with uvicorn on the configured port."""
    import uvicorn

    settings = Settings.from_env()
    app = create_app(settings)
    logger.info("Starting server at: 0.0.0.0:%d", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
