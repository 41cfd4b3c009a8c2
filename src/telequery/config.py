"""Process configuration loaded from the environment and .env files."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from telequery.adapters.storage.in_memory import DEFAULT_RETENTION_SECONDS
from telequery.services.telemetry import DEFAULT_CACHE_TTL_SECONDS


def _load_env_files() -> None:
    """Load .env.<ENVIRONMENT> if it exists, otherwise .env."""
    environment = os.getenv("ENVIRONMENT", "local")
    env_file = Path(f".env.{environment}")
    if env_file.exists():
        load_dotenv(env_file)
    else:
        load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the telemetry server.

    Attributes:
        app_env: Deployment environment name (dev, staging, prod).
        database_path: SQLite file path, or ":memory:".
        redis_url: Redis connection URL; None selects the in-process cache.
        port: HTTP port to bind.
        cache_ttl_seconds: Expiry of cached list results.
        retention_seconds: Age after which stored metrics are purged.
        retention_sweep_seconds: Interval between purge runs.
        log_level: Root logger level name.
        build_date: Reported by the /version endpoint.
    """

    app_env: str = "dev"
    database_path: str = "telemetry_server_dev.db"
    redis_url: str | None = None
    port: int = 8080
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    retention_seconds: int = DEFAULT_RETENTION_SECONDS
    retention_sweep_seconds: int = 60
    log_level: str = "INFO"
    build_date: str = "unknown"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ValueError: If a numeric variable is not an integer.
        """
        _load_env_files()
        app_env = os.getenv("APP_ENV", "dev")
        return cls(
            app_env=app_env,
            database_path=os.getenv("DATABASE_PATH", f"telemetry_server_{app_env}.db"),
            redis_url=os.getenv("REDIS_URL") or None,
            port=_int_env("PORT", 8080),
            cache_ttl_seconds=_int_env("CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS),
            retention_seconds=_int_env("RETENTION_SECONDS", DEFAULT_RETENTION_SECONDS),
            retention_sweep_seconds=_int_env("RETENTION_SWEEP_SECONDS", 60),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            build_date=os.getenv("BUILD_DATE", "unknown"),
        )
