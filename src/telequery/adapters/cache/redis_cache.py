"""Redis adapter for the query result cache."""

import redis.asyncio as redis


class RedisCache:
    """Redis implementation of CachePort.

    Wraps a shared redis.asyncio client. The client owns its connection
    pool and timeouts; errors it raises are left to the caller, which treats
    the cache as best effort.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCache":
        """Create a cache backed by a new client for url."""
        return cls(redis.Redis.from_url(url, decode_responses=True))

    async def ping(self) -> bool:
        """Check connectivity to the Redis server."""
        return bool(await self._client.ping())

    async def get(self, key: str) -> str | None:
        """Return the cached payload for key, or None on a miss."""
        value = await self._client.get(key)
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store value under key with an expiry of ttl_seconds."""
        await self._client.set(key, value, ex=ttl_seconds)

    async def close(self) -> None:
        """Release the client's connection pool."""
        await self._client.aclose()
