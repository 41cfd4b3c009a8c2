"""Cache adapters implementing CachePort."""

from telequery.adapters.cache.redis_cache import RedisCache

__all__ = ["RedisCache"]
