"""Cache layer for the product catalog.

Provides Redis caching with the read-through pattern:
- Item entries (products:<id>) and one collection entry (products:all)
- TTL-based expiration so a missed invalidation heals on its own
"""

from catalog.cache.keys import CacheKeys
from catalog.cache.redis import DEFAULT_TTL, RedisCache, close_redis, create_redis

__all__ = [
    "CacheKeys",
    "DEFAULT_TTL",
    "RedisCache",
    "create_redis",
    "close_redis",
]
