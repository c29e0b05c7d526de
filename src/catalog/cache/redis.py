"""Redis cache adapter for the product catalog.

Stores orjson-serialized products under the keys defined in
``catalog.cache.keys``, every entry written with SETEX so it expires on
its own. Any redis-py failure is re-raised as ``CacheError`` so callers
can decide whether a cache outage is tolerable for their operation.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, cast

import orjson
import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from catalog.cache.keys import CacheKeys
from catalog.core.errors import CacheError
from catalog.core.model import Product

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from catalog.config import Settings

logger = logging.getLogger(__name__)

# Default TTL (1 hour)
DEFAULT_TTL = 3600


def create_redis(settings: Settings) -> Redis:
    """Create the process-wide Redis client.

    redis-py keeps its own connection pool behind the client; one client
    is shared by every request.
    """
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        socket_timeout=settings.cache_timeout,
        socket_connect_timeout=settings.cache_timeout,
        decode_responses=False,  # We're storing bytes
    )


async def close_redis(client: Redis) -> None:
    """Close Redis connections."""
    await client.aclose()


class RedisCache:
    """Cache operations for products.

    Provides typed get/set/delete methods over opaque JSON payloads.
    """

    def __init__(self, client: Redis, ttl: int = DEFAULT_TTL):
        self.client = client
        self.ttl = ttl

    # -------------------------------------------------------------------------
    # Raw payload operations
    # -------------------------------------------------------------------------

    async def _get_json(self, key: str) -> Any | None:
        try:
            payload = await self.client.get(key)
        except RedisError as e:
            raise CacheError("get", key, str(e)) from e
        if payload is None:
            return None
        try:
            return orjson.loads(payload)
        except orjson.JSONDecodeError:
            # Unreadable entries behave like a miss; the next write replaces them
            logger.warning(f"Discarding undecodable cache entry {key}")
            return None

    async def _set_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        try:
            await self.client.setex(key, ttl or self.ttl, orjson.dumps(value))
        except RedisError as e:
            raise CacheError("set", key, str(e)) from e

    async def delete_keys(self, *keys: str) -> int:
        """Delete the given keys in one round trip.

        Returns the number of keys that existed.
        """
        try:
            return cast(int, await self.client.delete(*keys))
        except RedisError as e:
            raise CacheError("delete", ",".join(keys), str(e)) from e

    # -------------------------------------------------------------------------
    # Single product
    # -------------------------------------------------------------------------

    async def get_product(self, product_id: int) -> Product | None:
        """Get a cached product, or None on miss."""
        key = CacheKeys.product(product_id)
        data = await self._get_json(key)
        if data is None:
            return None
        try:
            return Product.model_validate(data)
        except ValidationError:
            logger.warning(f"Discarding malformed cache entry {key}")
            return None

    async def set_product(self, product: Product) -> None:
        """Cache a product under its id."""
        await self._set_json(CacheKeys.product(product.id), product.model_dump(mode="json"))

    async def delete_product(self, product_id: int) -> None:
        """Evict a cached product."""
        await self.delete_keys(CacheKeys.product(product_id))

    # -------------------------------------------------------------------------
    # Collection
    # -------------------------------------------------------------------------

    async def get_all_products(self) -> list[Product] | None:
        """Get the cached product listing, or None on miss."""
        key = CacheKeys.all_products()
        data = await self._get_json(key)
        if data is None:
            return None
        try:
            return [Product.model_validate(item) for item in data]
        except (TypeError, ValidationError):
            logger.warning(f"Discarding malformed cache entry {key}")
            return None

    async def set_all_products(self, products: list[Product]) -> None:
        """Cache the full product listing."""
        await self._set_json(
            CacheKeys.all_products(),
            [product.model_dump(mode="json") for product in products],
        )

    async def delete_all_products(self) -> None:
        """Evict the cached product listing."""
        await self.delete_keys(CacheKeys.all_products())

    # -------------------------------------------------------------------------
    # Bulk operations
    # -------------------------------------------------------------------------

    async def flush_products(self) -> int:
        """Delete every product cache entry.

        Recovery tool for missed invalidations. Returns the number of
        keys deleted.
        """
        deleted = 0
        try:
            # Use SCAN to avoid blocking on large keyspaces
            async for key in self.client.scan_iter(match=CacheKeys.flush_pattern()):
                deleted += cast(int, await self.client.delete(key))
        except RedisError as e:
            raise CacheError("flush", CacheKeys.flush_pattern(), str(e)) from e
        return deleted

    async def ping(self) -> None:
        """Round-trip to Redis, raising CacheError when unreachable."""
        try:
            await cast(Awaitable[bool], self.client.ping())
        except RedisError as e:
            raise CacheError("ping", cause=str(e)) from e

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            await self.ping()
            return True
        except CacheError:
            return False
