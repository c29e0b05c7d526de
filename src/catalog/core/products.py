"""Cache-coherence layer for products.

``ProductService`` sits between the HTTP handlers and the two adapters:

- Reads are read-through: the cache is consulted first, a miss falls back
  to the store and the result is written back with the cache TTL.
- Writes go to the store first. Afterwards the affected keys are evicted,
  and create/update repopulate the item key with the fresh row. The
  collection key is always evicted, never patched.

The store is authoritative. A cache failure while reading degrades to a
store read; a cache failure after a successful write is logged and
counted but does not fail the write, because the entry expires with its
TTL anyway.

Two time budgets apply. Each store call is bounded by
``operation_timeout`` and raises ``OperationTimeoutError`` when it runs
over. Each cache command is bounded by ``cache_timeout``; a slow reply is
treated like any other cache failure. Cache work that follows a committed
write is therefore never cancelled by the store budget.

Misses for unknown ids are not cached, so repeated lookups of a missing
id always reach the store. Concurrent writers to one id are not
serialized: whichever cache write lands last wins until the TTL expires.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from catalog.cache.keys import CacheKeys
from catalog.cache.redis import RedisCache
from catalog.core.errors import (
    CacheError,
    InvalidPatchError,
    OperationTimeoutError,
    ProductNotFoundError,
)
from catalog.core.model import Product
from catalog.observability.metrics import (
    record_cache_error,
    record_cache_hit,
    record_cache_miss,
)
from catalog.persistence.repositories import ProductRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default time budget for a store call, in seconds
DEFAULT_OPERATION_TIMEOUT = 10.0

# Default time budget for a single cache command, in seconds
DEFAULT_CACHE_TIMEOUT = 1.0


class ProductService:
    """Coordinates the product store and cache for each operation."""

    def __init__(
        self,
        repository: ProductRepository,
        cache: RedisCache,
        operation_timeout: float | None = DEFAULT_OPERATION_TIMEOUT,
        cache_timeout: float | None = DEFAULT_CACHE_TIMEOUT,
    ):
        self.repository = repository
        self.cache = cache
        self.operation_timeout = operation_timeout
        self.cache_timeout = cache_timeout

    # -------------------------------------------------------------------------
    # Read-through
    # -------------------------------------------------------------------------

    async def get_one(self, product_id: int) -> Product:
        """Get a product, from cache when possible.

        Raises:
            ProductNotFoundError: If the store has no such product.
            StoreError: If the store is unreachable on a cache miss.
            OperationTimeoutError: If the store does not answer in time.
        """
        key = CacheKeys.product(product_id)
        cached = await self._read_cache(
            "get_one", key, lambda: self.cache.get_product(product_id)
        )
        if cached is not None:
            record_cache_hit("item")
            logger.debug(f"Cache hit: product {product_id}")
            return cached

        record_cache_miss("item")
        logger.debug(f"Cache miss: product {product_id}")

        product = await self._bounded("get_one", self.repository.get(product_id))
        if product is None:
            raise ProductNotFoundError(product_id)

        await self._write_cache("get_one", key, lambda: self.cache.set_product(product))
        return product

    async def get_all(self) -> list[Product]:
        """Get every product ordered by id, from cache when possible."""
        key = CacheKeys.all_products()
        cached = await self._read_cache("get_all", key, self.cache.get_all_products)
        if cached is not None:
            record_cache_hit("collection")
            logger.debug("Cache hit: all products")
            return cached

        record_cache_miss("collection")
        logger.debug("Cache miss: all products")

        products = await self._bounded("get_all", self.repository.list_all())
        await self._write_cache("get_all", key, lambda: self.cache.set_all_products(products))
        return products

    # -------------------------------------------------------------------------
    # Write invalidation
    # -------------------------------------------------------------------------

    async def create(self, fields: Mapping[str, Any]) -> Product:
        """Insert a product, cache it and evict the collection entry."""
        product = await self._bounded("create", self.repository.create(fields))

        await self._write_cache(
            "create", CacheKeys.product(product.id), lambda: self.cache.set_product(product)
        )
        await self._write_cache(
            "create", CacheKeys.all_products(), self.cache.delete_all_products
        )
        logger.info(f"Created product {product.id}")
        return product

    async def update(self, product_id: int, patch: Mapping[str, Any]) -> Product:
        """Apply a partial update and repopulate the item entry.

        Raises:
            InvalidPatchError: If the patch is empty. Nothing is touched.
            ProductNotFoundError: If no product has this id.
        """
        # Rejected before any store or cache call
        if not patch:
            raise InvalidPatchError("At least one field is required for update")

        product = await self._bounded("update", self.repository.update(product_id, patch))
        if product is None:
            raise ProductNotFoundError(product_id)

        item_key = CacheKeys.product(product_id)
        await self._write_cache(
            "update",
            f"{item_key},{CacheKeys.all_products()}",
            lambda: self.cache.delete_keys(item_key, CacheKeys.all_products()),
        )
        await self._write_cache("update", item_key, lambda: self.cache.set_product(product))
        logger.info(f"Updated product {product_id} ({', '.join(sorted(patch))})")
        return product

    async def remove(self, product_id: int) -> Product:
        """Delete a product and evict its entries without repopulating.

        Raises:
            ProductNotFoundError: If no product has this id.
        """
        product = await self._bounded("remove", self.repository.delete(product_id))
        if product is None:
            raise ProductNotFoundError(product_id)

        item_key = CacheKeys.product(product_id)
        await self._write_cache(
            "remove",
            f"{item_key},{CacheKeys.all_products()}",
            lambda: self.cache.delete_keys(item_key, CacheKeys.all_products()),
        )
        logger.info(f"Deleted product {product_id}")
        return product

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _bounded(self, operation: str, work: Awaitable[T]) -> T:
        """Run a store call under the operation time budget."""
        if self.operation_timeout is None:
            return await work
        try:
            return await asyncio.wait_for(work, timeout=self.operation_timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Product operation {operation} timed out after {self.operation_timeout}s")
            raise OperationTimeoutError(operation, self.operation_timeout) from e

    async def _cache_call(self, key: str, command: Callable[[], Awaitable[T]]) -> T:
        """Run a cache command under the cache time budget.

        Raises:
            CacheError: If Redis fails or does not reply in time.
        """
        if self.cache_timeout is None:
            return await command()
        try:
            return await asyncio.wait_for(command(), timeout=self.cache_timeout)
        except asyncio.TimeoutError as e:
            raise CacheError("timeout", key, f"no reply within {self.cache_timeout:g}s") from e

    async def _read_cache(
        self, operation: str, key: str, lookup: Callable[[], Awaitable[T | None]]
    ) -> T | None:
        """Run a cache lookup, treating a cache failure as a miss."""
        try:
            return await self._cache_call(key, lookup)
        except CacheError as e:
            record_cache_error(operation)
            logger.warning(
                f"Cache read failed, falling back to store: {e}",
                extra={"operation": operation, "cache_key": key},
            )
            return None

    async def _write_cache(
        self, operation: str, key: str, command: Callable[[], Awaitable[Any]]
    ) -> None:
        """Run a cache write or eviction, reporting but not raising failures.

        The store already holds the authoritative state at this point; a
        failed eviction leaves a stale entry until its TTL expires.
        """
        try:
            await self._cache_call(key, command)
        except CacheError as e:
            record_cache_error(operation)
            logger.warning(
                f"Cache write during {operation} failed: {e}",
                extra={"operation": operation, "cache_key": key},
            )
