"""Process-scoped resources for the catalog service.

The database engine (with its connection pool) and the Redis client are
created once per process, shared by every request, and released when
the owning scope exits. Startup waits for both dependencies with a
bounded linear backoff before giving up.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from catalog.cache.redis import RedisCache, close_redis, create_redis
from catalog.core.errors import CacheError, StoreError
from catalog.core.products import ProductService
from catalog.persistence.db import create_engine, create_session_factory, init_db
from catalog.persistence.repositories import ProductRepository

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from catalog.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class RetryPolicy:
    """Bounded retry with linear backoff: delay * attempt, capped at max_delay."""

    attempts: int = 3
    delay: float = 1.0
    max_delay: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            attempts=settings.startup_retry_attempts,
            delay=settings.startup_retry_delay,
            max_delay=settings.startup_retry_delay_max,
        )

    def backoff(self, attempt: int) -> float:
        """Seconds to wait after the given failed attempt (1-based)."""
        return min(self.delay * attempt, self.max_delay)


async def wait_for_dependency(
    name: str,
    probe: Callable[[], Awaitable[None]],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Call ``probe`` until it succeeds or the policy is exhausted.

    Raises:
        StoreError | CacheError: The last failure once all attempts fail.
    """
    for attempt in range(1, policy.attempts + 1):
        try:
            await probe()
            logger.info(f"Connected to {name}")
            return
        except (StoreError, CacheError) as e:
            if attempt == policy.attempts:
                logger.error(f"Could not connect to {name} after {attempt} attempts")
                raise
            delay = policy.backoff(attempt)
            logger.warning(
                f"Failed to connect to {name} (attempt {attempt}/{policy.attempts}): {e}. "
                f"Retrying in {delay:.1f}s"
            )
            await sleep(delay)


@dataclass
class Resources:
    """Handles to the shared clients and the services built on them."""

    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    redis: Redis
    repository: ProductRepository
    cache: RedisCache
    products: ProductService


@asynccontextmanager
async def open_resources(settings: Settings, init_schema: bool = True) -> AsyncIterator[Resources]:
    """Create, verify and finally release the process-wide resources.

    On entry:
    - Create the async engine and the Redis client
    - Wait for PostgreSQL and Redis with the configured retry policy
    - Create the products table and seed sample rows (when ``init_schema``)

    On exit the Redis client is closed and the engine disposed, also when
    startup fails part way.
    """
    engine = create_engine(settings)
    redis_client = create_redis(settings)
    try:
        session_factory = create_session_factory(engine)
        repository = ProductRepository(session_factory)
        cache = RedisCache(redis_client, ttl=settings.cache_ttl)

        policy = RetryPolicy.from_settings(settings)
        await wait_for_dependency("PostgreSQL", repository.ping, policy)
        await wait_for_dependency("Redis", cache.ping, policy)

        if init_schema:
            await init_db(engine, repository, seed=settings.seed_sample_data)

        yield Resources(
            engine=engine,
            session_factory=session_factory,
            redis=redis_client,
            repository=repository,
            cache=cache,
            products=ProductService(
                repository,
                cache,
                operation_timeout=settings.request_timeout,
                cache_timeout=settings.cache_timeout,
            ),
        )
    finally:
        await close_redis(redis_client)
        await engine.dispose()
