"""Maintenance commands: schema setup and manual cache flush.

Usage:
    catalog init-db
    catalog init-db --no-seed
    catalog flush-cache
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from catalog.cache.redis import RedisCache, close_redis, create_redis
from catalog.config import Settings, settings
from catalog.core.errors import CacheError, StoreError
from catalog.lifecycle import RetryPolicy, open_resources, wait_for_dependency
from catalog.observability import LogContext, configure_logging

console = Console()


def init_database(
    seed: bool = typer.Option(
        True,
        "--seed/--no-seed",
        help="Insert sample products when the table holds fewer than five rows",
    ),
) -> None:
    """Create the products table and optionally seed sample data."""
    configure_logging(json_format=False, level=settings.log_level)
    init_settings = settings.model_copy(update={"seed_sample_data": seed})
    try:
        total = asyncio.run(_init_database(init_settings))
    except (StoreError, CacheError) as e:
        console.print(f"[red]Initialization failed:[/red] {e}")
        raise typer.Exit(code=1) from e
    console.print(f"[green]Database ready[/green] ({total} products)")


async def _init_database(init_settings: Settings) -> int:
    with LogContext(request_id="cli-init-db"):
        async with open_resources(init_settings) as resources:
            return await resources.repository.count()


def flush_cache() -> None:
    """Delete every cached product entry.

    Use after a Redis outage during writes, when invalidations may have
    been missed and entries could be stale until their TTL expires.
    """
    configure_logging(json_format=False, level=settings.log_level)
    try:
        deleted = asyncio.run(_flush_cache())
    except (StoreError, CacheError) as e:
        console.print(f"[red]Flush failed:[/red] {e}")
        raise typer.Exit(code=1) from e
    console.print(f"[green]Flushed {deleted} cache entries[/green]")


async def _flush_cache() -> int:
    with LogContext(request_id="cli-flush-cache"):
        client = create_redis(settings)
        try:
            cache = RedisCache(client, ttl=settings.cache_ttl)
            await wait_for_dependency("Redis", cache.ping, RetryPolicy.from_settings(settings))
            return await cache.flush_products()
        finally:
            await close_redis(client)
