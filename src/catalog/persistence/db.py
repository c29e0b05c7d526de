"""Async database engine and session factory.

Provides PostgreSQL async connectivity using SQLAlchemy 2.0 asyncio
extension with asyncpg driver. The engine owns the bounded connection
pool shared by every request; it is created once by
``catalog.lifecycle.open_resources`` and disposed on shutdown.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from catalog.core.errors import StoreError
from catalog.persistence.tables import Base

if TYPE_CHECKING:
    from catalog.config import Settings
    from catalog.persistence.repositories import ProductRepository

logger = logging.getLogger(__name__)

# Below this many rows the sample catalogue is inserted on startup
SAMPLE_THRESHOLD = 5


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async database engine with its connection pool."""
    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,  # Recycle connections after 30 minutes
        pool_pre_ping=True,  # Verify connection health
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(
    engine: AsyncEngine,
    repository: ProductRepository,
    seed: bool = True,
) -> None:
    """Create the products table if missing and seed sample rows.

    Sample products are inserted only while the table holds fewer than
    ``SAMPLE_THRESHOLD`` rows.
    """
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except (SQLAlchemyError, OSError) as e:
        raise StoreError("init_db", cause=str(e)) from e

    if not seed:
        return

    existing = await repository.count()
    if existing < SAMPLE_THRESHOLD:
        inserted = await repository.seed_samples()
        logger.info(f"Found {existing} products, inserted {inserted} sample products")
    else:
        logger.info(f"Found {existing} products, no sample data inserted")
