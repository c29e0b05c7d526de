"""Store adapter for products.

``ProductRepository`` runs parameterized SQL through SQLAlchemy against
the shared session factory; each call uses its own short-lived session
from the pool. It knows nothing about caching.

Failures from the driver or the pool surface as ``StoreError`` carrying
the operation name and product id. A missing row is never an error here:
reads return None and writes return None so the caller decides.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

from sqlalchemy import delete, func, insert, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog.core.errors import InvalidPatchError, StoreError
from catalog.core.model import Product
from catalog.observability.metrics import record_db_query
from catalog.persistence.tables import ProductTable

# Columns a partial update may touch. Identity and timestamps are store-owned.
UPDATABLE_COLUMNS: tuple[str, ...] = ("name", "description", "quantity", "price", "category")

SAMPLE_PRODUCTS: tuple[dict[str, Any], ...] = (
    {
        "name": "Laptop",
        "description": "15-inch display, 8GB RAM, 512GB SSD",
        "quantity": 20,
        "price": 999.99,
        "category": "Electronics",
    },
    {
        "name": "Wireless Mouse",
        "description": "Bluetooth mouse with ergonomic design",
        "quantity": 50,
        "price": 25.50,
        "category": "Accessories",
    },
    {
        "name": "Office Chair",
        "description": "Adjustable height with lumbar support",
        "quantity": 15,
        "price": 120.00,
        "category": "Furniture",
    },
    {
        "name": "Desk Lamp",
        "description": "LED lamp with adjustable brightness",
        "quantity": 30,
        "price": 45.00,
        "category": "Accessories",
    },
    {
        "name": "Smartphone",
        "description": "6.5-inch screen, 128GB storage",
        "quantity": 40,
        "price": 699.99,
        "category": "Electronics",
    },
)

logger = logging.getLogger(__name__)

_PRODUCT_COLUMNS = tuple(ProductTable.__table__.columns)


def build_update_values(patch: Mapping[str, Any]) -> dict[str, Any]:
    """Translate a validated patch into column values for UPDATE ... SET.

    Only columns listed in ``UPDATABLE_COLUMNS`` are emitted, in that
    order. The values are bound as parameters by SQLAlchemy.

    Raises:
        InvalidPatchError: If the patch is empty or names other columns.
    """
    unknown = sorted(set(patch) - set(UPDATABLE_COLUMNS))
    if unknown:
        raise InvalidPatchError(f"Fields cannot be updated: {', '.join(unknown)}")

    values = {column: patch[column] for column in UPDATABLE_COLUMNS if column in patch}
    if not values:
        raise InvalidPatchError("At least one field is required for update")
    return values


class ProductRepository:
    """Repository for product rows."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _fetch_one(
        self, operation: str, stmt: Any, product_id: int | None = None, write: bool = False
    ) -> Product | None:
        start = time.perf_counter()
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                row = result.mappings().first()
                if write:
                    await session.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                f"Store {operation} failed for product {product_id}: {e}",
                extra={"operation": operation, "product_id": product_id},
            )
            raise StoreError(operation, product_id, str(e)) from e
        finally:
            record_db_query(operation, time.perf_counter() - start)
        return Product.model_validate(dict(row)) if row is not None else None

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get(self, product_id: int) -> Product | None:
        """Get a product by id, or None if no row matches."""
        stmt = select(*_PRODUCT_COLUMNS).where(ProductTable.id == product_id)
        return await self._fetch_one("get", stmt, product_id)

    async def list_all(self) -> list[Product]:
        """List every product ordered by ascending id."""
        stmt = select(*_PRODUCT_COLUMNS).order_by(ProductTable.id.asc())
        start = time.perf_counter()
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                rows = result.mappings().all()
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Store list_all failed: {e}", extra={"operation": "list_all"})
            raise StoreError("list_all", cause=str(e)) from e
        finally:
            record_db_query("list_all", time.perf_counter() - start)
        return [Product.model_validate(dict(row)) for row in rows]

    async def count(self) -> int:
        """Count product rows."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(func.count()).select_from(ProductTable))
                return int(result.scalar_one())
        except (SQLAlchemyError, OSError) as e:
            raise StoreError("count", cause=str(e)) from e

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(self, fields: Mapping[str, Any]) -> Product:
        """Insert a product and return the stored row with its assigned id."""
        values = {column: fields[column] for column in UPDATABLE_COLUMNS if column in fields}
        stmt = insert(ProductTable).values(**values).returning(*_PRODUCT_COLUMNS)
        product = await self._fetch_one("create", stmt, write=True)
        if product is None:
            raise StoreError("create", cause="INSERT returned no row")
        return product

    async def update(self, product_id: int, patch: Mapping[str, Any]) -> Product | None:
        """Apply a partial update.

        Returns the updated row, or None if no row matched.

        Raises:
            InvalidPatchError: If the patch is empty or names other columns.
        """
        values = build_update_values(patch)
        stmt = (
            update(ProductTable)
            .where(ProductTable.id == product_id)
            .values(**values, updated_at=func.now())
            .returning(*_PRODUCT_COLUMNS)
        )
        return await self._fetch_one("update", stmt, product_id, write=True)

    async def delete(self, product_id: int) -> Product | None:
        """Delete a product.

        Returns the deleted row, or None if no row matched.
        """
        stmt = (
            delete(ProductTable)
            .where(ProductTable.id == product_id)
            .returning(*_PRODUCT_COLUMNS)
        )
        return await self._fetch_one("delete", stmt, product_id, write=True)

    async def seed_samples(self) -> int:
        """Insert the sample products.

        Returns the number of rows inserted.
        """
        try:
            async with self.session_factory() as session:
                await session.execute(insert(ProductTable), list(SAMPLE_PRODUCTS))
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise StoreError("seed_samples", cause=str(e)) from e
        return len(SAMPLE_PRODUCTS)

    async def ping(self) -> None:
        """Round-trip to PostgreSQL, raising StoreError when unreachable."""
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            raise StoreError("ping", cause=str(e)) from e

    async def health_check(self) -> bool:
        """Check database connectivity."""
        try:
            await self.ping()
            return True
        except StoreError:
            return False
