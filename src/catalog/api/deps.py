"""Shared FastAPI dependencies for the catalog routers.

Process-wide resources live on ``app.state`` (set by the lifespan) and
are handed to handlers through these dependencies, which tests replace
with ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Path, Request

from catalog.api.errors import InvalidProductIdError, NotFoundError
from catalog.cache.redis import RedisCache
from catalog.core.model import INT4_MAX
from catalog.core.products import ProductService
from catalog.persistence.repositories import ProductRepository


def get_product_service(request: Request) -> ProductService:
    """The cache-coherence service."""
    return request.app.state.products


def get_repository(request: Request) -> ProductRepository:
    """The store adapter."""
    return request.app.state.repository


def get_cache(request: Request) -> RedisCache:
    """The cache adapter."""
    return request.app.state.cache


def parse_product_id(raw_id: str) -> int:
    """Parse a path id into a positive integer.

    Ids beyond the INTEGER column range cannot name a stored product.

    Raises:
        InvalidProductIdError: If the id is not a positive integer.
        NotFoundError: If the id is larger than any storable id.
    """
    if not (raw_id.isascii() and raw_id.isdigit()):
        raise InvalidProductIdError()
    product_id = int(raw_id)
    if product_id <= 0:
        raise InvalidProductIdError()
    if product_id > INT4_MAX:
        raise NotFoundError()
    return product_id


def product_id_param(
    product_id: Annotated[str, Path(description="Numeric product id")],
) -> int:
    """FastAPI dependency to parse the product id from the path."""
    return parse_product_id(product_id)


# Type aliases for cleaner router signatures
ProductId = Annotated[int, Depends(product_id_param)]
ProductServiceDep = Annotated[ProductService, Depends(get_product_service)]
RepositoryDep = Annotated[ProductRepository, Depends(get_repository)]
CacheDep = Annotated[RedisCache, Depends(get_cache)]
