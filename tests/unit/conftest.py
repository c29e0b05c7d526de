"""Unit test fixtures backed by in-memory fakes."""

from __future__ import annotations

import pytest

from catalog.cache.redis import RedisCache
from catalog.core.products import ProductService
from tests.unit.fakes import FakeProductRepository, FakeRedis


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache(fake_redis: FakeRedis) -> RedisCache:
    return RedisCache(fake_redis, ttl=3600)  # type: ignore[arg-type]


@pytest.fixture
def repository() -> FakeProductRepository:
    return FakeProductRepository()


@pytest.fixture
def service(repository: FakeProductRepository, cache: RedisCache) -> ProductService:
    return ProductService(repository, cache, operation_timeout=1.0)  # type: ignore[arg-type]
