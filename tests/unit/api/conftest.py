"""Fixtures for API tests: the real app wired to in-memory fakes."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from catalog.api.app import create_app
from catalog.api.deps import get_cache, get_product_service, get_repository
from catalog.cache.redis import RedisCache
from catalog.config import Settings
from catalog.core.products import ProductService
from tests.unit.fakes import FakeProductRepository


@pytest.fixture
def app(
    service: ProductService, repository: FakeProductRepository, cache: RedisCache
) -> FastAPI:
    """Application without lifespan, dependencies overridden with fakes."""
    app = create_app(Settings(_env_file=None, enable_metrics=False))
    app.dependency_overrides[get_product_service] = lambda: service
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_cache] = lambda: cache
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
