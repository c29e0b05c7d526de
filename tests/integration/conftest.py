"""Integration test fixtures using Docker.

Starts throwaway PostgreSQL and Redis containers once per session and
opens the real catalog resources against them for each test. Tests are
skipped when Docker is unavailable.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

from catalog.api.app import create_app
from catalog.config import Settings
from catalog.lifecycle import Resources, open_resources
from tests.integration.docker_utils import (
    POSTGRES_CREDENTIALS,
    POSTGRES_IMAGE,
    REDIS_IMAGE,
    DockerService,
    get_docker_client,
    run_container,
)


@pytest.fixture(scope="session")
def docker_client():
    """Create a Docker client or skip if Docker is unavailable."""
    try:
        client = get_docker_client()
        client.ping()
    except Exception as exc:
        pytest.skip(f"Docker not available: {exc}")
    yield client
    client.close()


@pytest.fixture(scope="session")
def postgres_container(docker_client) -> Iterator[DockerService]:
    """Start PostgreSQL container for the test session."""
    with run_container(
        docker_client, POSTGRES_IMAGE, env=POSTGRES_CREDENTIALS, ports={"5432/tcp": None}
    ) as postgres:
        yield postgres


@pytest.fixture(scope="session")
def redis_container(docker_client) -> Iterator[DockerService]:
    """Start Redis container for the test session."""
    with run_container(docker_client, REDIS_IMAGE, ports={"6379/tcp": None}) as redis:
        yield redis


@pytest.fixture(scope="session")
def settings(postgres_container: DockerService, redis_container: DockerService) -> Settings:
    """Settings pointing at the test containers.

    The generous retry policy doubles as the wait for container startup.
    """
    return Settings(
        _env_file=None,
        postgres_host=postgres_container.host,
        postgres_port=postgres_container.port(5432),
        postgres_user=POSTGRES_CREDENTIALS["POSTGRES_USER"],
        postgres_password=POSTGRES_CREDENTIALS["POSTGRES_PASSWORD"],
        postgres_db=POSTGRES_CREDENTIALS["POSTGRES_DB"],
        redis_host=redis_container.host,
        redis_port=redis_container.port(6379),
        seed_sample_data=False,
        startup_retry_attempts=60,
        startup_retry_delay=0.5,
        startup_retry_delay_max=1.0,
    )


@pytest_asyncio.fixture
async def resources(settings: Settings) -> AsyncIterator[Resources]:
    """Real engine, Redis client and services, emptied before each test."""
    async with open_resources(settings) as resources:
        async with resources.engine.begin() as conn:
            await conn.execute(text("TRUNCATE products RESTART IDENTITY"))
        await resources.redis.flushdb()
        yield resources


@pytest_asyncio.fixture
async def app(settings: Settings, resources: Resources) -> FastAPI:
    """Application wired to the real resources without running its lifespan."""
    app = create_app(settings)
    app.state.products = resources.products
    app.state.repository = resources.repository
    app.state.cache = resources.cache
    return app


@pytest_asyncio.fixture
async def test_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """HTTP client against the in-process application."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
