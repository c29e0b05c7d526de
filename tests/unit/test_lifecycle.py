"""Tests for startup retry and resource lifecycle."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from catalog import lifecycle
from catalog.config import Settings
from catalog.core.errors import CacheError, StoreError
from catalog.core.products import ProductService
from catalog.lifecycle import RetryPolicy, open_resources, wait_for_dependency
from tests.unit.fakes import FakeProductRepository, FakeRedis


class FlakyProbe:
    """Probe that fails a fixed number of times before succeeding."""

    def __init__(self, failures: int, error: Exception | None = None):
        self.failures = failures
        self.error = error or StoreError("ping", cause="connection refused")
        self.calls = 0

    async def __call__(self) -> None:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error


class TestRetryPolicy:
    """Linear backoff with a cap."""

    def test_backoff_grows_linearly(self) -> None:
        """Delay is delay * attempt."""
        policy = RetryPolicy(attempts=5, delay=1.0, max_delay=10.0)
        assert [policy.backoff(n) for n in (1, 2, 3)] == [1.0, 2.0, 3.0]

    def test_backoff_is_capped(self) -> None:
        """Delay never exceeds max_delay."""
        policy = RetryPolicy(attempts=20, delay=2.0, max_delay=5.0)
        assert policy.backoff(10) == 5.0

    def test_from_settings(self) -> None:
        """Policy reads the startup retry settings."""
        settings = Settings(
            _env_file=None,
            startup_retry_attempts=4,
            startup_retry_delay=0.5,
            startup_retry_delay_max=2.0,
        )
        assert RetryPolicy.from_settings(settings) == RetryPolicy(4, 0.5, 2.0)


class TestWaitForDependency:
    """Bounded connection retry."""

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self) -> None:
        """Probe is retried with increasing sleeps."""
        probe = FlakyProbe(failures=2)
        sleep = AsyncMock()

        await wait_for_dependency("PostgreSQL", probe, RetryPolicy(attempts=3), sleep=sleep)

        assert probe.calls == 3
        assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_last_attempt(self) -> None:
        """The last failure is re-raised without a trailing sleep."""
        probe = FlakyProbe(failures=10, error=CacheError("ping", cause="refused"))
        sleep = AsyncMock()

        with pytest.raises(CacheError):
            await wait_for_dependency("Redis", probe, RetryPolicy(attempts=3), sleep=sleep)

        assert probe.calls == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_not_retried(self) -> None:
        """Only connectivity errors are retried."""
        probe = FlakyProbe(failures=1, error=RuntimeError("bug"))
        sleep = AsyncMock()

        with pytest.raises(RuntimeError):
            await wait_for_dependency("Redis", probe, RetryPolicy(attempts=3), sleep=sleep)

        sleep.assert_not_awaited()


@pytest.fixture
def patched_resources(monkeypatch: pytest.MonkeyPatch):
    """Replace engine, Redis client, repository and schema setup with fakes."""
    engine = MagicMock()
    engine.dispose = AsyncMock()
    fake_redis = FakeRedis()
    repository = FakeProductRepository()
    init_db = AsyncMock()

    monkeypatch.setattr(lifecycle, "create_engine", lambda settings: engine)
    monkeypatch.setattr(lifecycle, "create_redis", lambda settings: fake_redis)
    monkeypatch.setattr(lifecycle, "create_session_factory", lambda engine: MagicMock())
    monkeypatch.setattr(lifecycle, "ProductRepository", lambda factory: repository)
    monkeypatch.setattr(lifecycle, "init_db", init_db)
    return engine, fake_redis, repository, init_db


class TestOpenResources:
    """Process-scoped resource management."""

    @pytest.mark.asyncio
    async def test_opens_and_releases(self, patched_resources) -> None:
        """Resources are built, the schema initialized and everything closed on exit."""
        engine, fake_redis, repository, init_db = patched_resources
        settings = Settings(_env_file=None, cache_ttl=60, seed_sample_data=False)

        async with open_resources(settings) as resources:
            assert isinstance(resources.products, ProductService)
            assert resources.repository is repository
            assert resources.cache.ttl == 60
            assert resources.products.operation_timeout == settings.request_timeout
            assert resources.products.cache_timeout == settings.cache_timeout

        init_db.assert_awaited_once_with(engine, repository, seed=False)
        engine.dispose.assert_awaited_once()
        assert ("close", ()) in fake_redis.commands

    @pytest.mark.asyncio
    async def test_skip_schema(self, patched_resources) -> None:
        """Schema setup can be skipped."""
        _, _, _, init_db = patched_resources

        async with open_resources(Settings(_env_file=None), init_schema=False):
            pass

        init_db.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_releases_on_startup_failure(self, patched_resources) -> None:
        """An unreachable store fails startup but still closes clients."""
        engine, fake_redis, repository, _ = patched_resources
        repository.unavailable = True
        settings = Settings(_env_file=None, startup_retry_attempts=2, startup_retry_delay=0.0)

        with pytest.raises(StoreError):
            async with open_resources(settings):
                pass

        engine.dispose.assert_awaited_once()
        assert ("close", ()) in fake_redis.commands
