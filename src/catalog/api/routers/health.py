"""Health check endpoints for the catalog.

- /health        - PostgreSQL and Redis
- /health/db     - PostgreSQL only
- /health/redis  - Redis only

Each returns 200 with ``{"status": "OK", "service": ...}`` when the
dependency answers, 500 otherwise.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from catalog.api.deps import CacheDep, RepositoryDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

# Upper bound for a single dependency probe
HEALTH_CHECK_TIMEOUT = 5.0

SERVICE_ALL = "All"
SERVICE_DB = "PostgresSQL"
SERVICE_REDIS = "REDIS"


async def _probe(name: str, check: Callable[[], Awaitable[bool]]) -> bool:
    """Run a health check with a timeout, logging failures."""
    start = time.monotonic()
    try:
        healthy = await asyncio.wait_for(check(), timeout=HEALTH_CHECK_TIMEOUT)
    except asyncio.TimeoutError:
        healthy = False
    latency = (time.monotonic() - start) * 1000
    if not healthy:
        logger.warning(f"Health check failed for {name} after {latency:.1f}ms")
    return healthy


def _report(service: str, healthy: bool) -> JSONResponse:
    if healthy:
        return JSONResponse(content={"status": "OK", "service": service})
    return JSONResponse(
        status_code=500,
        content={"status": "ERROR", "service": service, "error": f"{service} unavailable"},
    )


@router.get("")
async def full_health(repository: RepositoryDep, cache: CacheDep) -> JSONResponse:
    """Check both dependencies."""
    db_ok, redis_ok = await asyncio.gather(
        _probe(SERVICE_DB, repository.health_check),
        _probe(SERVICE_REDIS, cache.health_check),
    )
    return _report(SERVICE_ALL, db_ok and redis_ok)


@router.get("/db")
async def db_health(repository: RepositoryDep) -> JSONResponse:
    """Check PostgreSQL connectivity."""
    return _report(SERVICE_DB, await _probe(SERVICE_DB, repository.health_check))


@router.get("/redis")
async def redis_health(cache: CacheDep) -> JSONResponse:
    """Check Redis connectivity."""
    return _report(SERVICE_REDIS, await _probe(SERVICE_REDIS, cache.health_check))
