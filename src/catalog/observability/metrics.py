"""Prometheus metrics for the product catalog.

Provides metrics collection and exposure:
- HTTP request metrics (latency, count)
- Store metrics (query time per operation)
- Cache metrics (hits, misses, failures)

Usage:
    from catalog.observability.metrics import record_cache_hit

    record_cache_hit("item")
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from prometheus_client import REGISTRY, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

if TYPE_CHECKING:
    from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

_NUMERIC_SEGMENT = re.compile(r"/\d+(?=/|$)")


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    # HTTP metrics
    http_requests_total: Any = None
    http_request_duration_seconds: Any = None

    # Store metrics
    db_query_duration_seconds: Any = None

    # Cache metrics
    cache_hits_total: Any = None
    cache_misses_total: Any = None
    cache_errors_total: Any = None

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _enabled: bool = field(default=False, repr=False)

    def initialize(self, enabled: bool = True) -> None:
        """Initialize Prometheus metrics.

        A disabled call registers nothing, so a later enabled call still can.
        """
        if self._initialized:
            return

        if not enabled:
            logger.info("Metrics are disabled")
            return

        self.http_requests_total = Counter(
            "catalog_http_requests_total",
            "Total HTTP requests",
            ["method", "path", "status"],
        )

        self.http_request_duration_seconds = Histogram(
            "catalog_http_request_duration_seconds",
            "HTTP request latency in seconds",
            ["method", "path"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
        )

        self.db_query_duration_seconds = Histogram(
            "catalog_db_query_duration_seconds",
            "Database query latency in seconds",
            ["operation"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
        )

        self.cache_hits_total = Counter(
            "catalog_cache_hits_total",
            "Cache hits",
            ["key_kind"],
        )

        self.cache_misses_total = Counter(
            "catalog_cache_misses_total",
            "Cache misses",
            ["key_kind"],
        )

        self.cache_errors_total = Counter(
            "catalog_cache_errors_total",
            "Cache commands that failed",
            ["operation"],
        )

        self._enabled = True
        self._initialized = True
        logger.info("Prometheus metrics initialized")

    @property
    def enabled(self) -> bool:
        return self._enabled

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if not self._enabled:
            return b"# Metrics disabled\n"
        return generate_latest(REGISTRY)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics(enabled: bool = True) -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access unless disabled.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize(enabled)
    return metrics_registry


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware for HTTP request metrics.

    Records:
    - Request count by method, path, status
    - Request duration histogram
    """

    def __init__(self, app: "ASGIApp") -> None:
        super().__init__(app)
        self.metrics = get_metrics()

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        """Record metrics for HTTP requests."""
        # Skip metrics for the scrape endpoint itself
        if request.url.path == "/metrics" or not self.metrics.enabled:
            return await call_next(request)

        method = request.method
        path = self._normalize_path(request.url.path)

        start_time = time.perf_counter()
        status_code = 500  # Default in case of exception

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration = time.perf_counter() - start_time
            self.metrics.http_requests_total.labels(
                method=method,
                path=path,
                status=status_code,
            ).inc()
            self.metrics.http_request_duration_seconds.labels(
                method=method,
                path=path,
            ).observe(duration)

    def _normalize_path(self, path: str) -> str:
        """Collapse numeric ids to keep label cardinality bounded.

        /products/42 -> /products/{id}
        """
        return _NUMERIC_SEGMENT.sub("/{id}", path)


def record_db_query(operation: str, duration: float) -> None:
    """Record a store query duration."""
    if metrics_registry.enabled:
        metrics_registry.db_query_duration_seconds.labels(operation=operation).observe(duration)


def record_cache_hit(key_kind: str) -> None:
    """Record a cache hit for an item or collection key."""
    if metrics_registry.enabled:
        metrics_registry.cache_hits_total.labels(key_kind=key_kind).inc()


def record_cache_miss(key_kind: str) -> None:
    """Record a cache miss for an item or collection key."""
    if metrics_registry.enabled:
        metrics_registry.cache_misses_total.labels(key_kind=key_kind).inc()


def record_cache_error(operation: str) -> None:
    """Record a failed cache command."""
    if metrics_registry.enabled:
        metrics_registry.cache_errors_total.labels(operation=operation).inc()
