"""Middleware for the catalog API.

- Correlation context for request tracing
"""

from catalog.api.middleware.correlation import CorrelationMiddleware

__all__ = [
    "CorrelationMiddleware",
]
