"""FastAPI application factory for the product catalog.

Creates the application with:
- Product CRUD router backed by the cache-coherence service
- Health endpoints for PostgreSQL and Redis
- Lifecycle management for the database pool and Redis client
- Prometheus metrics and correlation-id logging
- JSON error bodies of the form {"error": "..."}
- ORJSON for fast JSON serialization
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.types import ExceptionHandler

from catalog import __version__
from catalog.api.errors import (
    CatalogApiError,
    catalog_api_exception_handler,
    catalog_error_handler,
    generic_exception_handler,
    request_validation_exception_handler,
)
from catalog.api.middleware import CorrelationMiddleware
from catalog.api.routers import health, products
from catalog.api.routers import metrics as metrics_router
from catalog.config import Settings
from catalog.config import settings as default_settings
from catalog.core.errors import CatalogError
from catalog.lifecycle import open_resources
from catalog.observability import configure_logging
from catalog.observability.metrics import MetricsMiddleware, get_metrics

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Returns a fully configured application with:
    - Product and health routers
    - Prometheus metrics endpoint (when enabled)
    - Exception handlers for consistent error responses
    - Lifecycle hooks that open and release the shared resources
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage application lifecycle.

        On startup:
        - Configure structured logging
        - Open the database pool and Redis client, waiting for both
        - Create the products table and seed sample data

        On shutdown:
        - Close the Redis client and dispose the database pool
        """
        # JSON in production, console in dev
        configure_logging(
            json_format=settings.env != "dev",
            level=settings.log_level,
        )

        logger.info(f"Starting {settings.app_name} ({settings.env})")
        async with open_resources(settings) as resources:
            app.state.products = resources.products
            app.state.repository = resources.repository
            app.state.cache = resources.cache
            logger.info(f"{settings.app_name} startup complete, listening on port {settings.port}")

            yield

            logger.info(f"Shutting down {settings.app_name}")
        logger.info(f"{settings.app_name} shutdown complete")

    get_metrics(enabled=settings.enable_metrics)

    app = FastAPI(
        title="Product Catalog",
        description="Product CRUD with a Redis read-through cache in front of PostgreSQL",
        version=__version__,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # CorrelationMiddleware is innermost so metrics and handlers see the ids
    app.add_middleware(CorrelationMiddleware)
    if settings.enable_metrics:
        app.add_middleware(MetricsMiddleware)

    # Register exception handlers
    app.add_exception_handler(
        RequestValidationError, cast(ExceptionHandler, request_validation_exception_handler)
    )
    app.add_exception_handler(
        CatalogApiError, cast(ExceptionHandler, catalog_api_exception_handler)
    )
    app.add_exception_handler(CatalogError, cast(ExceptionHandler, catalog_error_handler))
    app.add_exception_handler(Exception, cast(ExceptionHandler, generic_exception_handler))

    app.include_router(health.router)
    app.include_router(products.router)

    if settings.enable_metrics:
        app.include_router(metrics_router.router)

    return app
