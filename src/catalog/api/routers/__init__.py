"""API routers for the product catalog."""

from catalog.api.routers import health, metrics, products

__all__ = ["health", "metrics", "products"]
