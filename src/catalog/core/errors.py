"""Domain errors for the product catalog.

These are raised by the store adapter, the cache adapter and the
coherence layer. The API layer maps them to HTTP responses in
``catalog.api.errors``.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for catalog domain errors."""


class ProductNotFoundError(CatalogError):
    """No product row matched the given id."""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class InvalidPatchError(CatalogError):
    """A partial update carried no fields, or fields that cannot be updated."""


class StoreError(CatalogError):
    """Connectivity or query failure against PostgreSQL."""

    def __init__(self, operation: str, product_id: int | None = None, cause: str = ""):
        self.operation = operation
        self.product_id = product_id
        target = f" (id={product_id})" if product_id is not None else ""
        detail = f": {cause}" if cause else ""
        super().__init__(f"Store operation '{operation}'{target} failed{detail}")


class CacheError(CatalogError):
    """Connectivity or command failure against Redis."""

    def __init__(self, operation: str, key: str = "", cause: str = ""):
        self.operation = operation
        self.key = key
        target = f" on '{key}'" if key else ""
        detail = f": {cause}" if cause else ""
        super().__init__(f"Cache operation '{operation}'{target} failed{detail}")


class OperationTimeoutError(CatalogError):
    """A product operation did not finish within its time budget."""

    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"Operation '{operation}' timed out after {timeout:g}s")
