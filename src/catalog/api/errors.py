"""Error responses for the catalog API.

Every error body is a JSON object with an ``error`` message. Domain
errors raised below the API layer are mapped to status codes here;
tracebacks and driver messages never reach the response.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from catalog.core.errors import (
    CatalogError,
    InvalidPatchError,
    OperationTimeoutError,
    ProductNotFoundError,
)

logger = logging.getLogger(__name__)


class CatalogApiError(HTTPException):
    """Base exception for catalog API errors."""

    def __init__(self, status_code: int, text: str, details: list[dict[str, Any]] | None = None):
        self.text = text
        self.details = details
        super().__init__(status_code=status_code, detail=text)

    def to_content(self) -> dict[str, Any]:
        content: dict[str, Any] = {"error": self.text}
        if self.details:
            content["details"] = self.details
        return content


class BadRequestError(CatalogApiError):
    """Invalid request (400)."""

    def __init__(self, text: str, details: list[dict[str, Any]] | None = None):
        super().__init__(status_code=400, text=text, details=details)


class InvalidProductIdError(BadRequestError):
    """Path id is not a positive integer (400)."""

    def __init__(self) -> None:
        super().__init__("Invalid product id")


class MissingProductIdError(BadRequestError):
    """Update or delete without an id in the path (400)."""

    def __init__(self) -> None:
        super().__init__("Product id is required")


class NotFoundError(CatalogApiError):
    """Resource not found (404)."""

    def __init__(self, text: str = "Product not found"):
        super().__init__(status_code=404, text=text)


class InternalServerError(CatalogApiError):
    """Internal server error (500)."""

    def __init__(self, text: str = "Internal Server Error"):
        super().__init__(status_code=500, text=text)


class GatewayTimeoutError(CatalogApiError):
    """Store or cache did not answer in time (504)."""

    def __init__(self, text: str = "Request timed out"):
        super().__init__(status_code=504, text=text)


def to_api_error(exc: CatalogError) -> CatalogApiError:
    """Map a domain error to its HTTP counterpart."""
    if isinstance(exc, ProductNotFoundError):
        return NotFoundError()
    if isinstance(exc, InvalidPatchError):
        return BadRequestError(str(exc))
    if isinstance(exc, OperationTimeoutError):
        return GatewayTimeoutError()
    # StoreError and anything unforeseen
    return InternalServerError()


def _format_location(loc: tuple[Any, ...] | list[Any]) -> str:
    # Drop the leading "body"/"path" segment FastAPI adds
    parts = [str(part) for part in loc[1:]] if len(loc) > 1 else [str(part) for part in loc]
    return ".".join(parts)


async def catalog_api_exception_handler(request: Request, exc: CatalogApiError) -> JSONResponse:
    """Exception handler for catalog API errors."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Exception handler for domain errors that reached the API boundary."""
    api_error = to_api_error(exc)
    if api_error.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=api_error.status_code, content=api_error.to_content())


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report body validation failures as 400 with field-level messages."""
    details = [
        {"field": _format_location(error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    if details:
        first = details[0]
        text = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
    else:
        text = "Invalid request body"
    return JSONResponse(
        status_code=400, content=BadRequestError(text, details).to_content()
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler for unexpected errors."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=InternalServerError().to_content())
