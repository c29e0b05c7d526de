"""Pydantic models for the product entity.

``ProductCreate`` and ``ProductUpdate`` validate request bodies;
``Product`` is the stored record as returned by the store adapter and
serialized into the cache.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

# Largest value of a PostgreSQL INTEGER column (ids and quantity)
INT4_MAX = 2_147_483_647

# Largest value of the NUMERIC(10, 2) price column
PRICE_MAX = 99_999_999.99

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
PositiveQuantity = Annotated[int, Field(gt=0, le=INT4_MAX, description="Units in stock")]
PositivePrice = Annotated[float, Field(gt=0, le=PRICE_MAX, description="Unit price")]


class InputModel(BaseModel):
    """Base model for request bodies."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class ProductCreate(InputModel):
    """Body of ``POST /products``. Every field is required."""

    name: Annotated[NonEmptyStr, Field(max_length=150)]
    description: NonEmptyStr
    quantity: PositiveQuantity
    price: PositivePrice
    category: Annotated[NonEmptyStr, Field(max_length=100)]


class ProductUpdate(InputModel):
    """Body of ``PUT /products/{id}``. Any subset of the create fields."""

    name: Annotated[NonEmptyStr, Field(max_length=150)] | None = None
    description: NonEmptyStr | None = None
    quantity: PositiveQuantity | None = None
    price: PositivePrice | None = None
    category: Annotated[NonEmptyStr, Field(max_length=100)] | None = None

    def to_patch(self) -> dict[str, Any]:
        """Return only the fields the client actually supplied."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class Product(BaseModel):
    """A stored product row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    quantity: int
    price: float
    category: str | None = None
    created_at: datetime
    updated_at: datetime
