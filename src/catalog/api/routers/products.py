"""Product API router.

- GET    /products       - List all products
- POST   /products       - Create a product
- GET    /products/{id}  - Get a product
- PUT    /products/{id}  - Partially update a product
- DELETE /products/{id}  - Delete a product

Handlers only validate input and shape responses; caching and store
access happen in ``ProductService``.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from catalog.api.deps import ProductId, ProductServiceDep
from catalog.api.errors import MissingProductIdError
from catalog.core.model import Product, ProductCreate, ProductUpdate

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=list[Product])
async def list_products(service: ProductServiceDep) -> list[Product]:
    """List every product ordered by id."""
    return await service.get_all()


@router.post("", status_code=201)
async def create_product(body: ProductCreate, service: ProductServiceDep) -> dict[str, Any]:
    """Create a product."""
    product = await service.create(body.model_dump())
    return {"message": "Product created", "product": product}


@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: ProductId, service: ProductServiceDep) -> Product:
    """Get a product by id."""
    return await service.get_one(product_id)


@router.put("/{product_id}")
async def update_product(
    product_id: ProductId, body: ProductUpdate, service: ProductServiceDep
) -> dict[str, Any]:
    """Update the supplied fields of a product."""
    product = await service.update(product_id, body.to_patch())
    return {"message": "Product updated", "product": product}


@router.delete("/{product_id}")
async def delete_product(product_id: ProductId, service: ProductServiceDep) -> dict[str, Any]:
    """Delete a product."""
    product = await service.remove(product_id)
    return {"message": "Product deleted", "deleted": product}


@router.put("", include_in_schema=False)
@router.delete("", include_in_schema=False)
async def missing_product_id() -> None:
    """Update and delete address a single product."""
    raise MissingProductIdError()
