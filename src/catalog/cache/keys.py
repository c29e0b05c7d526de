"""Cache key schema for the product catalog.

Key format: {prefix}:{identifier}

Where:
- prefix: "products" (namespace shared by every product entry)
- identifier: "all" for the ordered collection, or the numeric product id
"""

from __future__ import annotations


class CacheKeys:
    """Cache key generator following consistent naming convention."""

    PREFIX = "products"
    COLLECTION = "all"

    @classmethod
    def all_products(cls) -> str:
        """Key for the full product listing."""
        return f"{cls.PREFIX}:{cls.COLLECTION}"

    @classmethod
    def product(cls, product_id: int) -> str:
        """Key for a single product."""
        return f"{cls.PREFIX}:{product_id}"

    @classmethod
    def is_collection(cls, key: str) -> bool:
        """Whether a key names the collection entry rather than one product."""
        return key == cls.all_products()

    @classmethod
    def flush_pattern(cls) -> str:
        """Pattern matching every product cache entry.

        Use with Redis SCAN + DEL for a manual flush.
        """
        return f"{cls.PREFIX}:*"
