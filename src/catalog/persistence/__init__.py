"""Persistence layer for the product catalog.

This module provides:
- Async PostgreSQL engine and session factory
- SQLAlchemy ORM model for the products table
- ProductRepository, the store adapter used by the coherence layer
"""

from catalog.persistence.db import create_engine, create_session_factory, init_db
from catalog.persistence.repositories import (
    UPDATABLE_COLUMNS,
    ProductRepository,
    build_update_values,
)
from catalog.persistence.tables import Base, ProductTable

__all__ = [
    # DB
    "create_engine",
    "create_session_factory",
    "init_db",
    # Tables
    "Base",
    "ProductTable",
    # Repositories
    "ProductRepository",
    "UPDATABLE_COLUMNS",
    "build_update_values",
]
