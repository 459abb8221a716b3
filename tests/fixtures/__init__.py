"""Test fixtures package."""

from .mock_catalog import (
    MockCatalogConnection,
    MockCursor,
    create_mysql_catalog,
    create_postgres_catalog,
)

__all__ = [
    "MockCatalogConnection",
    "MockCursor",
    "create_mysql_catalog",
    "create_postgres_catalog",
]
