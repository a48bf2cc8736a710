"""SQLite and in-memory storage for the pantry, catalog and receipts."""

from .catalog import CatalogDB, load_catalog
from .schema import ensure_schema
from .store import (
    FallbackPantryStore,
    MemoryPantryStore,
    PantryStore,
    SQLitePantryStore,
    StorageUnavailable,
    create_store,
)

__all__ = [
    "CatalogDB",
    "load_catalog",
    "ensure_schema",
    "PantryStore",
    "MemoryPantryStore",
    "SQLitePantryStore",
    "FallbackPantryStore",
    "StorageUnavailable",
    "create_store",
]
