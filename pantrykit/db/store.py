"""Pantry storage backends: in-memory, SQLite, and a fallback wrapper."""

from __future__ import annotations

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..models import PantryItem
from .schema import ensure_schema

if TYPE_CHECKING:
    from ..config import PantryConfig

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {"quantity", "unit", "storage", "expiry_at", "notes", "tags"}
)


class StorageUnavailable(RuntimeError):
    """Raised when the backing database cannot serve a request."""


def _check_changes(changes: dict[str, Any]) -> None:
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update pantry item fields: {sorted(unknown)}")


class PantryStore(ABC):
    """Abstract pantry item storage."""

    @abstractmethod
    def get(self, item_id: str) -> PantryItem | None:
        ...

    @abstractmethod
    def list(self) -> list[PantryItem]:
        """Return all items, most recently added first."""
        ...

    @abstractmethod
    def add(self, item: PantryItem) -> PantryItem:
        """Store a new item.

        Raises:
            ValueError: If an item with the same ID is already stored.
        """
        ...

    @abstractmethod
    def update(self, item_id: str, **changes: Any) -> bool:
        """Apply field changes to an item.

        Returns:
            False if no item has the given ID.

        Raises:
            ValueError: If a change names a field that cannot be updated.
        """
        ...

    @abstractmethod
    def delete(self, item_id: str) -> bool:
        ...


class MemoryPantryStore(PantryStore):
    """Keeps pantry items in a per-instance dict."""

    def __init__(self, items: list[PantryItem] | None = None) -> None:
        self._items: dict[str, PantryItem] = {}
        for item in items or []:
            self.add(item)

    def get(self, item_id: str) -> PantryItem | None:
        return self._items.get(item_id)

    def list(self) -> list[PantryItem]:
        return list(reversed(self._items.values()))

    def add(self, item: PantryItem) -> PantryItem:
        if item.id in self._items:
            raise ValueError(f"Pantry item {item.id} already exists")
        self._items[item.id] = item
        return item

    def update(self, item_id: str, **changes: Any) -> bool:
        _check_changes(changes)
        item = self._items.get(item_id)
        if item is None:
            return False
        self._items[item_id] = replace(item, **changes)
        return True

    def delete(self, item_id: str) -> bool:
        return self._items.pop(item_id, None) is not None


def _row_to_item(row: sqlite3.Row) -> PantryItem:
    return PantryItem(
        id=row["id"],
        ingredient_id=row["ingredient_canonical_id"],
        quantity=row["quantity"],
        unit=row["unit"],
        storage=row["storage"],
        expiry_at=date.fromisoformat(row["expiry_at"]) if row["expiry_at"] else None,
        source=row["source"],
        added_at=datetime.fromisoformat(row["created_at"]),
        notes=row["notes"],
        tags=json.loads(row["tags"] or "[]"),
    )


def _to_column(field_name: str, value: Any) -> Any:
    if field_name == "expiry_at":
        return value.isoformat() if value is not None else None
    if field_name == "tags":
        return json.dumps(list(value))
    return value


class SQLitePantryStore(PantryStore):
    """Manages the pantry_items table."""

    def __init__(self, db_path: str | Path = "~/.config/pantrykit/pantry.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            if self._conn is None:
                self._conn = ensure_schema(self._db_path)
        except (sqlite3.Error, OSError) as e:
            raise StorageUnavailable(f"Pantry database unavailable: {e}") from e
        try:
            yield self._conn
        except (sqlite3.IntegrityError, sqlite3.ProgrammingError):
            # Caller errors, not outages
            self._conn.rollback()
            raise
        except sqlite3.DatabaseError as e:
            raise StorageUnavailable(f"Pantry database unavailable: {e}") from e

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def get(self, item_id: str) -> PantryItem | None:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM pantry_items WHERE id = ?", (item_id,)
            ).fetchone()
        return _row_to_item(row) if row else None

    def list(self) -> list[PantryItem]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM pantry_items ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
        return [_row_to_item(r) for r in rows]

    def add(self, item: PantryItem) -> PantryItem:
        try:
            with self._connection() as conn:
                conn.execute(
                    """INSERT INTO pantry_items
                       (id, ingredient_canonical_id, quantity, unit, storage,
                        expiry_at, source, notes, tags, created_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        item.id,
                        item.ingredient_id,
                        item.quantity,
                        item.unit,
                        item.storage,
                        _to_column("expiry_at", item.expiry_at),
                        item.source,
                        item.notes,
                        _to_column("tags", item.tags),
                        item.added_at.isoformat(),
                    ),
                )
                conn.commit()
        except sqlite3.IntegrityError as e:
            raise ValueError(f"Cannot store pantry item {item.id}: {e}") from e
        return item

    def update(self, item_id: str, **changes: Any) -> bool:
        _check_changes(changes)
        if not changes:
            return self.get(item_id) is not None
        assignments = ", ".join(f"{name} = ?" for name in changes)
        values = [_to_column(name, value) for name, value in changes.items()]
        with self._connection() as conn:
            cur = conn.execute(
                f"""UPDATE pantry_items
                    SET {assignments},
                        updated_at = datetime('now', 'localtime')
                    WHERE id = ?""",
                (*values, item_id),
            )
            conn.commit()
        return cur.rowcount > 0

    def delete(self, item_id: str) -> bool:
        with self._connection() as conn:
            cur = conn.execute("DELETE FROM pantry_items WHERE id = ?", (item_id,))
            conn.commit()
        return cur.rowcount > 0


class FallbackPantryStore(PantryStore):
    """Serves requests from ``primary`` and falls back when it is unavailable."""

    def __init__(self, primary: PantryStore, fallback: PantryStore | None = None) -> None:
        self._primary = primary
        self._fallback = fallback if fallback is not None else MemoryPantryStore()

    def _call(self, method: str, *args: Any, **kwargs: Any) -> Any:
        try:
            return getattr(self._primary, method)(*args, **kwargs)
        except StorageUnavailable as e:
            logger.warning("%s; using in-memory pantry for %s()", e, method)
            return getattr(self._fallback, method)(*args, **kwargs)

    def get(self, item_id: str) -> PantryItem | None:
        return self._call("get", item_id)

    def list(self) -> list[PantryItem]:
        return self._call("list")

    def add(self, item: PantryItem) -> PantryItem:
        return self._call("add", item)

    def update(self, item_id: str, **changes: Any) -> bool:
        return self._call("update", item_id, **changes)

    def delete(self, item_id: str) -> bool:
        return self._call("delete", item_id)


def create_store(config: PantryConfig) -> PantryStore:
    """Create a pantry store based on configuration."""
    backend_name = config.database.backend

    match backend_name:
        case "memory":
            return MemoryPantryStore()
        case "sqlite":
            return FallbackPantryStore(SQLitePantryStore(config.database.path))
        case _:
            raise ValueError(
                f"Unknown storage backend: {backend_name!r} "
                f"(choose from memory / sqlite)"
            )
