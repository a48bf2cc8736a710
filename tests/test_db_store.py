"""Tests for pantry storage backends."""

from datetime import date, datetime

import pytest

from pantrykit.config import PantryConfig
from pantrykit.db.store import (
    FallbackPantryStore,
    MemoryPantryStore,
    SQLitePantryStore,
    StorageUnavailable,
    create_store,
)
from pantrykit.models import PantryItem


def _item(item_id, ingredient_id="demo-1", minute=0, **kwargs):
    return PantryItem(
        id=item_id,
        ingredient_id=ingredient_id,
        quantity=kwargs.pop("quantity", 2.0),
        unit=kwargs.pop("unit", "piece"),
        added_at=datetime(2025, 1, 10, 12, minute),
        **kwargs,
    )


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Run each test against both backends."""
    if request.param == "memory":
        yield MemoryPantryStore()
    else:
        db = SQLitePantryStore(db_path=tmp_path / "test.db")
        yield db
        db.close()


def test_add_and_get(store):
    store.add(_item("a", expiry_at=date(2025, 1, 17), tags=["sale"], notes="aisle 3"))
    item = store.get("a")
    assert item.ingredient_id == "demo-1"
    assert item.quantity == 2.0
    assert item.expiry_at == date(2025, 1, 17)
    assert item.tags == ["sale"]
    assert item.notes == "aisle 3"


def test_add_duplicate_id_raises(store):
    store.add(_item("a"))
    with pytest.raises(ValueError):
        store.add(_item("a", quantity=9.0))
    assert store.get("a").quantity == 2.0
    assert len(store.list()) == 1


def test_get_missing(store):
    assert store.get("nope") is None


def test_list_newest_first(store):
    store.add(_item("old", minute=0))
    store.add(_item("new", minute=5))
    assert [i.id for i in store.list()] == ["new", "old"]


def test_update(store):
    store.add(_item("a"))
    assert store.update("a", quantity=0.5, storage="freezer", expiry_at=date(2025, 6, 1))
    item = store.get("a")
    assert item.quantity == 0.5
    assert item.storage == "freezer"
    assert item.expiry_at == date(2025, 6, 1)


def test_update_missing(store):
    assert store.update("nope", quantity=1.0) is False


def test_update_rejects_unknown_field(store):
    store.add(_item("a"))
    with pytest.raises(ValueError):
        store.update("a", ingredient_id="demo-2")


def test_delete(store):
    store.add(_item("a"))
    assert store.delete("a") is True
    assert store.delete("a") is False
    assert store.list() == []


def test_memory_stores_are_independent():
    first = MemoryPantryStore()
    first.add(_item("a"))
    assert MemoryPantryStore().list() == []


def test_sqlite_persists_across_instances(tmp_path):
    path = tmp_path / "pantry.db"
    db = SQLitePantryStore(path)
    db.add(_item("a"))
    db.close()

    reopened = SQLitePantryStore(path)
    assert reopened.get("a") is not None
    reopened.close()


def test_sqlite_unavailable(tmp_path):
    # A directory cannot be opened as a database file
    db = SQLitePantryStore(tmp_path)
    with pytest.raises(StorageUnavailable):
        db.list()


class _BrokenStore(MemoryPantryStore):
    def _fail(self, *args, **kwargs):
        raise StorageUnavailable("database down")

    get = list = add = update = delete = _fail


def test_fallback_store_uses_fallback(caplog):
    fallback = MemoryPantryStore()
    store = FallbackPantryStore(_BrokenStore(), fallback)
    store.add(_item("a"))
    assert fallback.get("a") is not None
    assert [i.id for i in store.list()] == ["a"]
    assert store.delete("a") is True
    assert "database down" in caplog.text


def test_fallback_store_prefers_primary():
    primary = MemoryPantryStore()
    fallback = MemoryPantryStore()
    store = FallbackPantryStore(primary, fallback)
    store.add(_item("a"))
    assert primary.get("a") is not None
    assert fallback.get("a") is None


def test_fallback_store_does_not_take_rejected_writes(tmp_path):
    primary = SQLitePantryStore(tmp_path / "test.db")
    fallback = MemoryPantryStore()
    store = FallbackPantryStore(primary, fallback)
    store.add(_item("a"))
    with pytest.raises(ValueError):
        store.add(_item("a"))
    assert fallback.list() == []
    assert [i.id for i in primary.list()] == ["a"]
    primary.close()


def test_create_store(tmp_path):
    config = PantryConfig()
    config.database.backend = "memory"
    assert isinstance(create_store(config), MemoryPantryStore)

    config.database.backend = "sqlite"
    config.database.path = str(tmp_path / "x.db")
    assert isinstance(create_store(config), FallbackPantryStore)

    config.database.backend = "postgres"
    with pytest.raises(ValueError):
        create_store(config)
