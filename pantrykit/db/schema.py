"""Database schema definitions and migration helpers."""

from __future__ import annotations

import sqlite3
from pathlib import Path

_SCHEMA_VERSION = 1

_DDL = """
CREATE TABLE IF NOT EXISTS ingredient_canonical (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    synonyms TEXT NOT NULL DEFAULT '[]',
    category TEXT NOT NULL DEFAULT 'other',
    default_unit TEXT NOT NULL DEFAULT 'unit',
    density REAL,
    shelf_life_defaults TEXT NOT NULL DEFAULT '{"room": 0, "fridge": 0, "freezer": 0}',
    nutrition_ref TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime'))
);

CREATE INDEX IF NOT EXISTS idx_ingredient_name ON ingredient_canonical(name);

CREATE TABLE IF NOT EXISTS recipes (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    cuisine TEXT NOT NULL DEFAULT '',
    steps TEXT NOT NULL DEFAULT '[]',
    yields INTEGER NOT NULL DEFAULT 1,
    time INTEGER NOT NULL DEFAULT 0,
    difficulty TEXT NOT NULL DEFAULT 'Medium',
    image_url TEXT,
    url TEXT,
    author TEXT,
    nutrition TEXT NOT NULL DEFAULT '{}',
    source TEXT NOT NULL DEFAULT 'imported',
    created_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime'))
);

CREATE TABLE IF NOT EXISTS recipe_ingredients (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    recipe_id TEXT NOT NULL REFERENCES recipes(id) ON DELETE CASCADE,
    ingredient_canonical_id TEXT NOT NULL,
    quantity REAL NOT NULL DEFAULT 1.0,
    unit TEXT NOT NULL DEFAULT 'unit',
    optional INTEGER NOT NULL DEFAULT 0,
    substitutions TEXT NOT NULL DEFAULT '[]'
);

CREATE INDEX IF NOT EXISTS idx_recipe_ingredients_recipe ON recipe_ingredients(recipe_id);

CREATE TABLE IF NOT EXISTS pantry_items (
    id TEXT PRIMARY KEY,
    ingredient_canonical_id TEXT NOT NULL,
    quantity REAL NOT NULL DEFAULT 1.0,
    unit TEXT NOT NULL DEFAULT 'unit',
    storage TEXT NOT NULL DEFAULT 'room',
    expiry_at TEXT,
    source TEXT NOT NULL DEFAULT 'manual',
    notes TEXT,
    tags TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime'))
);

CREATE INDEX IF NOT EXISTS idx_pantry_expiry ON pantry_items(expiry_at);
CREATE INDEX IF NOT EXISTS idx_pantry_ingredient ON pantry_items(ingredient_canonical_id);

CREATE TABLE IF NOT EXISTS receipts (
    id TEXT PRIMARY KEY,
    retailer TEXT,
    captured_at TEXT NOT NULL,
    ocr_status TEXT NOT NULL DEFAULT 'pending',
    parse_status TEXT NOT NULL DEFAULT 'pending',
    confidence_summary TEXT NOT NULL DEFAULT '{}'
);

CREATE TABLE IF NOT EXISTS receipt_line_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    receipt_id TEXT NOT NULL REFERENCES receipts(id) ON DELETE CASCADE,
    raw_text TEXT NOT NULL,
    name_canonical_id TEXT,
    quantity REAL NOT NULL,
    unit TEXT NOT NULL,
    size_text TEXT,
    confidence TEXT NOT NULL,
    parsed_name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);
"""


def ensure_schema(db_path: str | Path) -> sqlite3.Connection:
    """Open (or create) the database and ensure the schema is up to date.

    Args:
        db_path: Path to the SQLite database file, or ":memory:".

    Returns:
        An open sqlite3.Connection with the schema applied.
    """
    if str(db_path) == ":memory:":
        conn = sqlite3.connect(":memory:")
    else:
        db_path = Path(db_path).expanduser()
        db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(db_path))
        conn.execute("PRAGMA journal_mode=WAL")

    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")

    # Check current schema version
    try:
        row = conn.execute("SELECT version FROM schema_version").fetchone()
        current_version = row["version"] if row else 0
    except sqlite3.OperationalError:
        current_version = 0

    if current_version < _SCHEMA_VERSION:
        conn.executescript(_DDL)
        conn.execute("DELETE FROM schema_version")
        conn.execute(
            "INSERT INTO schema_version (version) VALUES (?)",
            (_SCHEMA_VERSION,),
        )
        conn.commit()

    return conn
