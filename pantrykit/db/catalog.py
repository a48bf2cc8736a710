"""Ingredient, recipe and receipt tables."""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from ..catalog import (
    FALLBACK_INGREDIENTS,
    FALLBACK_RECIPES,
    load_ingredients,
    load_recipes,
)
from ..models import CanonicalIngredient, Receipt, Recipe
from .schema import ensure_schema
from .store import StorageUnavailable

logger = logging.getLogger(__name__)


class CatalogDB:
    """Reads and writes the reference catalog and scanned receipts."""

    def __init__(self, db_path: str | Path = "~/.config/pantrykit/pantry.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            try:
                self._conn = ensure_schema(self._db_path)
            except (sqlite3.Error, OSError) as e:
                raise StorageUnavailable(f"Catalog database unavailable: {e}") from e
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @contextmanager
    def _writing(self) -> Iterator[sqlite3.Connection]:
        """Run the body as one transaction; all or nothing is written."""
        conn = self._get_conn()
        try:
            yield conn
        except sqlite3.OperationalError as e:
            conn.rollback()
            raise StorageUnavailable(f"Catalog database unavailable: {e}") from e
        except sqlite3.Error:
            conn.rollback()
            raise
        conn.commit()

    def add_ingredients(self, ingredients: list[CanonicalIngredient]) -> None:
        """Insert or replace canonical ingredients."""
        with self._writing() as conn:
            for ing in ingredients:
                conn.execute(
                    """INSERT OR REPLACE INTO ingredient_canonical
                       (id, name, synonyms, category, default_unit, density,
                        shelf_life_defaults, nutrition_ref)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        ing.id,
                        ing.name,
                        json.dumps(list(ing.synonyms)),
                        ing.category,
                        ing.default_unit,
                        ing.density,
                        json.dumps({
                            "room": ing.shelf_life.room,
                            "fridge": ing.shelf_life.fridge,
                            "freezer": ing.shelf_life.freezer,
                        }),
                        ing.nutrition_ref,
                    ),
                )

    def get_ingredients(self) -> list[CanonicalIngredient]:
        """Return all canonical ingredients ordered by name.

        Malformed rows are skipped by the ingestion boundary.
        """
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM ingredient_canonical ORDER BY name"
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Catalog database unavailable: {e}") from e

        records = []
        for row in rows:
            record = dict(row)
            record["synonyms"] = _load_json(record.get("synonyms"), [])
            record["shelf_life_defaults"] = _load_json(
                record.get("shelf_life_defaults"), {}
            )
            records.append(record)
        return load_ingredients(records)

    def add_recipes(self, recipes: list[Recipe]) -> None:
        """Insert or replace recipes together with their ingredient rows."""
        with self._writing() as conn:
            for recipe in recipes:
                conn.execute(
                    "DELETE FROM recipe_ingredients WHERE recipe_id = ?", (recipe.id,)
                )
                conn.execute(
                    """INSERT OR REPLACE INTO recipes
                       (id, title, cuisine, steps, yields, time, difficulty,
                        image_url, url, author, nutrition, source)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        recipe.id,
                        recipe.title,
                        recipe.cuisine,
                        json.dumps(recipe.steps),
                        recipe.yields,
                        recipe.time,
                        recipe.difficulty,
                        recipe.image,
                        recipe.url,
                        recipe.author,
                        json.dumps(recipe.nutrition),
                        recipe.source,
                    ),
                )
                for req in recipe.ingredients:
                    conn.execute(
                        """INSERT INTO recipe_ingredients
                           (recipe_id, ingredient_canonical_id, quantity, unit,
                            optional, substitutions)
                           VALUES (?, ?, ?, ?, ?, ?)""",
                        (
                            recipe.id,
                            req.ingredient_id,
                            req.quantity,
                            req.unit,
                            int(req.optional),
                            json.dumps(req.substitutions),
                        ),
                    )

    def get_recipes(self) -> list[Recipe]:
        """Return all recipes ordered by title, ingredients in declaration order."""
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM recipes ORDER BY title").fetchall()
            ing_rows = conn.execute(
                "SELECT * FROM recipe_ingredients ORDER BY id"
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Catalog database unavailable: {e}") from e

        by_recipe: dict[str, list[dict]] = {}
        for row in ing_rows:
            record = dict(row)
            record["substitutions"] = _load_json(record.get("substitutions"), [])
            by_recipe.setdefault(record["recipe_id"], []).append(record)

        records = []
        for row in rows:
            record = dict(row)
            record["steps"] = _load_json(record.get("steps"), [])
            record["nutrition"] = _load_json(record.get("nutrition"), {})
            record["recipe_ingredients"] = by_recipe.get(record["id"], [])
            records.append(record)
        return load_recipes(records)

    def save_receipt(self, receipt: Receipt) -> None:
        """Persist a scanned receipt and its line items."""
        with self._writing() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO receipts
                   (id, retailer, captured_at, ocr_status, parse_status,
                    confidence_summary)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    receipt.id,
                    receipt.retailer,
                    receipt.captured_at.isoformat(),
                    receipt.ocr_status,
                    receipt.parse_status,
                    json.dumps(receipt.confidence_summary),
                ),
            )
            conn.execute(
                "DELETE FROM receipt_line_items WHERE receipt_id = ?", (receipt.id,)
            )
            for item in receipt.line_items:
                conn.execute(
                    """INSERT INTO receipt_line_items
                       (receipt_id, raw_text, name_canonical_id, quantity, unit,
                        size_text, confidence, parsed_name)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        receipt.id,
                        item.raw_text,
                        item.canonical_id,
                        item.quantity,
                        item.unit,
                        item.parsed.size_text,
                        json.dumps({
                            "name": item.confidence.name,
                            "quantity": item.confidence.quantity,
                            "unit": item.confidence.unit,
                        }),
                        item.parsed.name,
                    ),
                )

    def count_receipt_lines(self, receipt_id: str) -> int:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT COUNT(*) AS n FROM receipt_line_items WHERE receipt_id = ?",
            (receipt_id,),
        ).fetchone()
        return row["n"]


def _load_json(value, default):
    if not value:
        return default
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return default


def load_catalog(db: CatalogDB | None) -> tuple[list[CanonicalIngredient], list[Recipe]]:
    """Load ingredients and recipes, falling back to the built-in demo catalog.

    The demo catalog is used when no database is given, when it is
    unavailable, or when it holds no ingredients yet.
    """
    if db is None:
        return list(FALLBACK_INGREDIENTS), list(FALLBACK_RECIPES)
    try:
        ingredients = db.get_ingredients()
        recipes = db.get_recipes()
    except StorageUnavailable as e:
        logger.warning("%s; using built-in demo catalog", e)
        return list(FALLBACK_INGREDIENTS), list(FALLBACK_RECIPES)
    if not ingredients:
        logger.info("Catalog is empty; using built-in demo catalog")
        return list(FALLBACK_INGREDIENTS), list(FALLBACK_RECIPES)
    return ingredients, recipes
