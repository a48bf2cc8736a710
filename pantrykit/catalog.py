"""Canonical ingredient catalog: record validation, matching and demo data."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from .models import (
    CATEGORIES,
    DIFFICULTIES,
    CanonicalIngredient,
    Recipe,
    RecipeRequirement,
    ShelfLife,
)

logger = logging.getLogger(__name__)


class CatalogRecordError(ValueError):
    """Raised when an external catalog record is missing required fields."""


def _get(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present, non-None value among camelCase/snake_case keys."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return default


def _non_negative_int(value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return 0
    return max(number, 0)


def _non_negative_float(value: Any, default: float = 0.0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return max(number, 0.0)


def _list(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else []


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v) for v in value if v is not None]


def ingredient_from_record(record: Mapping[str, Any]) -> CanonicalIngredient:
    """Validate a raw catalog row into a CanonicalIngredient.

    Accepts both database (snake_case) and API (camelCase) field names.
    Missing optional fields fall back to defaults; an unknown category
    becomes "other".

    Raises:
        CatalogRecordError: If ``id`` or ``name`` is missing.
    """
    ingredient_id = _get(record, "id")
    name = _get(record, "name")
    if not ingredient_id or not name:
        raise CatalogRecordError(f"ingredient record needs id and name: {record!r}")

    category = _get(record, "category", default="other")
    if category not in CATEGORIES:
        category = "other"

    density = _get(record, "density")
    try:
        density = float(density) if density is not None else None
    except (TypeError, ValueError):
        density = None

    shelf = _get(record, "shelf_life_defaults", "shelfLifeDefaults", default={})
    if not isinstance(shelf, Mapping):
        shelf = {}

    return CanonicalIngredient(
        id=str(ingredient_id),
        name=str(name),
        synonyms=tuple(_str_list(_get(record, "synonyms", default=[]))),
        category=category,
        default_unit=str(_get(record, "default_unit", "defaultUnit", default="unit")),
        density=density,
        shelf_life=ShelfLife(
            room=_non_negative_int(shelf.get("room")),
            fridge=_non_negative_int(shelf.get("fridge")),
            freezer=_non_negative_int(shelf.get("freezer")),
        ),
        nutrition_ref=_get(record, "nutrition_ref", "nutritionRef"),
    )


def requirement_from_record(record: Mapping[str, Any]) -> RecipeRequirement:
    if not isinstance(record, Mapping):
        raise CatalogRecordError(
            f"recipe ingredient record is not an object: {record!r}"
        )
    ingredient_id = _get(record, "ingredient_canonical_id", "ingredientCanonicalId")
    if not ingredient_id:
        raise CatalogRecordError(
            f"recipe ingredient record needs an ingredient id: {record!r}"
        )
    return RecipeRequirement(
        ingredient_id=str(ingredient_id),
        quantity=_non_negative_float(_get(record, "quantity"), default=1.0),
        unit=str(_get(record, "unit", default="unit")),
        optional=bool(_get(record, "optional", default=False)),
        substitutions=_str_list(_get(record, "substitutions", default=[])),
    )


def recipe_from_record(record: Mapping[str, Any]) -> Recipe:
    """Validate a raw recipe row (with nested ingredient rows) into a Recipe.

    Raises:
        CatalogRecordError: If ``id``/``title`` or an ingredient id is missing.
    """
    recipe_id = _get(record, "id")
    title = _get(record, "title")
    if not recipe_id or not title:
        raise CatalogRecordError(f"recipe record needs id and title: {record!r}")

    difficulty = _get(record, "difficulty", default="Medium")
    if difficulty not in DIFFICULTIES:
        difficulty = "Medium"

    raw_ingredients = _get(record, "recipe_ingredients", "ingredients", default=[])
    nutrition = _get(record, "nutrition", default={})

    return Recipe(
        id=str(recipe_id),
        title=str(title),
        cuisine=str(_get(record, "cuisine", default="")),
        steps=_str_list(_get(record, "steps", default=[])),
        yields=_non_negative_int(_get(record, "yields", default=1)),
        time=_non_negative_int(_get(record, "time", default=0)),
        difficulty=difficulty,
        ingredients=[requirement_from_record(r) for r in _list(raw_ingredients)],
        image=_get(record, "image_url", "image"),
        url=_get(record, "url"),
        author=_get(record, "author"),
        source=str(_get(record, "source", default="imported")),
        nutrition=dict(nutrition) if isinstance(nutrition, Mapping) else {},
    )


def load_ingredients(records: Iterable[Mapping[str, Any]]) -> list[CanonicalIngredient]:
    """Convert rows to ingredients, skipping invalid ones."""
    result: list[CanonicalIngredient] = []
    for record in records:
        if not isinstance(record, Mapping):
            logger.warning("Skipping ingredient record: not an object: %r", record)
            continue
        try:
            result.append(ingredient_from_record(record))
        except CatalogRecordError as e:
            logger.warning("Skipping ingredient record: %s", e)
    return result


def load_recipes(records: Iterable[Mapping[str, Any]]) -> list[Recipe]:
    """Convert rows to recipes, skipping invalid ones."""
    result: list[Recipe] = []
    for record in records:
        if not isinstance(record, Mapping):
            logger.warning("Skipping recipe record: not an object: %r", record)
            continue
        try:
            result.append(recipe_from_record(record))
        except CatalogRecordError as e:
            logger.warning("Skipping recipe record: %s", e)
    return result


def _names(ingredient: CanonicalIngredient) -> list[str]:
    return [ingredient.name.lower(), *(s.lower() for s in ingredient.synonyms)]


def match_ingredient(
    parsed_name: str, catalog: Sequence[CanonicalIngredient]
) -> CanonicalIngredient | None:
    """Resolve a parsed receipt name against the catalog.

    The first entry whose name or any synonym contains the query
    (case-insensitive) wins. Returns None when nothing matches.
    """
    query = parsed_name.lower().strip()
    if not query:
        return None
    for ingredient in catalog:
        if any(query in candidate for candidate in _names(ingredient)):
            return ingredient
    return None


def search_ingredients(
    query: str, catalog: Sequence[CanonicalIngredient]
) -> list[CanonicalIngredient]:
    """Return every catalog entry matching the query, in catalog order."""
    needle = query.lower().strip()
    if not needle:
        return list(catalog)
    return [i for i in catalog if any(needle in c for c in _names(i))]


def find_ingredient(
    ingredient_id: str, catalog: Sequence[CanonicalIngredient]
) -> CanonicalIngredient | None:
    for ingredient in catalog:
        if ingredient.id == ingredient_id:
            return ingredient
    return None


# Built-in demo catalog used when no database is configured
FALLBACK_INGREDIENTS: list[CanonicalIngredient] = load_ingredients([
    {
        "id": "demo-1",
        "name": "Tomato",
        "synonyms": ["tomatoes", "roma tomato"],
        "category": "vegetable",
        "default_unit": "piece",
        "shelf_life_defaults": {"room": 7, "fridge": 14, "freezer": 180},
    },
    {
        "id": "demo-2",
        "name": "Chicken Breast",
        "synonyms": ["chicken", "poultry"],
        "category": "protein",
        "default_unit": "piece",
        "shelf_life_defaults": {"room": 0, "fridge": 3, "freezer": 270},
    },
    {
        "id": "demo-3",
        "name": "Pasta",
        "synonyms": ["spaghetti", "penne"],
        "category": "grain",
        "default_unit": "cup",
        "shelf_life_defaults": {"room": 365, "fridge": 365, "freezer": 365},
    },
    {
        "id": "demo-4",
        "name": "Olive Oil",
        "synonyms": ["extra virgin olive oil"],
        "category": "oil",
        "default_unit": "tablespoon",
        "shelf_life_defaults": {"room": 730, "fridge": 730, "freezer": 730},
    },
])

FALLBACK_RECIPES: list[Recipe] = load_recipes([
    {
        "id": "demo-recipe-1",
        "title": "Simple Tomato Pasta",
        "cuisine": "Italian",
        "steps": [
            "Boil water and cook pasta according to package instructions",
            "Dice tomatoes and sauté in olive oil",
            "Combine pasta with tomato sauce",
            "Season with salt and pepper to taste",
        ],
        "yields": 4,
        "time": 20,
        "difficulty": "Easy",
        "nutrition": {"calories": 400, "protein": 12, "fat": 8, "carbs": 70},
        "source": "imported",
        "ingredients": [
            {"ingredient_canonical_id": "demo-1", "quantity": 4, "unit": "piece"},
            {"ingredient_canonical_id": "demo-3", "quantity": 2, "unit": "cup"},
            {"ingredient_canonical_id": "demo-4", "quantity": 2, "unit": "tablespoon"},
        ],
    },
])
