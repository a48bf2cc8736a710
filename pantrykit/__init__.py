"""Pantry and recipe manager with receipt scanning."""

from .catalog import (
    CatalogRecordError,
    ingredient_from_record,
    match_ingredient,
    recipe_from_record,
    search_ingredients,
)
from .config import PantryConfig, load_config
from .models import (
    CanonicalIngredient,
    Holding,
    MatchedLineItem,
    PantryItem,
    ParsedLine,
    Recipe,
    RecipeAvailability,
    RecipeRequirement,
)
from .pantry import expiry_status, filter_pantry, pantry_summary
from .receipts import ReceiptScanner, commit_receipt, match_line, parse_line
from .recipes import (
    RecipeFilter,
    build_availability,
    evaluate_recipe,
    filter_recipes,
    suggest_recipes,
)

__all__ = [
    "CanonicalIngredient",
    "ParsedLine",
    "MatchedLineItem",
    "RecipeRequirement",
    "Recipe",
    "PantryItem",
    "Holding",
    "RecipeAvailability",
    "CatalogRecordError",
    "ingredient_from_record",
    "recipe_from_record",
    "match_ingredient",
    "search_ingredients",
    "parse_line",
    "match_line",
    "ReceiptScanner",
    "commit_receipt",
    "build_availability",
    "evaluate_recipe",
    "RecipeFilter",
    "filter_recipes",
    "suggest_recipes",
    "expiry_status",
    "filter_pantry",
    "pantry_summary",
    "PantryConfig",
    "load_config",
]
