"""Recipe availability scoring and suggestion filtering."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .models import (
    AvailabilitySnapshot,
    CanonicalIngredient,
    Holding,
    PantryItem,
    Recipe,
    RecipeAvailability,
    RecipeRequirement,
)

_DIFFICULTY_ORDER: dict[str, int] = {"Easy": 1, "Medium": 2, "Hard": 3}


def _fmt(value: float) -> str:
    """Format a quantity without a trailing ".0" for whole numbers."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def build_availability(
    pantry_items: Iterable[PantryItem],
    catalog: Sequence[CanonicalIngredient] | None = None,
) -> AvailabilitySnapshot:
    """Aggregate pantry holdings into a snapshot keyed by ingredient id.

    The last item seen for an ingredient wins; quantities are not summed.
    When a catalog is given, items that do not resolve to it are skipped.
    """
    known = {i.id for i in catalog} if catalog is not None else None
    available: AvailabilitySnapshot = {}
    for item in pantry_items:
        if known is not None and item.ingredient_id not in known:
            continue
        available[item.ingredient_id] = Holding(quantity=item.quantity, unit=item.unit)
    return available


def evaluate_recipe(
    recipe: Recipe | Sequence[RecipeRequirement],
    available: AvailabilitySnapshot,
) -> RecipeAvailability:
    """Score how much of a recipe the current holdings cover.

    Only non-optional requirements count. Quantities are compared as raw
    numbers with no unit conversion. A recipe with no required ingredients
    scores 0.
    """
    requirements = recipe.ingredients if isinstance(recipe, Recipe) else recipe
    missing: list[str] = []
    required = 0
    satisfied = 0

    for req in requirements:
        if req.optional:
            continue
        required += 1
        holding = available.get(req.ingredient_id)
        if holding is None:
            missing.append(req.ingredient_id)
        elif holding.quantity < req.quantity:
            missing.append(
                f"{req.ingredient_id} (need {_fmt(req.quantity)} {req.unit}, "
                f"have {_fmt(holding.quantity)} {holding.unit})"
            )
        else:
            satisfied += 1

    # Round half up, as the web client did
    percentage = math.floor(satisfied / required * 100 + 0.5) if required else 0

    return RecipeAvailability(
        can_make=not missing,
        missing_ingredients=missing,
        match_percentage=percentage,
    )


@dataclass
class RecipeFilter:
    query: str = ""
    cuisine: str | None = None
    difficulty: str | None = None
    time_range: tuple[int, int] = (0, 60)
    servings_range: tuple[int, int] = (1, 8)

    def matches(self, recipe: Recipe) -> bool:
        query = self.query.lower()
        if query and query not in recipe.title.lower() and query not in recipe.cuisine.lower():
            return False
        if self.cuisine and recipe.cuisine != self.cuisine:
            return False
        if self.difficulty and recipe.difficulty != self.difficulty:
            return False
        low, high = self.time_range
        if not low <= recipe.time <= high:
            return False
        low, high = self.servings_range
        return low <= recipe.yields <= high


def filter_recipes(
    recipes: Iterable[Recipe], flt: RecipeFilter | None = None
) -> list[Recipe]:
    """Filter recipes and order them by cooking time, then difficulty."""
    flt = flt or RecipeFilter()
    result = [r for r in recipes if flt.matches(r)]
    result.sort(key=lambda r: (r.time, _DIFFICULTY_ORDER.get(r.difficulty, 2)))
    return result


def suggest_recipes(
    recipes: Iterable[Recipe],
    available: AvailabilitySnapshot,
    flt: RecipeFilter | None = None,
) -> list[tuple[Recipe, RecipeAvailability]]:
    """Filtered recipes paired with their availability against the pantry."""
    return [(r, evaluate_recipe(r, available)) for r in filter_recipes(recipes, flt)]
