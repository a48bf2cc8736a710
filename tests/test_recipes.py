"""Tests for recipe availability and suggestion filtering."""

from datetime import datetime

import pytest

from pantrykit.models import (
    CanonicalIngredient,
    Holding,
    PantryItem,
    Recipe,
    RecipeRequirement,
)
from pantrykit.recipes import (
    RecipeFilter,
    build_availability,
    evaluate_recipe,
    filter_recipes,
    suggest_recipes,
)


def _req(ingredient_id, quantity, unit="unit", optional=False):
    return RecipeRequirement(
        ingredient_id=ingredient_id, quantity=quantity, unit=unit, optional=optional
    )


def _item(ingredient_id, quantity, unit="unit", item_id=None):
    return PantryItem(
        id=item_id or f"p-{ingredient_id}-{quantity}",
        ingredient_id=ingredient_id,
        quantity=quantity,
        unit=unit,
        added_at=datetime(2025, 1, 1),
    )


class TestEvaluateRecipe:
    def test_all_available(self):
        recipe = Recipe(id="r", title="Salad", ingredients=[_req("tom", 2), _req("oil", 1)])
        available = {"tom": Holding(3, "unit"), "oil": Holding(1, "unit")}
        result = evaluate_recipe(recipe, available)
        assert result.can_make is True
        assert result.missing_ingredients == []
        assert result.match_percentage == 100

    def test_absent_ingredient_bare_id(self):
        result = evaluate_recipe([_req("tom", 2)], {})
        assert result.missing_ingredients == ["tom"]
        assert result.can_make is False
        assert result.match_percentage == 0

    def test_insufficient_format(self):
        result = evaluate_recipe(
            [_req("demo-1", 4, "piece")], {"demo-1": Holding(2.5, "lb")}
        )
        assert result.missing_ingredients == ["demo-1 (need 4 piece, have 2.5 lb)"]

    def test_units_not_converted(self):
        # 2 kg would cover 500 g, but only the raw numbers are compared
        result = evaluate_recipe([_req("flour", 500, "g")], {"flour": Holding(2, "kg")})
        assert result.missing_ingredients == ["flour (need 500 g, have 2 kg)"]

    def test_larger_number_in_other_unit_counts(self):
        result = evaluate_recipe([_req("flour", 1, "kg")], {"flour": Holding(5, "g")})
        assert result.can_make is True

    def test_optional_ignored(self):
        result = evaluate_recipe(
            [_req("tom", 1), _req("basil", 1, optional=True)], {"tom": Holding(1, "unit")}
        )
        assert result.can_make is True
        assert result.match_percentage == 100

    def test_zero_required_is_zero_percent(self):
        result = evaluate_recipe([_req("basil", 1, optional=True)], {})
        assert result.match_percentage == 0
        assert result.can_make is True
        assert result.missing_ingredients == []

    def test_percentage_rounding(self):
        reqs = [_req("a", 1), _req("b", 1), _req("c", 1)]
        result = evaluate_recipe(reqs, {"a": Holding(1, "unit"), "b": Holding(1, "unit")})
        assert result.match_percentage == 67

    def test_percentage_half_rounds_up(self):
        reqs = [_req(str(i), 1) for i in range(8)]
        available = {"0": Holding(1, "unit")}
        # 1/8 = 12.5%
        assert evaluate_recipe(reqs, available).match_percentage == 13

    def test_missing_keeps_declaration_order(self):
        reqs = [_req("z", 1), _req("a", 5), _req("m", 1)]
        result = evaluate_recipe(reqs, {"a": Holding(1, "g")})
        assert result.missing_ingredients == ["z", "a (need 5 unit, have 1 g)", "m"]


class TestBuildAvailability:
    def test_last_seen_wins(self):
        items = [_item("tom", 5, item_id="1"), _item("tom", 2, item_id="2")]
        available = build_availability(items)
        assert available == {"tom": Holding(2, "unit")}

    def test_catalog_filters_unknown(self):
        catalog = [CanonicalIngredient(id="tom", name="Tomato")]
        available = build_availability([_item("tom", 1), _item("ghost", 1)], catalog)
        assert set(available) == {"tom"}


@pytest.fixture
def recipes():
    return [
        Recipe(id="1", title="Beef Stew", cuisine="French", time=45, difficulty="Hard", yields=6),
        Recipe(id="2", title="Tomato Pasta", cuisine="Italian", time=20, difficulty="Easy", yields=4),
        Recipe(id="3", title="Pad Thai", cuisine="Thai", time=20, difficulty="Medium", yields=2),
        Recipe(id="4", title="Roast", cuisine="British", time=120, difficulty="Medium", yields=6),
        Recipe(id="5", title="Feast", cuisine="Italian", time=30, difficulty="Easy", yields=12),
    ]


class TestFilterRecipes:
    def test_default_sort_and_ranges(self, recipes):
        result = filter_recipes(recipes)
        # Roast exceeds 60 min, Feast exceeds 8 servings
        assert [r.id for r in result] == ["2", "3", "1"]

    def test_query_matches_cuisine(self, recipes):
        result = filter_recipes(recipes, RecipeFilter(query="ital"))
        assert [r.id for r in result] == ["2"]

    def test_difficulty_and_cuisine(self, recipes):
        flt = RecipeFilter(cuisine="Thai", difficulty="Medium")
        assert [r.id for r in filter_recipes(recipes, flt)] == ["3"]

    def test_time_range(self, recipes):
        flt = RecipeFilter(time_range=(0, 180), servings_range=(1, 20))
        assert [r.id for r in filter_recipes(recipes, flt)] == ["2", "3", "5", "1", "4"]


def test_suggest_recipes_pairs_availability(recipes):
    recipes[1].ingredients = [_req("tom", 4)]
    suggestions = suggest_recipes(recipes, {"tom": Holding(4, "unit")})
    assert suggestions[0][0].id == "2"
    assert suggestions[0][1].can_make is True
    # Recipes without required ingredients score 0
    assert suggestions[1][1].match_percentage == 0
