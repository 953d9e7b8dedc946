from __future__ import annotations

from cookbook.catalog.matcher import match_recipe, match_recipes
from cookbook.catalog.models import Ingredient
from cookbook.catalog.normalizer import normalize_policy

A = Ingredient(id=1, name="A", category="vegetable")
B = Ingredient(id=2, name="B", category="vegetable")
C = Ingredient(id=3, name="C", category="vegetable")
OIL = Ingredient(id=9, name="Oil", category="pantry")


def test_partial_match_with_all(make_recipe):
    recipe = make_recipe(1, [A, B, C])
    result = match_recipe(recipe, frozenset({1, 2}), normalize_policy({"match_type": "all"}))
    assert result.matching_ingredients == 2
    assert result.total_ingredients == 3
    assert [i.id for i in result.missing_ingredients] == [3]
    assert result.match_percentage == 66.7
    assert result.can_cook is False


def test_full_match_is_cookable(make_recipe):
    recipe = make_recipe(1, [A, B, C])
    result = match_recipe(recipe, frozenset({1, 2, 3}), normalize_policy({"match_type": "all"}))
    assert result.can_cook is True
    assert result.match_percentage == 100.0
    assert result.missing_ingredients == []


def test_max_missing_zero_drops_recipe(make_recipe):
    recipe = make_recipe(1, [A, B, C])
    policy = normalize_policy({"max_missing_ingredients": 0})
    assert match_recipes([recipe], {1, 2}, policy) == []


def test_empty_fridge_with_any_yields_nothing(make_recipe):
    recipes = [make_recipe(1, [A, B]), make_recipe(2, [C])]
    assert match_recipes(recipes, set(), normalize_policy({"match_type": "any"})) == []


def test_empty_fridge_with_all_lists_everything_uncookable(make_recipe):
    recipes = [make_recipe(1, [A, B]), make_recipe(2, [C])]
    results = match_recipes(recipes, set(), normalize_policy({"match_type": "all"}))
    assert [r.recipe.id for r in results] == [1, 2]
    assert all(r.match_percentage == 0.0 and not r.can_cook for r in results)


def test_any_requires_at_least_one_match(make_recipe):
    recipes = [make_recipe(1, [A, B]), make_recipe(2, [C])]
    results = match_recipes(recipes, {1}, normalize_policy({"match_type": "any"}))
    assert [r.recipe.id for r in results] == [1]
    assert results[0].can_cook is False


def test_any_marks_full_matches_cookable(make_recipe):
    results = match_recipes([make_recipe(1, [A, B])], {1, 2}, normalize_policy({"match_type": "any"}))
    assert results[0].can_cook is True


def test_excluded_categories_leave_both_sides(make_recipe):
    recipe = make_recipe(1, [A, OIL])
    policy = normalize_policy({"exclude_categories": ["Pantry"]})
    [result] = match_recipes([recipe], {1}, policy, ingredient_categories={1: "vegetable"})
    assert result.total_ingredients == 1
    assert result.can_cook is True
    assert result.match_percentage == 100.0


def test_recipe_with_only_excluded_ingredients_is_skipped(make_recipe):
    policy = normalize_policy({"exclude_categories": ["pantry"]})
    assert match_recipes([make_recipe(1, [OIL])], {9}, policy) == []


def test_ranking_order_and_limit(make_recipe):
    recipes = [
        make_recipe(5, [A, B]),        # 50%
        make_recipe(2, [A]),           # 100%, cookable
        make_recipe(4, [A, C]),        # 50%
        make_recipe(3, [A, B, C]),     # 33.3%
        make_recipe(1, [A]),           # 100%, cookable
    ]
    results = match_recipes(recipes, {1}, normalize_policy({}))
    assert [r.recipe.id for r in results] == [1, 2, 4, 5, 3]
    assert [r.match_percentage for r in results] == [100.0, 100.0, 50.0, 50.0, 33.3]

    limited = match_recipes(recipes, {1}, normalize_policy({"limit": 2}))
    assert [r.recipe.id for r in limited] == [1, 2]


def test_percentages_in_range_and_cookable_means_nothing_missing(make_recipe):
    recipes = [make_recipe(i, ingredients) for i, ingredients in enumerate(
        [[A], [A, B], [B, C], [A, B, C], [C]], start=1
    )]
    for owned in (set(), {1}, {2, 3}, {1, 2, 3}):
        for result in match_recipes(recipes, owned, normalize_policy({})):
            assert 0.0 <= result.match_percentage <= 100.0
            if result.can_cook:
                assert result.missing_ingredients == []
