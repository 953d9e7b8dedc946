from __future__ import annotations

from typing import Iterable

from .models import (
    Ingredient,
    MatchPolicy,
    MatchResult,
    MatchType,
    Recipe,
    RecipeSummary,
)


def _required_ingredients(recipe: Recipe, excluded: frozenset[str]) -> list[Ingredient]:
    """Recipe ingredients outside the excluded categories, in recipe order, deduplicated."""
    seen: set[int] = set()
    required: list[Ingredient] = []
    for ri in recipe.ingredients:
        ingredient = ri.ingredient
        if ingredient.category.casefold() in excluded or ingredient.id in seen:
            continue
        seen.add(ingredient.id)
        required.append(ingredient)
    return required


def match_recipe(
    recipe: Recipe,
    owned_ids: frozenset[int],
    policy: MatchPolicy,
) -> MatchResult | None:
    """Score one recipe against the owned ingredients.

    Returns ``None`` when the policy excludes the recipe from suggestions.
    Cookability always means nothing is missing; ``match_type`` only decides
    which recipes are offered at all.
    """
    required = _required_ingredients(recipe, policy.exclude_categories)
    if not required:
        return None

    matching = [i for i in required if i.id in owned_ids]
    missing = [i for i in required if i.id not in owned_ids]

    if policy.match_type == MatchType.any and not matching:
        return None
    if (
        policy.max_missing_ingredients is not None
        and len(missing) > policy.max_missing_ingredients
    ):
        return None

    return MatchResult(
        recipe=RecipeSummary.from_recipe(recipe),
        matching_ingredients=len(matching),
        total_ingredients=len(required),
        missing_ingredients=missing,
        match_percentage=round(100.0 * len(matching) / len(required), 1),
        can_cook=not missing,
    )


def match_recipes(
    recipes: Iterable[Recipe],
    owned_ids: Iterable[int],
    policy: MatchPolicy,
    ingredient_categories: dict[int, str] | None = None,
) -> list[MatchResult]:
    """Score every candidate and rank the survivors.

    Owned ingredients whose category is excluded by the policy are dropped
    before scoring (*ingredient_categories* maps ingredient id to category;
    ids missing from it are kept as-is). Results are ordered by match
    percentage, then cookability, then recipe id, and cut to ``policy.limit``.
    """
    categories = ingredient_categories or {}
    owned = frozenset(
        iid for iid in owned_ids
        if categories.get(iid, "").casefold() not in policy.exclude_categories
    )

    results = [
        result for result in (match_recipe(r, owned, policy) for r in recipes)
        if result is not None
    ]
    results.sort(key=lambda m: (-m.match_percentage, not m.can_cook, m.recipe.id))

    if policy.limit is not None:
        results = results[:policy.limit]
    return results
