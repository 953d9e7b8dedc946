from __future__ import annotations

from typing import Callable, Iterable, Iterator

import pandas as pd

from .errors import NotFoundError
from .models import Ingredient, Recipe

# Multi-valued association columns, each holding a frozenset per recipe
REF_DIMENSIONS = ("ingredients", "tags", "categories", "equipment")


def _refs(recipe: Recipe, dimension: str) -> list[tuple[int, str]]:
    if dimension == "ingredients":
        return [(ri.ingredient.id, ri.ingredient.name) for ri in recipe.ingredients]
    if dimension == "equipment":
        return [(re.equipment.id, re.equipment.name) for re in recipe.equipment]
    return [(ref.id, ref.name) for ref in getattr(recipe, dimension)]


def _utc(value) -> pd.Timestamp:
    stamp = pd.Timestamp(value)
    if stamp.tzinfo is None:
        return stamp.tz_localize("UTC")
    return stamp.tz_convert("UTC")


def _row(recipe: Recipe) -> dict:
    row = {
        "id": recipe.id,
        "title": recipe.title,
        "title_lower": recipe.title.casefold(),
        "description_lower": recipe.description.casefold(),
        "prep_time": recipe.prep_time,
        "cook_time": recipe.cook_time,
        "total_time": recipe.total_time,
        "difficulty": recipe.difficulty.value,
        "average_rating": recipe.average_rating,
        "author_id": recipe.author_id,
        "is_public": recipe.is_public,
        "created_at": _utc(recipe.created_at),
    }
    for dimension in REF_DIMENSIONS:
        refs = _refs(recipe, dimension)
        row[f"{dimension}_ids"] = frozenset(ref_id for ref_id, _ in refs)
        row[f"{dimension}_names"] = frozenset(name.casefold() for _, name in refs)
    return row


class RecipeCorpus:
    """Read-only snapshot of the recipe catalog.

    Recipes are kept both as validated models (for presentation and matching)
    and as a flat pandas frame with pre-folded text and association sets so
    filter predicates can be evaluated as vectorised masks. A snapshot never
    changes after construction; ``replace`` returns a new one with a bumped
    ``version``.
    """

    def __init__(
        self,
        recipes: Iterable[Recipe],
        version: int = 0,
        ingredients: Iterable[Ingredient] = (),
    ) -> None:
        self.version = version
        self._recipes: dict[int, Recipe] = {r.id: r for r in recipes}
        self._ingredients: dict[int, Ingredient] = {i.id: i for i in ingredients}
        for recipe in self._recipes.values():
            for ri in recipe.ingredients:
                self._ingredients.setdefault(ri.ingredient.id, ri.ingredient)

        columns = ["id", "title", "title_lower", "description_lower", "prep_time",
                   "cook_time", "total_time", "difficulty", "average_rating",
                   "author_id", "is_public", "created_at"]
        for dimension in REF_DIMENSIONS:
            columns += [f"{dimension}_ids", f"{dimension}_names"]
        rows = [_row(r) for r in sorted(self._recipes.values(), key=lambda r: r.id)]
        self.frame = pd.DataFrame(rows, columns=columns)

    def __len__(self) -> int:
        return len(self._recipes)

    def __contains__(self, recipe_id: int) -> bool:
        return recipe_id in self._recipes

    def get(self, recipe_id: int) -> Recipe:
        try:
            return self._recipes[recipe_id]
        except KeyError:
            raise NotFoundError("recipe", recipe_id) from None

    def by_ids(self, recipe_ids: Iterable[int]) -> list[Recipe]:
        """Return recipes for *recipe_ids*, preserving their order."""
        return [self._recipes[int(rid)] for rid in recipe_ids]

    def ref_mask(
        self,
        dimension: str,
        ref_ids: Iterable[int] = (),
        names: Iterable[str] = (),
    ) -> pd.Series:
        """Row mask: True where a recipe carries any of *ref_ids* or folded *names*."""
        wanted_ids = frozenset(ref_ids)
        wanted_names = frozenset(names)
        by_id = self.frame[f"{dimension}_ids"].apply(lambda s: bool(wanted_ids & s))
        by_name = self.frame[f"{dimension}_names"].apply(lambda s: bool(wanted_names & s))
        return by_id.astype(bool) | by_name.astype(bool)

    def with_any(self, dimension: str, ref_ids: Iterable[int]) -> list[Recipe]:
        """Recipes associated with at least one of *ref_ids* in *dimension*."""
        wanted = frozenset(ref_ids)
        if self.frame.empty or not wanted:
            return []
        return self.by_ids(self.frame.loc[self.ref_mask(dimension, wanted), "id"])

    def iter_recipes(self, predicate: Callable[[Recipe], bool] | None = None) -> Iterator[Recipe]:
        for recipe_id in self.frame["id"]:
            recipe = self._recipes[int(recipe_id)]
            if predicate is None or predicate(recipe):
                yield recipe

    def ingredient(self, ingredient_id: int) -> Ingredient | None:
        return self._ingredients.get(ingredient_id)

    @property
    def ingredients(self) -> dict[int, Ingredient]:
        return dict(self._ingredients)

    def replace(self, recipe: Recipe) -> RecipeCorpus:
        if recipe.id not in self._recipes:
            raise NotFoundError("recipe", recipe.id)
        updated = dict(self._recipes)
        updated[recipe.id] = recipe
        return RecipeCorpus(
            updated.values(), version=self.version + 1, ingredients=self._ingredients.values()
        )
