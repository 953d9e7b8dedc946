from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from cookbook.analytics.store import clear_events
from cookbook.catalog import data_store
from cookbook.catalog.cache import clear_cache
from cookbook.catalog.corpus import RecipeCorpus
from cookbook.catalog.models import (
    Category,
    Equipment,
    Ingredient,
    Recipe,
    RecipeEquipment,
    RecipeIngredient,
    Tag,
)

TOMATO = Ingredient(id=1, name="Tomato", category="vegetable")
ONION = Ingredient(id=2, name="Onion", category="vegetable")
GARLIC = Ingredient(id=3, name="Garlic", category="vegetable")
PASTA = Ingredient(id=4, name="Pasta", category="grain")
SALT = Ingredient(id=5, name="Salt", category="pantry")
EGG = Ingredient(id=7, name="Egg", category="dairy")

QUICK = Tag(id=1, name="Quick")
VEGETARIAN = Tag(id=2, name="Vegetarian")
DINNER = Category(id=1, name="Dinner")
PAN = Equipment(id=1, name="Pan")

_EPOCH = datetime(2024, 1, 1, 12, 0, 0)


def _build_recipe(recipe_id: int, ingredients: list[Ingredient] | None = None, **overrides) -> Recipe:
    fields = {
        "id": recipe_id,
        "title": f"Recipe {recipe_id}",
        "author_id": 1,
        "created_at": _EPOCH + timedelta(days=recipe_id),
        "ingredients": [
            RecipeIngredient(ingredient=i, quantity=1, unit="pcs")
            for i in (ingredients or [TOMATO])
        ],
    }
    fields.update(overrides)
    return Recipe(**fields)


@pytest.fixture
def make_recipe():
    return _build_recipe


@pytest.fixture
def corpus() -> RecipeCorpus:
    return RecipeCorpus([
        _build_recipe(
            1, [PASTA, TOMATO, GARLIC, SALT], title="Tomato Pasta",
            description="Weeknight dinner", prep_time=10, cook_time=15,
            difficulty="easy", tags=[QUICK, VEGETARIAN], categories=[DINNER],
            equipment=[RecipeEquipment(equipment=PAN)], average_rating=4.5,
        ),
        _build_recipe(
            2, [EGG, SALT], title="Boiled Egg", description="Soft or hard",
            prep_time=1, cook_time=8, difficulty="easy", tags=[QUICK],
            average_rating=3.0,
        ),
        _build_recipe(
            3, [ONION, GARLIC, TOMATO], title="onion jam",
            description="Slow cooked and SWEET", prep_time=20, cook_time=90,
            difficulty="hard", categories=[DINNER], average_rating=4.5,
        ),
        _build_recipe(
            4, [PASTA, EGG], title="Private Carbonara", prep_time=10, cook_time=10,
            difficulty="medium", is_public=False, author_id=2, tags=[QUICK],
        ),
        _build_recipe(5, [SALT], title="Salted Water", prep_time=0, cook_time=5),
    ])


@pytest.fixture
def fresh_catalog():
    """Reload the seed catalog and reset cache and analytics between API tests."""
    data_store.load()
    clear_cache()
    clear_events()
    yield
    data_store.load()
