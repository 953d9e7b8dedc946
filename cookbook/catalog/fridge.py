from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .errors import ValidationError
from .models import FridgeItem, FridgeStats, Ingredient


def owned_ingredient_ids(items: Iterable[FridgeItem]) -> frozenset[int]:
    """Ingredient ids held in a fridge; a (user, ingredient) pair may appear once."""
    seen: set[tuple[int, int]] = set()
    for item in items:
        key = (item.user_id, item.ingredient_id)
        if key in seen:
            raise ValidationError(
                "fridge_items",
                f"ingredient {item.ingredient_id} listed twice for user {item.user_id}",
            )
        seen.add(key)
    return frozenset(ingredient_id for _, ingredient_id in seen)


def fridge_stats(
    items: Iterable[FridgeItem],
    ingredients: dict[int, Ingredient],
    today: date | None = None,
    config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
) -> FridgeStats:
    today = today or date.today()
    horizon = today + timedelta(days=config.expiring_soon_days)

    items = list(items)
    expired = expiring_soon = 0
    categories: set[str] = set()
    for item in items:
        ingredient = ingredients.get(item.ingredient_id)
        if ingredient is not None and ingredient.category:
            categories.add(ingredient.category)
        if item.expiry_date is None:
            continue
        if item.expiry_date < today:
            expired += 1
        elif item.expiry_date < horizon:
            expiring_soon += 1

    return FridgeStats(
        total_items=len(items),
        expiring_soon=expiring_soon,
        expired=expired,
        categories_count=len(categories),
        categories=sorted(categories),
    )
