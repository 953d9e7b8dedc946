from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from pydantic import BaseModel, Field

from .cache import drop_stale
from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .corpus import RecipeCorpus
from .models import Comment, FridgeItem, Ingredient, RatingSummary, Recipe
from .ratings import CommentStore

logger = logging.getLogger(__name__)


class CatalogSnapshot(BaseModel):
    """On-disk shape of the seed catalog."""

    recipes: list[Recipe] = Field(default_factory=list)
    ingredients: list[Ingredient] = Field(default_factory=list)
    fridge_items: list[FridgeItem] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)


_corpus: RecipeCorpus | None = None
_fridge: list[FridgeItem] | None = None
_comments: CommentStore | None = None
_lock = threading.RLock()


def _read_snapshot(path: Path) -> CatalogSnapshot:
    if not path.exists():
        return CatalogSnapshot()
    with path.open(encoding="utf-8") as fh:
        return CatalogSnapshot.model_validate(json.load(fh))


def load(config: CatalogConfig = DEFAULT_CATALOG_CONFIG) -> None:
    """(Re)load the catalog snapshot, fridge contents and comments from disk."""
    global _corpus, _fridge, _comments
    snapshot = _read_snapshot(config.catalog_path)
    with _lock:
        _corpus = RecipeCorpus(snapshot.recipes, ingredients=snapshot.ingredients)
        _fridge = list(snapshot.fridge_items)
        _comments = CommentStore(
            recipe_exists=lambda rid: rid in get_corpus(),
            on_write=apply_rating,
            config=config,
        )
        comments = [c for c in snapshot.comments if c.recipe_id in _corpus]
        if len(comments) < len(snapshot.comments):
            logger.warning(
                "Skipping %d comments on unknown recipes",
                len(snapshot.comments) - len(comments),
            )
        _comments.seed(comments)
        for recipe_id in sorted({c.recipe_id for c in comments}):
            _comments.aggregator.recompute(recipe_id)
    logger.info("Loaded %d recipes from %s", len(_corpus), config.catalog_path)


def get_corpus() -> RecipeCorpus:
    """Return the current recipe snapshot, loading it on first call."""
    if _corpus is None:
        load()
    return _corpus


def get_fridge_items(user_id: int) -> list[FridgeItem]:
    if _fridge is None:
        load()
    return [item for item in _fridge if item.user_id == user_id]


def get_comment_store() -> CommentStore:
    if _comments is None:
        load()
    return _comments


def apply_rating(summary: RatingSummary) -> None:
    """Write a recomputed rating back into the live snapshot."""
    global _corpus
    with _lock:
        corpus = get_corpus()
        recipe = corpus.get(summary.recipe_id)
        updated = recipe.model_copy(update={
            "average_rating": summary.average_rating,
            "rating_count": summary.rating_count,
        })
        _corpus = corpus.replace(updated)
    drop_stale(_corpus.version)
