from __future__ import annotations

import itertools
import logging
import threading
from typing import Callable, Iterable, Protocol

from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .errors import ConcurrencyError, NotFoundError
from .models import Comment, RatingSummary

logger = logging.getLogger(__name__)


def summarize_ratings(recipe_id: int, ratings: Iterable[int | None]) -> RatingSummary:
    """Mean and count of the ratings that are actually set."""
    values = [r for r in ratings if r is not None and r > 0]
    if not values:
        return RatingSummary(recipe_id=recipe_id, average_rating=0.0, rating_count=0)
    return RatingSummary(
        recipe_id=recipe_id,
        average_rating=round(sum(values) / len(values), 2),
        rating_count=len(values),
    )


class RatingStore(Protocol):
    """Storage calls the aggregator relies on."""

    def load_ratings(self, recipe_id: int) -> tuple[list[int | None], int]:
        """Return the recipe's current ratings and the version they were read at."""

    def write_rating(self, summary: RatingSummary, expected_version: int) -> None:
        """Persist *summary*; raise ``ConcurrencyError`` if the version moved."""


class RatingAggregator:
    """Keeps ``average_rating`` / ``rating_count`` derived from the rating set.

    Recomputation is a read-recompute-write cycle. Cycles for the same recipe
    are serialized through a per-recipe lock; a write that still loses an
    optimistic version check (another process, or a store shared outside
    this aggregator) is retried up to ``config.rating_max_retries`` times.
    """

    def __init__(self, store: RatingStore, config: CatalogConfig = DEFAULT_CATALOG_CONFIG) -> None:
        self._store = store
        self._max_retries = config.rating_max_retries
        self._locks: dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, recipe_id: int) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(recipe_id, threading.Lock())

    def recompute(self, recipe_id: int) -> RatingSummary:
        with self._lock_for(recipe_id):
            for attempt in range(1, self._max_retries + 1):
                ratings, version = self._store.load_ratings(recipe_id)
                summary = summarize_ratings(recipe_id, ratings)
                try:
                    self._store.write_rating(summary, expected_version=version)
                except ConcurrencyError:
                    logger.warning(
                        "Rating write for recipe %s lost a race (attempt %d/%d)",
                        recipe_id, attempt, self._max_retries,
                    )
                    continue
                return summary
        raise ConcurrencyError(recipe_id, self._max_retries)


class CommentStore:
    """In-memory comment collaborator implementing ``RatingStore``.

    Every comment mutation bumps the owning recipe's rating version and
    recomputes the aggregate; *on_write* receives each persisted summary so
    the caller can push it into the live recipe snapshot.
    """

    def __init__(
        self,
        recipe_exists: Callable[[int], bool],
        on_write: Callable[[RatingSummary], None] | None = None,
        config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
    ) -> None:
        self._recipe_exists = recipe_exists
        self._on_write = on_write
        self._comments: dict[int, Comment] = {}
        self._versions: dict[int, int] = {}
        self._summaries: dict[int, RatingSummary] = {}
        self._ids = itertools.count(1)
        self._guard = threading.Lock()
        self.aggregator = RatingAggregator(self, config)

    # ── RatingStore ──────────────────────────────────────────────────────

    def load_ratings(self, recipe_id: int) -> tuple[list[int | None], int]:
        if not self._recipe_exists(recipe_id):
            raise NotFoundError("recipe", recipe_id)
        with self._guard:
            ratings = [c.rating for c in self._comments.values() if c.recipe_id == recipe_id]
            return ratings, self._versions.get(recipe_id, 0)

    def write_rating(self, summary: RatingSummary, expected_version: int) -> None:
        with self._guard:
            if self._versions.get(summary.recipe_id, 0) != expected_version:
                raise ConcurrencyError(summary.recipe_id, 1)
            self._summaries[summary.recipe_id] = summary
        if self._on_write is not None:
            self._on_write(summary)

    # ── Comment mutations ────────────────────────────────────────────────

    def _bump(self, recipe_id: int) -> None:
        self._versions[recipe_id] = self._versions.get(recipe_id, 0) + 1

    def get(self, comment_id: int) -> Comment:
        try:
            return self._comments[comment_id]
        except KeyError:
            raise NotFoundError("comment", comment_id) from None

    def for_recipe(self, recipe_id: int) -> list[Comment]:
        return sorted(
            (c for c in self._comments.values() if c.recipe_id == recipe_id),
            key=lambda c: c.id,
        )

    def summary(self, recipe_id: int) -> RatingSummary:
        return self._summaries.get(
            recipe_id, RatingSummary(recipe_id=recipe_id, average_rating=0.0, rating_count=0)
        )

    def seed(self, comments: Iterable[Comment]) -> None:
        """Load existing comments without triggering recomputation."""
        with self._guard:
            for comment in comments:
                self._comments[comment.id] = comment
            top = max(self._comments, default=0)
            self._ids = itertools.count(top + 1)

    def add(
        self,
        recipe_id: int,
        user_id: int,
        content: str,
        rating: int | None = None,
        parent_id: int | None = None,
    ) -> tuple[Comment, RatingSummary]:
        if not self._recipe_exists(recipe_id):
            raise NotFoundError("recipe", recipe_id)
        if parent_id is not None:
            parent = self.get(parent_id)
            if parent.recipe_id != recipe_id:
                raise NotFoundError("comment", parent_id)
        with self._guard:
            comment = Comment(
                id=next(self._ids),
                recipe_id=recipe_id,
                user_id=user_id,
                content=content,
                rating=rating,
                parent_id=parent_id,
            )
            self._comments[comment.id] = comment
            self._bump(recipe_id)
        return comment, self.aggregator.recompute(recipe_id)

    def update(
        self,
        comment_id: int,
        content: str | None = None,
        rating: int | None = None,
    ) -> tuple[Comment, RatingSummary]:
        """Edit a comment; fields left as None keep their current value."""
        changes = {}
        if content:
            changes["content"] = content
        if rating is not None:
            changes["rating"] = rating
        with self._guard:
            current = self.get(comment_id)
            comment = current.model_copy(update=changes)
            self._comments[comment_id] = comment
            self._bump(comment.recipe_id)
        return comment, self.aggregator.recompute(comment.recipe_id)

    def delete(self, comment_id: int) -> RatingSummary:
        """Remove a comment and its replies, then recompute the recipe's rating."""
        with self._guard:
            comment = self.get(comment_id)
            doomed = {comment_id}
            changed = True
            while changed:
                children = {
                    c.id for c in self._comments.values()
                    if c.parent_id in doomed and c.id not in doomed
                }
                changed = bool(children)
                doomed |= children
            for cid in doomed:
                del self._comments[cid]
            self._bump(comment.recipe_id)
        return self.aggregator.recompute(comment.recipe_id)
