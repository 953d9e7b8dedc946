from __future__ import annotations

import threading

import pytest

from cookbook.catalog.config import CatalogConfig
from cookbook.catalog.errors import ConcurrencyError, NotFoundError
from cookbook.catalog.models import RatingSummary
from cookbook.catalog.ratings import CommentStore, RatingAggregator, summarize_ratings


def _store(written: list[RatingSummary] | None = None) -> CommentStore:
    return CommentStore(
        recipe_exists=lambda rid: rid in (1, 2),
        on_write=written.append if written is not None else None,
    )


def test_summarize_ignores_missing_ratings():
    summary = summarize_ratings(1, [4, None, 5, 3])
    assert summary.average_rating == 4.0
    assert summary.rating_count == 3


def test_summarize_empty():
    summary = summarize_ratings(1, [None])
    assert summary.average_rating == 0.0
    assert summary.rating_count == 0


def test_add_then_delete_recomputes():
    store = _store()
    store.add(1, user_id=1, content="good", rating=4)
    store.add(1, user_id=2, content="great", rating=5)
    worst, summary = store.add(1, user_id=3, content="meh", rating=3)
    assert (summary.average_rating, summary.rating_count) == (4.0, 3)

    summary = store.delete(worst.id)
    assert (summary.average_rating, summary.rating_count) == (4.5, 2)


def test_replies_without_rating_are_excluded():
    store = _store()
    parent, _ = store.add(1, user_id=1, content="nice", rating=2)
    _, summary = store.add(1, user_id=2, content="agreed", parent_id=parent.id)
    assert (summary.average_rating, summary.rating_count) == (2.0, 1)


def test_deleting_parent_removes_replies():
    store = _store()
    parent, _ = store.add(1, user_id=1, content="nice", rating=2)
    store.add(1, user_id=2, content="reply", rating=4, parent_id=parent.id)
    summary = store.delete(parent.id)
    assert summary.rating_count == 0
    assert summary.average_rating == 0.0
    assert store.for_recipe(1) == []


def test_update_changes_the_average():
    store = _store()
    comment, _ = store.add(1, user_id=1, content="ok", rating=2)
    store.add(1, user_id=2, content="good", rating=4)
    _, summary = store.update(comment.id, content="better now", rating=5)
    assert summary.average_rating == 4.5


def test_update_without_rating_keeps_it():
    store = _store()
    comment, _ = store.add(1, user_id=1, content="ok", rating=2)
    updated, summary = store.update(comment.id, content="reworded")
    assert updated.rating == 2
    assert updated.content == "reworded"
    assert (summary.average_rating, summary.rating_count) == (2.0, 1)


def test_ratings_are_per_recipe():
    store = _store()
    store.add(1, user_id=1, content="a", rating=5)
    _, summary = store.add(2, user_id=1, content="b", rating=1)
    assert summary.recipe_id == 2
    assert summary.average_rating == 1.0
    assert store.summary(1).average_rating == 5.0


def test_write_back_receives_each_summary():
    written: list[RatingSummary] = []
    store = _store(written)
    store.add(1, user_id=1, content="a", rating=5)
    store.add(1, user_id=2, content="b", rating=3)
    assert [s.average_rating for s in written] == [5.0, 4.0]


def test_unknown_recipe_and_comment():
    store = _store()
    with pytest.raises(NotFoundError):
        store.add(42, user_id=1, content="x", rating=3)
    with pytest.raises(NotFoundError):
        store.delete(999)
    with pytest.raises(NotFoundError):
        store.aggregator.recompute(42)


def test_concurrent_ratings_are_not_lost():
    store = _store()
    ratings = [1, 2, 3, 4, 5] * 8

    def rate(value: int) -> None:
        store.add(1, user_id=value, content="x", rating=value)

    threads = [threading.Thread(target=rate, args=(r,)) for r in ratings]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    summary = store.summary(1)
    assert summary.rating_count == len(ratings)
    assert summary.average_rating == 3.0


class _AlwaysConflicting:
    def __init__(self) -> None:
        self.writes = 0

    def load_ratings(self, recipe_id):
        return [5], 0

    def write_rating(self, summary, expected_version):
        self.writes += 1
        raise ConcurrencyError(summary.recipe_id, 1)


def test_gives_up_after_bounded_retries():
    store = _AlwaysConflicting()
    aggregator = RatingAggregator(store, CatalogConfig(rating_max_retries=4))
    with pytest.raises(ConcurrencyError) as exc:
        aggregator.recompute(7)
    assert exc.value.attempts == 4
    assert store.writes == 4


class _ConflictOnce(_AlwaysConflicting):
    def write_rating(self, summary, expected_version):
        self.writes += 1
        if self.writes == 1:
            raise ConcurrencyError(summary.recipe_id, 1)


def test_retries_after_a_lost_race():
    store = _ConflictOnce()
    summary = RatingAggregator(store).recompute(7)
    assert summary.average_rating == 5.0
    assert store.writes == 2
