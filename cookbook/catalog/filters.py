from __future__ import annotations

import logging

import pandas as pd

from .corpus import REF_DIMENSIONS, RecipeCorpus
from .models import MatchPolicy, RefFilter, SearchQuery

logger = logging.getLogger(__name__)


def _visible(frame: pd.DataFrame, viewer_id: int | None) -> pd.Series:
    """Public recipes, plus private ones authored by the viewer."""
    mask = frame["is_public"].astype(bool)
    if viewer_id is not None:
        mask = mask | (frame["author_id"] == viewer_id)
    return mask


def filter_recipes(
    corpus: RecipeCorpus,
    query: SearchQuery,
    viewer_id: int | None = None,
) -> pd.DataFrame:
    """Return the corpus rows satisfying every filter in *query*.

    Dimensions are combined with AND; the values listed inside one
    multi-valued dimension are combined with OR.
    """
    df = corpus.frame
    if df.empty:
        return df

    mask = _visible(df, viewer_id)

    if query.term:
        term = query.term.casefold()
        mask = mask & (
            df["title_lower"].str.contains(term, regex=False)
            | df["description_lower"].str.contains(term, regex=False)
        )

    if query.max_prep_time is not None:
        mask = mask & (df["prep_time"] <= query.max_prep_time)
    if query.max_cook_time is not None:
        mask = mask & (df["cook_time"] <= query.max_cook_time)
    if query.max_total_time is not None:
        mask = mask & (df["total_time"] <= query.max_total_time)

    if query.difficulty is not None:
        mask = mask & (df["difficulty"] == query.difficulty.value)

    if query.min_rating is not None and query.min_rating > 0:
        mask = mask & (df["average_rating"] >= query.min_rating)

    if query.author_id is not None:
        mask = mask & (df["author_id"] == query.author_id)

    for dimension in REF_DIMENSIONS:
        ref: RefFilter = getattr(query, dimension)
        if not ref.is_empty:
            mask = mask & corpus.ref_mask(dimension, ref.ids, ref.names)

    candidates = df.loc[mask]
    logger.debug("Search filters kept %d of %d recipes", len(candidates), len(df))
    return candidates


def filter_for_policy(
    corpus: RecipeCorpus,
    policy: MatchPolicy,
    viewer_id: int | None = None,
) -> pd.DataFrame:
    """Visible recipes that keep at least one ingredient after category exclusion."""
    df = corpus.frame
    if df.empty:
        return df

    mask = _visible(df, viewer_id)
    if policy.exclude_categories:
        excluded = policy.exclude_categories
        has_required = df["id"].apply(
            lambda rid: any(
                ri.ingredient.category.casefold() not in excluded
                for ri in corpus.get(rid).ingredients
            )
        )
        mask = mask & has_required.astype(bool)
    return df.loc[mask]
