from __future__ import annotations

import logging
import time
from typing import Any, Iterable, Mapping

from ..analytics.store import record_event
from .cache import cache_get, cache_set
from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .corpus import RecipeCorpus
from .data_store import get_corpus, get_fridge_items
from .filters import filter_for_policy, filter_recipes
from .fridge import owned_ingredient_ids
from .matcher import match_recipes
from .models import (
    MatchPolicy,
    RecipeSummary,
    SearchQuery,
    SearchResponse,
    SuggestionResponse,
)
from .normalizer import normalize_policy, normalize_search
from .paginate import paginate, sort_candidates

logger = logging.getLogger(__name__)


# ── Pure engine ──────────────────────────────────────────────────────────


def run_search(
    corpus: RecipeCorpus,
    query: SearchQuery,
    viewer_id: int | None = None,
) -> SearchResponse:
    """Filter, order and page the corpus for an already-normalized query."""
    candidates = filter_recipes(corpus, query, viewer_id)
    ordered_ids = sort_candidates(candidates, query.sort_by, query.sort_order)
    page_ids, info = paginate(ordered_ids, query.page, query.page_size)
    return SearchResponse(
        recipes=[RecipeSummary.from_recipe(r) for r in corpus.by_ids(page_ids)],
        pagination=info,
    )


def run_suggestions(
    corpus: RecipeCorpus,
    owned_ids: Iterable[int],
    policy: MatchPolicy,
    viewer_id: int | None = None,
) -> SuggestionResponse:
    """Rank visible recipes by how well *owned_ids* covers their ingredients."""
    owned = frozenset(owned_ids)
    total_fridge_items = len(owned)
    unknown = sorted(iid for iid in owned if corpus.ingredient(iid) is None)
    if unknown:
        logger.warning("Ignoring unknown owned ingredient ids %s", unknown)
        owned = owned - frozenset(unknown)

    candidates = filter_for_policy(corpus, policy, viewer_id)
    recipes = corpus.by_ids(candidates["id"]) if not candidates.empty else []
    categories = {iid: corpus.ingredient(iid).category for iid in owned}
    ranked = match_recipes(recipes, owned, policy, ingredient_categories=categories)

    page, info = paginate(ranked, policy.page, policy.page_size)
    return SuggestionResponse(
        suggestions=page,
        pagination=info,
        total_fridge_items=total_fridge_items,
        search_parameters=policy.model_dump(mode="json"),
    )


# ── Request entry points (cache + analytics) ─────────────────────────────


def _cached(kind: str, request_dict: dict, version: int, config: CatalogConfig) -> Any | None:
    if not config.cache_enabled:
        return None
    return cache_get(kind, request_dict, version, ttl=config.cache_ttl)


def _store(kind: str, request_dict: dict, version: int, value: Any, config: CatalogConfig) -> None:
    if config.cache_enabled:
        cache_set(kind, request_dict, version, value, max_entries=config.cache_max_entries)


def search(
    filters: Mapping[str, Any],
    viewer_id: int | None = None,
    config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
) -> SearchResponse:
    start_time = time.time()
    query = normalize_search(filters, config)
    corpus = get_corpus()

    # --- Cache check ---
    request_dict = query.model_dump(mode="json")
    request_dict["viewer_id"] = viewer_id
    cached = _cached("search", request_dict, corpus.version, config)
    cache_hit = cached is not None

    if cache_hit:
        response = cached
    else:
        response = run_search(corpus, query, viewer_id)
        _store("search", request_dict, corpus.version, response, config)

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event("search", {
        "term": query.term,
        "tags": sorted(query.tags.names) + [str(i) for i in sorted(query.tags.ids)],
        "categories": sorted(query.categories.names)
        + [str(i) for i in sorted(query.categories.ids)],
        "filters": {
            "ingredients": not query.ingredients.is_empty,
            "equipment": not query.equipment.is_empty,
            "difficulty": query.difficulty is not None,
            "time": any(
                bound is not None
                for bound in (query.max_prep_time, query.max_cook_time, query.max_total_time)
            ),
            "rating": bool(query.min_rating),
            "author": query.author_id is not None,
        },
        "total_count": response.pagination.total_count,
        "results_returned": len(response.recipes),
        "response_time_ms": elapsed_ms,
        "cache_hit": cache_hit,
    })
    return response


def suggest_from_fridge(
    owned_ids: Iterable[int],
    raw_policy: Mapping[str, Any],
    viewer_id: int | None = None,
    config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
) -> SuggestionResponse:
    start_time = time.time()
    policy = normalize_policy(raw_policy, config)
    owned = sorted(set(owned_ids))
    corpus = get_corpus()

    # --- Cache check ---
    request_dict = policy.model_dump(mode="json")
    request_dict["owned"] = owned
    request_dict["viewer_id"] = viewer_id
    cached = _cached("suggest", request_dict, corpus.version, config)
    cache_hit = cached is not None

    if cache_hit:
        response = cached
    else:
        response = run_suggestions(corpus, owned, policy, viewer_id)
        _store("suggest", request_dict, corpus.version, response, config)

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event("suggest", {
        "match_type": policy.match_type.value,
        "owned_count": len(owned),
        "total_count": response.pagination.total_count,
        "results_returned": len(response.suggestions),
        "cookable": sum(1 for s in response.suggestions if s.can_cook),
        "response_time_ms": elapsed_ms,
        "cache_hit": cache_hit,
    })
    return response


def suggest_for_user(
    user_id: int,
    raw_policy: Mapping[str, Any],
    config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
) -> SuggestionResponse:
    """Suggest recipes from the ingredients stored in *user_id*'s fridge."""
    owned = owned_ingredient_ids(get_fridge_items(user_id))
    return suggest_from_fridge(owned, raw_policy, viewer_id=user_id, config=config)
