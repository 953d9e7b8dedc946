from __future__ import annotations

from typing import Any

from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .catalog.cache import get_cache_stats
from .catalog.data_store import get_comment_store, get_corpus, get_fridge_items
from .catalog.errors import ConcurrencyError, NotFoundError, ValidationError
from .catalog.fridge import fridge_stats
from .catalog.models import (
    Comment,
    CommentCreateRequest,
    CommentUpdateRequest,
    FridgeStats,
    RatingSummary,
    Recipe,
    SearchResponse,
    SuggestionRequest,
    SuggestionResponse,
)
from .catalog.service import search, suggest_for_user, suggest_from_fridge

app = FastAPI(title="Recipe Catalog API", version="1.0.0")


# ── Error mapping ────────────────────────────────────────────────────────


@app.exception_handler(ValidationError)
def validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"detail": {"field": exc.field, "message": exc.message}},
    )


@app.exception_handler(NotFoundError)
def not_found_error(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ConcurrencyError)
def concurrency_error(request: Request, exc: ConcurrencyError) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={"detail": str(exc)},
        headers={"Retry-After": "1"},
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    corpus = get_corpus()
    tags: set[str] = set()
    categories: set[str] = set()
    equipment: set[str] = set()
    for recipe in corpus.iter_recipes(lambda r: r.is_public):
        tags.update(t.name for t in recipe.tags)
        categories.update(c.name for c in recipe.categories)
        equipment.update(e.equipment.name for e in recipe.equipment)
    ingredient_categories = {i.category for i in corpus.ingredients.values() if i.category}
    return {
        "tags": sorted(tags),
        "categories": sorted(categories),
        "equipment": sorted(equipment),
        "ingredient_categories": sorted(ingredient_categories),
        "difficulties": ["easy", "medium", "hard"],
        "sort_fields": ["created_at", "rating", "prep_time", "cook_time", "total_time", "title"],
    }


# ── Search ───────────────────────────────────────────────────────────────


@app.post("/recipes/search", response_model=SearchResponse)
def search_recipes(
    filters: dict[str, Any] = Body(default_factory=dict),
    viewer_id: int | None = None,
) -> SearchResponse:
    return search(filters, viewer_id=viewer_id)


@app.get("/recipes/{recipe_id}", response_model=Recipe)
def get_recipe(recipe_id: int, viewer_id: int | None = None) -> Recipe:
    recipe = get_corpus().get(recipe_id)
    if not recipe.is_public and recipe.author_id != viewer_id:
        raise NotFoundError("recipe", recipe_id)
    return recipe


# ── Fridge ───────────────────────────────────────────────────────────────


@app.post("/fridge/suggestions", response_model=SuggestionResponse)
def fridge_suggestions(
    body: SuggestionRequest,
    viewer_id: int | None = None,
) -> SuggestionResponse:
    return suggest_from_fridge(body.ingredient_ids, body.policy, viewer_id=viewer_id)


@app.post("/users/{user_id}/fridge/suggestions", response_model=SuggestionResponse)
def user_fridge_suggestions(
    user_id: int,
    policy: dict[str, Any] = Body(default_factory=dict),
) -> SuggestionResponse:
    return suggest_for_user(user_id, policy)


@app.get("/users/{user_id}/fridge/stats", response_model=FridgeStats)
def user_fridge_stats(user_id: int) -> FridgeStats:
    return fridge_stats(get_fridge_items(user_id), get_corpus().ingredients)


# ── Comments & ratings ───────────────────────────────────────────────────


@app.get("/recipes/{recipe_id}/comments", response_model=list[Comment])
def list_comments(recipe_id: int) -> list[Comment]:
    get_corpus().get(recipe_id)
    return get_comment_store().for_recipe(recipe_id)


@app.post("/recipes/{recipe_id}/comments")
def create_comment(recipe_id: int, body: CommentCreateRequest) -> dict:
    comment, summary = get_comment_store().add(
        recipe_id,
        user_id=body.user_id,
        content=body.content,
        rating=body.rating,
        parent_id=body.parent_id,
    )
    return {"comment": comment, "rating": summary}


@app.put("/comments/{comment_id}")
def update_comment(comment_id: int, body: CommentUpdateRequest) -> dict:
    comment, summary = get_comment_store().update(
        comment_id, content=body.content, rating=body.rating,
    )
    return {"comment": comment, "rating": summary}


@app.delete("/comments/{comment_id}", response_model=RatingSummary)
def delete_comment(comment_id: int) -> RatingSummary:
    return get_comment_store().delete(comment_id)


# ── Operations ───────────────────────────────────────────────────────────


@app.get("/analytics")
def analytics(since: float | None = None) -> dict:
    return compute_analytics(get_events(since=since))


@app.get("/cache/stats")
def cache_stats() -> dict:
    return get_cache_stats()
