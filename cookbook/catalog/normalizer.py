from __future__ import annotations

from typing import Any, Mapping

from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .errors import ValidationError
from .models import (
    Difficulty,
    MatchPolicy,
    MatchType,
    RefFilter,
    SearchQuery,
    SortField,
    SortOrder,
)

_MISSING = (None, "")


def _fold(value: str) -> str:
    return value.strip().casefold()


def _as_int(raw: Any, field: str) -> int | None:
    if raw in _MISSING:
        return None
    if isinstance(raw, bool):
        raise ValidationError(field, "must be an integer")
    if isinstance(raw, float):
        if not raw.is_integer():
            raise ValidationError(field, "must be an integer")
        return int(raw)
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        raise ValidationError(field, "must be an integer") from None


def _as_float(raw: Any, field: str) -> float | None:
    if raw in _MISSING:
        return None
    if isinstance(raw, bool):
        raise ValidationError(field, "must be a number")
    try:
        return float(str(raw).strip())
    except (TypeError, ValueError):
        raise ValidationError(field, "must be a number") from None


def _as_list(raw: Any, field: str) -> list[Any]:
    if raw in _MISSING:
        return []
    if isinstance(raw, str):
        return raw.split(",")
    if isinstance(raw, (list, tuple, set, frozenset)):
        return list(raw)
    if isinstance(raw, int) and not isinstance(raw, bool):
        return [raw]
    raise ValidationError(field, "must be a list or a comma-separated string")


def _ref_filter(raw: Any, field: str) -> RefFilter:
    """Split a multi-valued filter into numeric ids and case-folded names."""
    ids: set[int] = set()
    names: set[str] = set()
    for entry in _as_list(raw, field):
        if isinstance(entry, bool):
            raise ValidationError(field, "entries must be ids or names")
        if isinstance(entry, int):
            ids.add(entry)
            continue
        if not isinstance(entry, str):
            raise ValidationError(field, "entries must be ids or names")
        text = entry.strip()
        if not text:
            continue
        if text.isdigit():
            ids.add(int(text))
        else:
            names.add(text.casefold())
    return RefFilter(ids=frozenset(ids), names=frozenset(names))


def _time_bound(raw: Any, field: str) -> int | None:
    value = _as_int(raw, field)
    if value is not None and value < 0:
        raise ValidationError(field, "must be zero or greater")
    return value


def _page(raw: Any) -> int:
    value = _as_int(raw, "page")
    return max(1, value) if value is not None else 1


def _page_size(raw: Any, field: str, config: CatalogConfig) -> int:
    value = _as_int(raw, field)
    if value is None:
        return config.default_page_size
    return min(max(1, value), config.max_page_size)


def _sort(raw_by: Any, raw_order: Any, config: CatalogConfig) -> tuple[SortField, SortOrder]:
    """Resolve the requested ordering, never rejecting it.

    An unknown sort field falls back to the configured default field and
    direction together. An unknown direction on a known field falls back to
    the configured default direction only.
    """
    default = (SortField(config.default_sort_by), SortOrder(config.default_sort_order))
    if raw_by not in _MISSING:
        try:
            sort_by = SortField(_fold(str(raw_by)))
        except ValueError:
            # Unknown field: fall back to the default ordering as a whole
            return default
    else:
        sort_by = default[0]
    if raw_order in _MISSING:
        return sort_by, default[1]
    try:
        return sort_by, SortOrder(_fold(str(raw_order)))
    except ValueError:
        return sort_by, default[1]


def normalize_search(
    raw: Mapping[str, Any],
    config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
) -> SearchQuery:
    """Validate raw search filters and turn them into a ``SearchQuery``.

    Pagination values are clamped rather than rejected, and an unknown sort
    field falls back to the configured default ordering. Everything else that
    is malformed raises ``ValidationError`` naming the offending field.
    """
    term = raw.get("query", raw.get("term"))
    if term is not None and not isinstance(term, str):
        raise ValidationError("query", "must be a string")
    term = term.strip() if term else None

    difficulty = None
    raw_difficulty = raw.get("difficulty")
    if raw_difficulty not in _MISSING:
        try:
            difficulty = Difficulty(_fold(str(raw_difficulty)))
        except ValueError:
            raise ValidationError(
                "difficulty", "must be one of easy, medium, hard"
            ) from None

    min_rating = _as_float(raw.get("min_rating"), "min_rating")
    if min_rating is not None and not 0.0 <= min_rating <= 5.0:
        raise ValidationError("min_rating", "must be between 0 and 5")

    author_id = _as_int(raw.get("author_id"), "author_id")
    if author_id is not None and author_id < 1:
        raise ValidationError("author_id", "must be a positive integer")

    sort_by, sort_order = _sort(raw.get("sort_by"), raw.get("sort_order"), config)

    return SearchQuery(
        term=term or None,
        categories=_ref_filter(raw.get("categories"), "categories"),
        tags=_ref_filter(raw.get("tags"), "tags"),
        ingredients=_ref_filter(raw.get("ingredients"), "ingredients"),
        equipment=_ref_filter(raw.get("equipment", raw.get("equipments")), "equipment"),
        difficulty=difficulty,
        max_prep_time=_time_bound(raw.get("max_prep_time"), "max_prep_time"),
        max_cook_time=_time_bound(raw.get("max_cook_time"), "max_cook_time"),
        max_total_time=_time_bound(raw.get("max_total_time"), "max_total_time"),
        min_rating=min_rating,
        author_id=author_id,
        sort_by=sort_by,
        sort_order=sort_order,
        page=_page(raw.get("page")),
        page_size=_page_size(raw.get("page_size", raw.get("limit")), "page_size", config),
    )


def normalize_policy(
    raw: Mapping[str, Any],
    config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
) -> MatchPolicy:
    """Validate raw fridge-matching options and turn them into a ``MatchPolicy``."""
    raw_type = raw.get("match_type")
    if raw_type in _MISSING:
        match_type = MatchType.all
    else:
        try:
            match_type = MatchType(_fold(str(raw_type)))
        except ValueError:
            raise ValidationError("match_type", "must be 'all' or 'any'") from None

    max_missing = _as_int(raw.get("max_missing_ingredients"), "max_missing_ingredients")
    if max_missing is not None and max_missing < 0:
        raise ValidationError("max_missing_ingredients", "must be zero or greater")

    limit = _as_int(raw.get("limit"), "limit")
    if limit is not None and not 1 <= limit <= config.max_page_size:
        raise ValidationError("limit", f"must be between 1 and {config.max_page_size}")

    excluded = set()
    for entry in _as_list(raw.get("exclude_categories"), "exclude_categories"):
        if not isinstance(entry, str):
            raise ValidationError("exclude_categories", "entries must be category names")
        if entry.strip():
            excluded.add(_fold(entry))

    return MatchPolicy(
        match_type=match_type,
        max_missing_ingredients=max_missing,
        exclude_categories=frozenset(excluded),
        limit=limit,
        page=_page(raw.get("page")),
        page_size=_page_size(raw.get("page_size"), "page_size", config),
    )
