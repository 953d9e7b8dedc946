from __future__ import annotations

import math
from typing import Sequence, TypeVar

import pandas as pd

from .models import PageInfo, SortField, SortOrder

T = TypeVar("T")

# Frame column backing each public sort field
SORT_COLUMNS: dict[SortField, str] = {
    SortField.created_at: "created_at",
    SortField.rating: "average_rating",
    SortField.prep_time: "prep_time",
    SortField.cook_time: "cook_time",
    SortField.total_time: "total_time",
    SortField.title: "title_lower",
}


def sort_candidates(
    candidates: pd.DataFrame,
    sort_by: SortField,
    sort_order: SortOrder,
) -> list[int]:
    """Return candidate recipe ids in display order.

    Ties on the primary key always fall back to ascending id, whatever the
    requested direction, so repeated calls page through the same sequence.
    """
    if candidates.empty:
        return []
    ordered = candidates.sort_values(
        by=[SORT_COLUMNS[sort_by], "id"],
        ascending=[sort_order == SortOrder.asc, True],
        kind="mergesort",
    )
    return [int(rid) for rid in ordered["id"]]


def page_info(total_count: int, page: int, page_size: int) -> PageInfo:
    total_pages = math.ceil(total_count / page_size) if total_count else 0
    return PageInfo(
        total_count=total_count,
        current_page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


def paginate(items: Sequence[T], page: int, page_size: int) -> tuple[list[T], PageInfo]:
    """Slice ``items[(page-1)*page_size : page*page_size]``; past the end is empty."""
    start = (page - 1) * page_size
    return list(items[start:start + page_size]), page_info(len(items), page, page_size)
