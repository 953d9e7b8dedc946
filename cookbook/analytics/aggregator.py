from __future__ import annotations

from collections import Counter
from typing import Any


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    searches = [e for e in events if e["type"] == "search"]
    suggestions = [e for e in events if e["type"] == "suggest"]
    requests = searches + suggestions
    total = len(searches)

    # Average response time across both request kinds
    times = [e["response_time_ms"] for e in requests if "response_time_ms" in e]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Top search terms (case-folded so "Pasta" and "pasta" count together)
    term_counter: Counter[str] = Counter()
    for s in searches:
        if s.get("term"):
            term_counter[s["term"].casefold()] += 1
    top_terms = [{"name": n, "count": c} for n, c in term_counter.most_common(10)]

    tag_counter: Counter[str] = Counter()
    category_counter: Counter[str] = Counter()
    for s in searches:
        tag_counter.update(s.get("tags", []) or [])
        category_counter.update(s.get("categories", []) or [])
    top_tags = [{"name": n, "count": c} for n, c in tag_counter.most_common(10)]
    top_categories = [{"name": n, "count": c} for n, c in category_counter.most_common(10)]

    # Filter usage rates
    filter_counts = {
        "term": 0, "tags": 0, "categories": 0, "ingredients": 0, "equipment": 0,
        "difficulty": 0, "time": 0, "rating": 0, "author": 0,
    }
    for s in searches:
        if s.get("term"):
            filter_counts["term"] += 1
        if s.get("tags"):
            filter_counts["tags"] += 1
        if s.get("categories"):
            filter_counts["categories"] += 1
        for name, used in (s.get("filters") or {}).items():
            if used and name in filter_counts:
                filter_counts[name] += 1
    filter_usage = {k: _rate(v, total) for k, v in filter_counts.items()}

    zero_results = sum(1 for s in searches if s.get("total_count", 0) == 0)

    # Cache stats
    cache_hits = sum(1 for e in requests if e.get("cache_hit"))

    # Fridge suggestion summary
    returned = [s.get("results_returned", 0) for s in suggestions]
    cookable = sum(s.get("cookable", 0) for s in suggestions)
    match_types: Counter[str] = Counter(s.get("match_type", "unknown") for s in suggestions)

    return {
        "total_searches": total,
        "total_suggestions": len(suggestions),
        "avg_response_time_ms": avg_time,
        "top_terms": top_terms,
        "top_tags": top_tags,
        "top_categories": top_categories,
        "filter_usage": filter_usage,
        "zero_result_rate": _rate(zero_results, total),
        "cache_stats": {
            "hits": cache_hits,
            "misses": len(requests) - cache_hits,
            "hit_rate": _rate(cache_hits, len(requests)),
        },
        "suggestion_summary": {
            "total": len(suggestions),
            "avg_results": round(sum(returned) / len(returned), 1) if returned else 0.0,
            "cookable_rate": _rate(cookable, sum(returned)),
            "match_types": dict(match_types),
        },
    }
