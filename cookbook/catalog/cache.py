from __future__ import annotations

import hashlib
import json
import threading
import time
from collections import OrderedDict
from typing import Any

from .config import DEFAULT_CATALOG_CONFIG

# Response cache for search and suggestion requests.
#
# Entries are keyed by request kind plus the normalized request, and remember
# the snapshot version they were computed from. A lookup against a newer
# snapshot is a miss, so rating write-backs never serve stale orderings.

_entries: OrderedDict[str, dict[str, Any]] = OrderedDict()
_hits: int = 0
_misses: int = 0
_evictions: int = 0
_lock = threading.Lock()


def _make_key(kind: str, request: dict) -> str:
    normalized = json.dumps({"kind": kind, **request}, sort_keys=True, default=str)
    return hashlib.sha256(normalized.encode()).hexdigest()[:16]


def cache_get(
    kind: str,
    request: dict,
    version: int,
    ttl: int = DEFAULT_CATALOG_CONFIG.cache_ttl,
) -> Any | None:
    """Return the cached response for *request*, or None on a miss."""
    global _hits, _misses
    key = _make_key(kind, request)
    with _lock:
        entry = _entries.get(key)
        if entry is not None:
            fresh = time.time() - entry["created_at"] < ttl
            if fresh and entry["version"] == version:
                _entries.move_to_end(key)
                _hits += 1
                return entry["value"]
            del _entries[key]
        _misses += 1
    return None


def cache_set(
    kind: str,
    request: dict,
    version: int,
    value: Any,
    max_entries: int = DEFAULT_CATALOG_CONFIG.cache_max_entries,
) -> None:
    global _evictions
    key = _make_key(kind, request)
    with _lock:
        _entries[key] = {"value": value, "version": version, "created_at": time.time()}
        _entries.move_to_end(key)
        while len(_entries) > max_entries:
            _entries.popitem(last=False)
            _evictions += 1


def drop_stale(version: int) -> int:
    """Remove entries computed from snapshots older than *version*."""
    with _lock:
        stale = [k for k, e in _entries.items() if e["version"] < version]
        for key in stale:
            del _entries[key]
    return len(stale)


def get_cache_stats() -> dict:
    total = _hits + _misses
    return {
        "size": len(_entries),
        "hits": _hits,
        "misses": _misses,
        "evictions": _evictions,
        "hit_rate": round(_hits / total * 100, 1) if total > 0 else 0.0,
    }


def clear_cache() -> None:
    global _hits, _misses, _evictions
    with _lock:
        _entries.clear()
        _hits = 0
        _misses = 0
        _evictions = 0
