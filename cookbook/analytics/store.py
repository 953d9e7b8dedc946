from __future__ import annotations

import threading
import time
from collections import deque
from typing import Any

from ..catalog.config import DEFAULT_CATALOG_CONFIG

# Request log for search and suggestion calls, oldest events dropped first
_events: deque[dict[str, Any]] = deque(maxlen=DEFAULT_CATALOG_CONFIG.analytics_max_events)
_lock = threading.Lock()


def record_event(event_type: str, data: dict[str, Any]) -> None:
    event = {"type": event_type, "timestamp": time.time(), **data}
    with _lock:
        _events.append(event)


def get_events(event_type: str | None = None, since: float | None = None) -> list[dict[str, Any]]:
    """Snapshot of recorded events, optionally narrowed by type and start time."""
    with _lock:
        events = list(_events)
    if event_type is not None:
        events = [e for e in events if e["type"] == event_type]
    if since is not None:
        events = [e for e in events if e["timestamp"] >= since]
    return events


def clear_events() -> None:
    with _lock:
        _events.clear()
