from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_DEFAULT_CATALOG = Path(__file__).resolve().parent.parent / "data" / "catalog.json"


@dataclass(frozen=True)
class CatalogConfig:
    catalog_path: Path = Path(os.getenv("COOKBOOK_CATALOG_PATH", str(_DEFAULT_CATALOG)))
    default_page_size: int = 20
    max_page_size: int = 100
    default_sort_by: str = "created_at"
    default_sort_order: str = "desc"
    cache_enabled: bool = os.getenv("COOKBOOK_CACHE_ENABLED", "1") != "0"
    cache_ttl: int = int(os.getenv("COOKBOOK_CACHE_TTL", "300"))
    cache_max_entries: int = int(os.getenv("COOKBOOK_CACHE_MAX_ENTRIES", "512"))
    analytics_max_events: int = int(os.getenv("COOKBOOK_ANALYTICS_MAX_EVENTS", "10000"))
    rating_max_retries: int = 3
    expiring_soon_days: int = 3


DEFAULT_CATALOG_CONFIG = CatalogConfig()
