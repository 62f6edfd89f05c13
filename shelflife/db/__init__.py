"""SQLite persistence for items, settings and cached reorder links."""

from .affiliate_cache import CACHE_TTL, AffiliateCacheDB
from .items import ItemDB
from .schema import ensure_schema

__all__ = [
    "ItemDB",
    "AffiliateCacheDB",
    "CACHE_TTL",
    "ensure_schema",
]
