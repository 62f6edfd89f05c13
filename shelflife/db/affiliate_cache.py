"""Reorder-link cache backed by SQLite."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta
from pathlib import Path

from ..models import AffiliateCacheEntry, parse_datetime
from .schema import ensure_schema

CACHE_TTL = timedelta(days=7)


class AffiliateCacheDB:
    """Caches affiliate lookups to avoid repeated remote calls.

    Entries older than the TTL are ignored on read but left in place; the
    next successful lookup overwrites them.
    """

    def __init__(
        self,
        db_path: str | Path = "~/.config/shelflife/shelflife.db",
        ttl: timedelta = CACHE_TTL,
    ) -> None:
        self._db_path = db_path
        self._ttl = ttl
        self._conn: sqlite3.Connection | None = None

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def get(self, key: str, now: datetime | None = None) -> AffiliateCacheEntry | None:
        """Look up a cached link.

        Returns:
            The entry, or None if missing or older than the TTL.
        """
        entry = self.get_raw(key)
        if entry is None or not entry.is_valid(now or datetime.now(), self._ttl):
            return None
        return entry

    def get_raw(self, key: str) -> AffiliateCacheEntry | None:
        """Return the stored entry regardless of age."""
        row = self._get_conn().execute(
            "SELECT * FROM affiliate_cache WHERE cache_key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        return AffiliateCacheEntry(
            key=row["cache_key"],
            url=row["url"],
            store=row["store"],
            cached_at=parse_datetime(row["cached_at"]),
        )

    def put(self, entry: AffiliateCacheEntry) -> None:
        """Insert or refresh a cache entry."""
        conn = self._get_conn()
        conn.execute(
            """INSERT INTO affiliate_cache (cache_key, url, store, cached_at)
               VALUES (?, ?, ?, ?)
               ON CONFLICT(cache_key) DO UPDATE SET
                 url=excluded.url,
                 store=excluded.store,
                 cached_at=excluded.cached_at""",
            (entry.key, entry.url, entry.store, entry.cached_at.isoformat()),
        )
        conn.commit()
