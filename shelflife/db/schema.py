"""Database schema definitions and migration helpers."""

from __future__ import annotations

import sqlite3
from pathlib import Path

_SCHEMA_VERSION = 2

# kv_store key set once the item list has been initialized. While it is
# absent an empty items table is filled with the sample data.
SEEDED_KEY = "items_seeded"

_MARK_SEEDED = """
INSERT INTO kv_store (key, value) VALUES (?, '1')
ON CONFLICT(key) DO NOTHING
"""

_DDL = """
CREATE TABLE IF NOT EXISTS items (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    category TEXT NOT NULL DEFAULT 'Others',
    expiry_date TEXT NOT NULL,
    reminder_days INTEGER NOT NULL DEFAULT 7,
    notes TEXT,
    last_notified_status TEXT,
    snoozed_until TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_items_expiry ON items(expiry_date);
CREATE INDEX IF NOT EXISTS idx_items_name ON items(name);

CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS affiliate_cache (
    cache_key TEXT PRIMARY KEY,
    url TEXT NOT NULL,
    store TEXT NOT NULL DEFAULT 'Partner',
    cached_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);
"""


def ensure_schema(db_path: str | Path) -> sqlite3.Connection:
    """Open (or create) the database and ensure the schema is up to date.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        An open sqlite3.Connection with the schema applied.
    """
    db_path = Path(db_path).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    # Scheduled checks run in worker threads; NotificationEngine serializes them
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    # Wait for other processes holding the write lock
    conn.execute("PRAGMA busy_timeout=5000")

    try:
        row = conn.execute("SELECT version FROM schema_version").fetchone()
        current_version = row["version"] if row else 0
    except sqlite3.OperationalError:
        current_version = 0

    if current_version < _SCHEMA_VERSION:
        conn.executescript(_DDL)
        if current_version == 1:
            # v1 only wrote the flag on bulk saves; a database that already
            # holds items has been initialized.
            if conn.execute("SELECT 1 FROM items LIMIT 1").fetchone():
                mark_seeded(conn)
        conn.execute("DELETE FROM schema_version")
        conn.execute(
            "INSERT INTO schema_version (version) VALUES (?)",
            (_SCHEMA_VERSION,),
        )
        conn.commit()

    return conn


def mark_seeded(conn: sqlite3.Connection) -> None:
    """Record that the item list was initialized. Does not commit."""
    conn.execute(_MARK_SEEDED, (SEEDED_KEY,))
