"""SQLite-backed item and settings store."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timedelta
from pathlib import Path

from ..errors import InvalidItemError, ItemNotFoundError
from ..models import (
    AppSettings,
    Category,
    ExpiryStatus,
    Item,
    parse_date,
    parse_datetime,
)
from ..sample_data import sample_items
from ..store import ItemStore
from .schema import SEEDED_KEY, ensure_schema, mark_seeded

logger = logging.getLogger(__name__)

_SETTINGS_KEY = "app_settings"

_COLUMNS = (
    "id, name, category, expiry_date, reminder_days, notes,"
    " last_notified_status, snoozed_until, created_at"
)


def _item_params(item: Item) -> tuple:
    return (
        item.id,
        item.name,
        item.category.value,
        item.expiry_date.isoformat(),
        item.reminder_days,
        item.notes,
        item.last_notified_status.value if item.last_notified_status else None,
        item.snoozed_until.isoformat() if item.snoozed_until else None,
        item.created_at.isoformat(),
    )


def _row_to_item(row: sqlite3.Row) -> Item:
    try:
        category = Category(row["category"])
        status = (
            ExpiryStatus(row["last_notified_status"])
            if row["last_notified_status"]
            else None
        )
    except ValueError as e:
        raise InvalidItemError(f"corrupt item row {row['id']!r}: {e}") from e

    return Item(
        id=row["id"],
        name=row["name"],
        category=category,
        expiry_date=parse_date(row["expiry_date"]),
        reminder_days=int(row["reminder_days"]),
        notes=row["notes"],
        last_notified_status=status,
        snoozed_until=(
            parse_datetime(row["snoozed_until"]) if row["snoozed_until"] else None
        ),
        created_at=parse_datetime(row["created_at"]),
    )


class ItemDB(ItemStore):
    """Manages the items table and the app settings document."""

    def __init__(self, db_path: str | Path = "~/.config/shelflife/shelflife.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # -- key/value helpers ---------------------------------------------------

    def _get_value(self, key: str) -> str | None:
        row = self._get_conn().execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def _set_value(self, key: str, value: str) -> None:
        conn = self._get_conn()
        conn.execute(
            """INSERT INTO kv_store (key, value) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET value=excluded.value""",
            (key, value),
        )
        conn.commit()

    # -- items -----------------------------------------------------------------

    def _replace_all(self, items: list[Item]) -> None:
        conn = self._get_conn()
        with conn:
            conn.execute("DELETE FROM items")
            conn.executemany(
                f"INSERT INTO items ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [_item_params(item) for item in items],
            )
            mark_seeded(conn)

    def _seed(self) -> list[Item]:
        items = sample_items()
        self._replace_all(items)
        logger.info("Seeded store with %d sample items", len(items))
        return items

    def get_items(self) -> list[Item]:
        """Return all items in insertion order.

        An empty, never-seeded store is filled with the sample data. Rows
        that cannot be parsed are discarded and the sample data reseeded.
        """
        conn = self._get_conn()
        rows = conn.execute(
            f"SELECT {_COLUMNS} FROM items ORDER BY rowid"
        ).fetchall()

        if not rows and self._get_value(SEEDED_KEY) is None:
            return self._seed()

        try:
            return [_row_to_item(row) for row in rows]
        except (InvalidItemError, TypeError, ValueError):
            logger.exception("Stored items are corrupt; reseeding sample data")
            return self._seed()

    def get_item(self, item_id: str) -> Item | None:
        row = self._get_conn().execute(
            f"SELECT {_COLUMNS} FROM items WHERE id = ?", (item_id,)
        ).fetchone()
        if row is None:
            return None
        return _row_to_item(row)

    def _require_item(self, item_id: str) -> Item:
        item = self.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    def save_items(self, items: list[Item]) -> None:
        for item in items:
            item.validate()
        self._replace_all(items)

    def add_item(self, item: Item) -> None:
        item.validate()
        conn = self._get_conn()
        try:
            conn.execute(
                f"INSERT INTO items ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                _item_params(item),
            )
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise InvalidItemError(f"duplicate item id: {item.id}") from e
        # A store that was written to must never be reseeded.
        mark_seeded(conn)
        conn.commit()

    def update_item(self, item: Item) -> None:
        item.validate()
        conn = self._get_conn()
        cur = conn.execute(
            """UPDATE items
               SET name = ?, category = ?, expiry_date = ?, reminder_days = ?,
                   notes = ?, last_notified_status = ?, snoozed_until = ?,
                   created_at = ?
               WHERE id = ?""",
            _item_params(item)[1:] + (item.id,),
        )
        conn.commit()
        if cur.rowcount == 0:
            raise ItemNotFoundError(item.id)

    def delete_item(self, item_id: str) -> None:
        conn = self._get_conn()
        conn.execute("DELETE FROM items WHERE id = ?", (item_id,))
        conn.commit()

    def snooze_item(
        self, item_id: str, days: int, now: datetime | None = None
    ) -> datetime:
        if days < 0:
            raise InvalidItemError(f"snooze days must be >= 0 (got {days})")
        until = (now or datetime.now()) + timedelta(days=days)
        conn = self._get_conn()
        cur = conn.execute(
            "UPDATE items SET snoozed_until = ? WHERE id = ?",
            (until.isoformat(), item_id),
        )
        conn.commit()
        if cur.rowcount == 0:
            raise ItemNotFoundError(item_id)
        return until

    def mark_notified(self, item_id: str, status: ExpiryStatus) -> bool:
        conn = self._get_conn()
        if conn.in_transaction:
            conn.commit()
        conn.execute("BEGIN IMMEDIATE")
        try:
            row = conn.execute(
                "SELECT last_notified_status FROM items WHERE id = ?",
                (item_id,),
            ).fetchone()
            if row is None:
                raise ItemNotFoundError(item_id)
            if row["last_notified_status"] == status.value:
                conn.rollback()
                return False
            conn.execute(
                "UPDATE items SET last_notified_status = ? WHERE id = ?",
                (status.value, item_id),
            )
            conn.commit()
        except Exception:
            if conn.in_transaction:
                conn.rollback()
            raise
        return True

    # -- settings --------------------------------------------------------------

    def get_app_settings(self) -> AppSettings:
        raw = self._get_value(_SETTINGS_KEY)
        if raw is None:
            settings = AppSettings()
            self.save_app_settings(settings)
            return settings

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("settings document is not an object")
            return AppSettings.from_dict(data)
        except ValueError:
            logger.exception("Stored settings are corrupt; restoring defaults")
            settings = AppSettings()
            self.save_app_settings(settings)
            return settings

    def save_app_settings(self, settings: AppSettings) -> None:
        self._set_value(_SETTINGS_KEY, json.dumps(settings.to_dict()))
