"""Data models for tracked items, app settings and cached reorder links."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any

from .errors import InvalidItemError


class Category(str, Enum):
    GROCERY = "Grocery"
    MEDICINE = "Medicine"
    COSMETICS = "Cosmetics"
    ELECTRONICS = "Electronics"
    OTHERS = "Others"


class ExpiryStatus(str, Enum):
    ACTIVE = "Active"
    SOON = "Expiring Soon"
    EXPIRED = "Expired"


class NotificationState(str, Enum):
    """Where an item sits in the alert state machine."""

    NEVER_NOTIFIED = "never_notified"
    NOTIFIED = "notified"
    SNOOZED = "snoozed"


def parse_date(value: str | date | datetime) -> date:
    """Parse a calendar date, dropping any time-of-day component.

    Accepts ``date``/``datetime`` objects and ISO strings such as
    ``2025-03-01`` or ``2025-03-01T00:00:00.000Z``.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidItemError(f"not a date: {value!r}")
    raw = value.strip()
    try:
        return date.fromisoformat(raw[:10])
    except ValueError as e:
        raise InvalidItemError(f"invalid date: {value!r}") from e


def parse_datetime(value: str | datetime) -> datetime:
    """Parse an ISO timestamp into a naive local datetime."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        raw = value.strip()
        # fromisoformat() only understands a trailing "Z" from 3.11 on
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError as e:
            raise InvalidItemError(f"invalid timestamp: {value!r}") from e
    else:
        raise InvalidItemError(f"not a timestamp: {value!r}")

    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def new_item_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Item:
    """A perishable item being tracked."""

    name: str
    expiry_date: date
    category: Category = Category.GROCERY
    reminder_days: int = 7
    notes: str | None = None
    id: str = field(default_factory=new_item_id)
    last_notified_status: ExpiryStatus | None = None
    snoozed_until: datetime | None = None
    created_at: datetime = field(default_factory=datetime.now)

    def is_snoozed(self, now: datetime) -> bool:
        return self.snoozed_until is not None and now < self.snoozed_until

    def notification_state(self, now: datetime) -> NotificationState:
        if self.is_snoozed(now):
            return NotificationState.SNOOZED
        if self.last_notified_status is None:
            return NotificationState.NEVER_NOTIFIED
        return NotificationState.NOTIFIED

    def validate(self) -> None:
        """Check the invariants enforced whenever an item is written."""
        if not self.id:
            raise InvalidItemError("item id must not be empty")
        if not self.name or not self.name.strip():
            raise InvalidItemError("item name must not be empty")
        if self.reminder_days < 0:
            raise InvalidItemError(
                f"reminder_days must be >= 0 (got {self.reminder_days})"
            )

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the camelCase backup schema."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "expiryDate": self.expiry_date.isoformat(),
            "reminderDays": self.reminder_days,
            "createdAt": self.created_at.isoformat(),
        }
        if self.notes:
            data["notes"] = self.notes
        if self.last_notified_status is not None:
            data["lastNotifiedStatus"] = self.last_notified_status.value
        if self.snoozed_until is not None:
            data["snoozedUntil"] = self.snoozed_until.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Item:
        """Build an item from the camelCase backup schema.

        Raises:
            InvalidItemError: If a required field is missing or malformed.
        """
        for key in ("id", "name", "expiryDate"):
            if not data.get(key):
                raise InvalidItemError(f"missing required field: {key}")

        try:
            category = Category(data.get("category") or Category.OTHERS.value)
        except ValueError as e:
            raise InvalidItemError(
                f"unknown category: {data.get('category')!r}"
            ) from e

        try:
            reminder_days = int(data.get("reminderDays", 7))
        except (TypeError, ValueError) as e:
            raise InvalidItemError(
                f"invalid reminderDays: {data.get('reminderDays')!r}"
            ) from e

        last_status = None
        if data.get("lastNotifiedStatus"):
            try:
                last_status = ExpiryStatus(data["lastNotifiedStatus"])
            except ValueError as e:
                raise InvalidItemError(
                    f"unknown status: {data['lastNotifiedStatus']!r}"
                ) from e

        snoozed = data.get("snoozedUntil")
        created = data.get("createdAt")

        item = cls(
            id=str(data["id"]),
            name=str(data["name"]),
            category=category,
            expiry_date=parse_date(data["expiryDate"]),
            reminder_days=reminder_days,
            notes=data.get("notes") or None,
            last_notified_status=last_status,
            snoozed_until=parse_datetime(snoozed) if snoozed else None,
            created_at=parse_datetime(created) if created else datetime.now(),
        )
        item.validate()
        return item


@dataclass
class AppSettings:
    notifications_enabled: bool = False
    digest_mode_enabled: bool = False
    affiliate_link_base: str = "https://www.amazon.in/s?k="
    category_store_preferences: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "notificationsEnabled": self.notifications_enabled,
            "digestModeEnabled": self.digest_mode_enabled,
            "affiliateLinkBase": self.affiliate_link_base,
            "categoryStorePreferences": dict(self.category_store_preferences),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppSettings:
        defaults = cls()
        prefs = data.get("categoryStorePreferences") or {}
        if not isinstance(prefs, dict):
            raise ValueError("categoryStorePreferences must be a mapping")
        return cls(
            notifications_enabled=bool(
                data.get("notificationsEnabled", defaults.notifications_enabled)
            ),
            digest_mode_enabled=bool(
                data.get("digestModeEnabled", defaults.digest_mode_enabled)
            ),
            affiliate_link_base=str(
                data.get("affiliateLinkBase") or defaults.affiliate_link_base
            ),
            category_store_preferences={str(k): str(v) for k, v in prefs.items()},
        )


@dataclass
class AffiliateCacheEntry:
    """A resolved reorder link cached under ``name|category``."""

    key: str
    url: str
    store: str = "Partner"
    cached_at: datetime = field(default_factory=datetime.now)

    def is_valid(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.cached_at < ttl


def cache_key(item: Item) -> str:
    return f"{item.name}|{item.category.value}"


@dataclass
class ReorderLink:
    url: str
    is_affiliate: bool
