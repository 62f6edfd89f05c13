"""Shared fixtures: an in-memory item store and a recording notifier."""

from __future__ import annotations

import copy
from datetime import date, datetime, timedelta

import pytest

from shelflife.errors import ItemNotFoundError, NotificationDeliveryError
from shelflife.models import AppSettings, Category, ExpiryStatus, Item
from shelflife.notify import Notifier
from shelflife.store import ItemStore

TODAY = date(2025, 6, 15)
NOW = datetime(2025, 6, 15, 9, 30)


class MemoryItemStore(ItemStore):
    """Dict-backed store that hands out copies, like a real database."""

    def __init__(self, items=None, settings=None) -> None:
        self._items: dict[str, Item] = {}
        for item in items or []:
            self._items[item.id] = copy.deepcopy(item)
        self._settings = copy.deepcopy(settings or AppSettings())
        self.mark_calls: list[tuple[str, ExpiryStatus]] = []

    def get_items(self) -> list[Item]:
        return [copy.deepcopy(i) for i in self._items.values()]

    def get_item(self, item_id):
        item = self._items.get(item_id)
        return copy.deepcopy(item) if item else None

    def save_items(self, items):
        self._items = {i.id: copy.deepcopy(i) for i in items}

    def add_item(self, item):
        item.validate()
        self._items[item.id] = copy.deepcopy(item)

    def update_item(self, item):
        item.validate()
        if item.id not in self._items:
            raise ItemNotFoundError(item.id)
        self._items[item.id] = copy.deepcopy(item)

    def delete_item(self, item_id):
        self._items.pop(item_id, None)

    def snooze_item(self, item_id, days, now=None):
        if item_id not in self._items:
            raise ItemNotFoundError(item_id)
        until = (now or datetime.now()) + timedelta(days=days)
        self._items[item_id].snoozed_until = until
        return until

    def mark_notified(self, item_id, status):
        self.mark_calls.append((item_id, status))
        item = self._items.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        if item.last_notified_status == status:
            return False
        item.last_notified_status = status
        return True

    def get_app_settings(self):
        return copy.deepcopy(self._settings)

    def save_app_settings(self, settings):
        self._settings = copy.deepcopy(settings)


class RecordingNotifier(Notifier):
    """Notifier that records deliveries instead of showing them."""

    def __init__(self, granted: bool = True, fail_tags=()) -> None:
        self.granted = granted
        self.fail_tags = set(fail_tags)
        self.delivered: list[dict] = []
        self.permission_requests = 0

    def request_permission(self) -> bool:
        self.permission_requests += 1
        return self.granted

    def permission_granted(self) -> bool:
        return self.granted

    def deliver(self, title, body, tag, metadata):
        if tag in self.fail_tags:
            raise NotificationDeliveryError(f"transport rejected {tag}")
        self.delivered.append(
            {"title": title, "body": body, "tag": tag, "metadata": metadata}
        )


def make_item(
    item_id: str = "item-1",
    name: str = "Milk",
    expiry: date = TODAY,
    reminder_days: int = 3,
    category: Category = Category.GROCERY,
    **kwargs,
) -> Item:
    return Item(
        id=item_id,
        name=name,
        expiry_date=expiry,
        reminder_days=reminder_days,
        category=category,
        created_at=datetime(2025, 6, 1, 8, 0),
        **kwargs,
    )


@pytest.fixture
def enabled_settings():
    return AppSettings(notifications_enabled=True)


@pytest.fixture
def notifier():
    return RecordingNotifier()
