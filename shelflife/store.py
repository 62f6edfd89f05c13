"""Persistence interface consumed by the notification engine and CLI."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from .models import AppSettings, ExpiryStatus, Item


class ItemStore(ABC):
    """Durable storage for the item list and app settings.

    The first ``get_items()`` against an empty store seeds the sample items
    exactly once; ``get_app_settings()`` seeds defaults the same way.
    """

    @abstractmethod
    def get_items(self) -> list[Item]:
        ...

    @abstractmethod
    def get_item(self, item_id: str) -> Item | None:
        ...

    @abstractmethod
    def save_items(self, items: list[Item]) -> None:
        """Replace the whole item list."""
        ...

    @abstractmethod
    def add_item(self, item: Item) -> None:
        ...

    @abstractmethod
    def update_item(self, item: Item) -> None:
        """Replace the stored item with the same id, keeping every field as given.

        Raises:
            ItemNotFoundError: If no item has this id.
        """
        ...

    @abstractmethod
    def delete_item(self, item_id: str) -> None:
        ...

    @abstractmethod
    def snooze_item(
        self, item_id: str, days: int, now: datetime | None = None
    ) -> datetime:
        """Suppress alerts for ``item_id`` until ``now + days``.

        Returns:
            The new ``snoozed_until`` value.
        """
        ...

    @abstractmethod
    def mark_notified(self, item_id: str, status: ExpiryStatus) -> bool:
        """Record that ``status`` was notified for ``item_id``.

        Read, compare and write happen as one critical section.

        Returns:
            False if the stored marker already equals ``status``.
        """
        ...

    @abstractmethod
    def get_app_settings(self) -> AppSettings:
        ...

    @abstractmethod
    def save_app_settings(self, settings: AppSettings) -> None:
        ...

    def edit_item(self, item: Item) -> None:
        """Save a user edit. The dedup marker is cleared so the item is re-evaluated."""
        item.last_notified_status = None
        self.update_item(item)
