"""Exception types raised by shelflife."""

from __future__ import annotations


class ShelflifeError(Exception):
    """Base class for all shelflife errors."""


class InvalidItemError(ShelflifeError, ValueError):
    """An item failed validation at a write boundary."""


class ItemNotFoundError(ShelflifeError, KeyError):
    """No item exists with the requested id."""


class BackupError(ShelflifeError, ValueError):
    """A backup document could not be imported."""


class NotificationDeliveryError(ShelflifeError, RuntimeError):
    """The notification transport failed to deliver an alert."""
