"""Decides which items to alert about and records what was delivered.

Each item carries two persisted fields that drive a small state machine:

* ``last_notified_status``: the status an alert was last delivered for.
  Nothing fires again until the computed status differs from it.
* ``snoozed_until``: while ``now`` is before this, the item is skipped.

``Active`` never produces an alert and never clears the marker; only an
edit does (see ``ItemStore.edit_item``).
"""

from __future__ import annotations

import hashlib
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..errors import ItemNotFoundError, NotificationDeliveryError
from ..models import AppSettings, ExpiryStatus, Item
from ..status import get_expiry_status
from ..store import ItemStore
from . import Notifier

logger = logging.getLogger(__name__)

ALERT_STATUSES = frozenset({ExpiryStatus.SOON, ExpiryStatus.EXPIRED})

ITEMS_URL = "/#/items"


def alert_tag(item_id: str, status: ExpiryStatus) -> str:
    prefix = "expired" if status is ExpiryStatus.EXPIRED else "expiry"
    return f"{prefix}-{item_id}"


@dataclass
class DueNotification:
    """An item that needs an alert for ``status``."""

    item: Item
    status: ExpiryStatus

    @property
    def tag(self) -> str:
        return alert_tag(self.item.id, self.status)


def is_due(item: Item, now: datetime) -> ExpiryStatus | None:
    """Return the status to alert for, or None if the item needs no alert."""
    if item.is_snoozed(now):
        return None
    status = get_expiry_status(item, now)
    if status in ALERT_STATUSES and status != item.last_notified_status:
        return status
    return None


def find_due(items: list[Item], now: datetime) -> list[DueNotification]:
    due = []
    for item in items:
        status = is_due(item, now)
        if status is not None:
            due.append(DueNotification(item=item, status=status))
    return due


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def digest_tag(due: list[DueNotification]) -> str:
    key = ",".join(sorted(f"{d.item.id}:{d.status.value}" for d in due))
    return "digest-" + hashlib.sha1(key.encode()).hexdigest()[:12]


def build_alert(due: DueNotification) -> tuple[str, str, dict[str, Any]]:
    """Title, body and metadata for a single-item alert."""
    name = due.item.name
    if due.status is ExpiryStatus.EXPIRED:
        title = "Item Expired! 🚨"
        body = f"{name} has expired. Buy a fresh one now."
    else:
        title = "Expiring Soon! ⏳"
        body = f"{name} is expiring soon. Tap to reorder."
    metadata = {
        "item_id": due.item.id,
        "status": due.status.value,
        "url": ITEMS_URL,
    }
    return title, body, metadata


def build_digest(due: list[DueNotification]) -> tuple[str, str, dict[str, Any]]:
    """Title, body and metadata for one aggregate alert."""
    soon = sum(1 for d in due if d.status is ExpiryStatus.SOON)
    expired = sum(1 for d in due if d.status is ExpiryStatus.EXPIRED)

    parts = []
    if soon:
        parts.append(f"{_plural(soon, 'item')} expiring soon")
    if expired:
        parts.append(f"{_plural(expired, 'item')} expired")

    title = f"Expiry digest: {_plural(len(due), 'item')} need attention"
    body = ", ".join(parts) + "."
    metadata = {
        "item_ids": [d.item.id for d in due],
        "counts": {
            ExpiryStatus.SOON.value: soon,
            ExpiryStatus.EXPIRED.value: expired,
        },
        "url": ITEMS_URL,
    }
    return title, body, metadata


class NotificationEngine:
    """Runs the alert state machine against an item store.

    Overlapping calls to ``check_and_notify`` are dropped, not queued, so an
    alert can never be delivered twice before its marker is written.
    """

    def __init__(self, store: ItemStore, notifier: Notifier) -> None:
        self._store = store
        self._notifier = notifier
        self._lock = threading.Lock()

    def check_and_notify(self, now: datetime | None = None) -> list[DueNotification]:
        """Load items and settings from the store and run one evaluation."""
        if not self._lock.acquire(blocking=False):
            logger.info("Expiry check already in progress; skipping")
            return []
        try:
            items = self._store.get_items()
            settings = self._store.get_app_settings()
            return self.decide(items, settings, now)
        finally:
            self._lock.release()

    def decide(
        self,
        items: list[Item],
        settings: AppSettings,
        now: datetime | None = None,
    ) -> list[DueNotification]:
        """Deliver alerts for every due item and persist the dedup markers.

        Returns:
            The alerts that were delivered. Empty when notifications are
            disabled or the host has not granted permission.
        """
        if not settings.notifications_enabled:
            logger.debug("Notifications disabled; nothing to do")
            return []
        if not self._notifier.permission_granted():
            logger.debug("Notification permission not granted; nothing to do")
            return []

        now = now or datetime.now()
        due = [d for d in find_due(items, now) if self._still_due(d, now)]
        if not due:
            return []

        if settings.digest_mode_enabled:
            return self._deliver_digest(due)
        return self._deliver_each(due)

    def _still_due(self, due: DueNotification, now: datetime) -> bool:
        """Re-check an item against the store right before delivery."""
        stored = self._store.get_item(due.item.id)
        if stored is None:
            logger.debug("Item %s no longer stored; skipping", due.item.id)
            return False
        if stored.is_snoozed(now) or stored.last_notified_status == due.status:
            due.item.last_notified_status = stored.last_notified_status
            due.item.snoozed_until = stored.snoozed_until
            return False
        return True

    def _deliver_digest(self, due: list[DueNotification]) -> list[DueNotification]:
        title, body, metadata = build_digest(due)
        try:
            self._notifier.deliver(title, body, digest_tag(due), metadata)
        except (NotificationDeliveryError, OSError):
            logger.exception("Failed to deliver digest for %d items", len(due))
            return []

        logger.info("Delivered digest for %d items", len(due))
        for d in due:
            self._mark(d)
        return due

    def _deliver_each(self, due: list[DueNotification]) -> list[DueNotification]:
        delivered = []
        for d in due:
            title, body, metadata = build_alert(d)
            try:
                self._notifier.deliver(title, body, d.tag, metadata)
            except (NotificationDeliveryError, OSError):
                logger.exception("Failed to deliver alert %s", d.tag)
                continue

            logger.info("Delivered alert %s", d.tag)
            self._mark(d)
            delivered.append(d)
        return delivered

    def _mark(self, due: DueNotification) -> None:
        due.item.last_notified_status = due.status
        try:
            self._store.mark_notified(due.item.id, due.status)
        except ItemNotFoundError:
            logger.warning(
                "Item %s was deleted before its alert could be recorded",
                due.item.id,
            )
