"""Expiry status evaluation and inventory summaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from .models import ExpiryStatus, Item

URGENT_LIMIT = 5


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def get_expiry_status(item: Item, now: date | datetime) -> ExpiryStatus:
    """Return the expiry status of ``item`` as of ``now``.

    Both sides are compared as calendar dates, so the time of day never
    matters. ``Soon`` spans ``reminder_days`` days before expiry up to and
    including the expiry date itself.
    """
    today = _as_date(now)
    expiry = _as_date(item.expiry_date)
    reminder_start = expiry - timedelta(days=item.reminder_days)

    if today > expiry:
        return ExpiryStatus.EXPIRED
    if reminder_start <= today <= expiry:
        return ExpiryStatus.SOON
    return ExpiryStatus.ACTIVE


@dataclass
class StatusSummary:
    counts: dict[ExpiryStatus, int] = field(
        default_factory=lambda: {s: 0 for s in ExpiryStatus}
    )
    urgent: list[Item] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.counts.values())


def summarize(items: list[Item], now: date | datetime) -> StatusSummary:
    """Count items per status and pick the most urgent non-active ones."""
    summary = StatusSummary()
    urgent: list[Item] = []
    for item in items:
        status = get_expiry_status(item, now)
        summary.counts[status] += 1
        if status is not ExpiryStatus.ACTIVE:
            urgent.append(item)

    urgent.sort(key=lambda i: i.expiry_date)
    summary.urgent = urgent[:URGENT_LIMIT]
    return summary


def filter_items(
    items: list[Item],
    now: date | datetime,
    status: ExpiryStatus | None = None,
    search: str = "",
) -> list[Item]:
    """Filter by status and a case-insensitive name substring."""
    needle = search.lower()
    return [
        item
        for item in items
        if (status is None or get_expiry_status(item, now) is status)
        and needle in item.name.lower()
    ]
