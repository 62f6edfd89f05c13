"""Items seeded into an empty store on first use."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from .models import Category, Item

# (name, category, days until expiry, reminder days, notes)
_SAMPLES: list[tuple[str, Category, int, int, str | None]] = [
    ("Milk", Category.GROCERY, 2, 3, "Full cream, 1L"),
    ("Whole Wheat Bread", Category.GROCERY, 6, 2, None),
    ("Paracetamol 500mg", Category.MEDICINE, 120, 30, "Strip of 10"),
    ("Sunscreen SPF 50", Category.COSMETICS, -3, 14, None),
    ("AA Batteries", Category.ELECTRONICS, 400, 30, "Pack of 4"),
]


def sample_items(today: date | None = None) -> list[Item]:
    """Return the sample dataset with expiry dates relative to ``today``."""
    today = today or date.today()
    created = datetime.combine(today, datetime.min.time())
    return [
        Item(
            id=f"sample-{idx}",
            name=name,
            category=category,
            expiry_date=today + timedelta(days=offset),
            reminder_days=reminder,
            notes=notes,
            created_at=created,
        )
        for idx, (name, category, offset, reminder, notes) in enumerate(
            _SAMPLES, start=1
        )
    ]
