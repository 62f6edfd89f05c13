"""JSON backup export and all-or-nothing import."""

from __future__ import annotations

import json
import logging

from .errors import BackupError, InvalidItemError
from .models import Item
from .store import ItemStore

logger = logging.getLogger(__name__)


def export_items(items: list[Item]) -> str:
    return json.dumps([item.to_dict() for item in items], ensure_ascii=False, indent=2)


def parse_backup(text: str) -> list[Item]:
    """Parse and validate a backup document.

    Raises:
        BackupError: If the document is not a JSON list or any entry is
            missing ``id``, ``name`` or ``expiryDate`` or fails to parse.
    """
    try:
        data = json.loads(text)
    except ValueError as e:
        raise BackupError(f"backup is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise BackupError("backup must be a list of items")

    items: list[Item] = []
    seen: set[str] = set()
    for idx, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise BackupError(f"entry {idx} is not an object")
        try:
            item = Item.from_dict(entry)
        except InvalidItemError as e:
            raise BackupError(f"entry {idx}: {e}") from e
        if item.id in seen:
            raise BackupError(f"entry {idx}: duplicate id {item.id!r}")
        seen.add(item.id)
        items.append(item)
    return items


def import_backup(store: ItemStore, text: str) -> list[Item]:
    """Replace the stored items with the contents of a backup.

    Nothing is written unless the whole document validates.
    """
    items = parse_backup(text)
    store.save_items(items)
    logger.info("Imported %d items from backup", len(items))
    return items
