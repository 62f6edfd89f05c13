"""Expiry tracking with deduplicated reminders and reorder links."""

from .backup import export_items, import_backup, parse_backup
from .config import ShelflifeConfig, load_config
from .db import AffiliateCacheDB, ItemDB
from .errors import (
    BackupError,
    InvalidItemError,
    ItemNotFoundError,
    NotificationDeliveryError,
    ShelflifeError,
)
from .models import (
    AffiliateCacheEntry,
    AppSettings,
    Category,
    ExpiryStatus,
    Item,
    NotificationState,
    ReorderLink,
)
from .notify import Notifier, create_notifier
from .notify.engine import DueNotification, NotificationEngine, find_due
from .reorder import ReorderLinkResolver, build_search_url
from .status import filter_items, get_expiry_status, summarize
from .store import ItemStore

__all__ = [
    "Item",
    "AppSettings",
    "AffiliateCacheEntry",
    "ReorderLink",
    "Category",
    "ExpiryStatus",
    "NotificationState",
    "get_expiry_status",
    "summarize",
    "filter_items",
    "ItemStore",
    "ItemDB",
    "AffiliateCacheDB",
    "Notifier",
    "create_notifier",
    "NotificationEngine",
    "DueNotification",
    "find_due",
    "ReorderLinkResolver",
    "build_search_url",
    "export_items",
    "parse_backup",
    "import_backup",
    "ShelflifeConfig",
    "load_config",
    "ShelflifeError",
    "InvalidItemError",
    "ItemNotFoundError",
    "BackupError",
    "NotificationDeliveryError",
]
