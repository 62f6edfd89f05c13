"""User-facing settings actions."""

from __future__ import annotations

import logging

from .models import AppSettings, Category
from .notify import Notifier
from .store import ItemStore

logger = logging.getLogger(__name__)


def set_notifications_enabled(
    store: ItemStore, notifier: Notifier, enabled: bool
) -> bool:
    """Turn alerts on or off.

    Turning them on asks the host for permission. The setting is saved
    either way; without permission the engine stays silent.

    Returns:
        False if permission was requested and denied.
    """
    settings = store.get_app_settings()
    granted = True
    if enabled and not settings.notifications_enabled:
        granted = notifier.request_permission()
        if not granted:
            logger.warning("Notification permission denied")

    settings.notifications_enabled = enabled
    store.save_app_settings(settings)
    return granted


def set_digest_mode(store: ItemStore, enabled: bool) -> AppSettings:
    settings = store.get_app_settings()
    settings.digest_mode_enabled = enabled
    store.save_app_settings(settings)
    return settings


def set_store_preference(store: ItemStore, category: Category, url: str) -> AppSettings:
    """Set the search-URL template for one category. An empty URL clears it."""
    settings = store.get_app_settings()
    if url:
        settings.category_store_preferences[category.value] = url
    else:
        settings.category_store_preferences.pop(category.value, None)
    store.save_app_settings(settings)
    return settings


def set_link_base(store: ItemStore, url: str) -> AppSettings:
    if not url:
        raise ValueError("affiliate link base must not be empty")
    settings = store.get_app_settings()
    settings.affiliate_link_base = url
    store.save_app_settings(settings)
    return settings
