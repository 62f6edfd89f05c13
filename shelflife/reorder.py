"""Reorder-link resolution: cache, then affiliate API, then a plain search URL."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from urllib.parse import quote

import httpx

from .db import AffiliateCacheDB
from .models import AffiliateCacheEntry, AppSettings, Item, ReorderLink, cache_key
from .store import ItemStore

logger = logging.getLogger(__name__)

DEFAULT_STORE_LABEL = "Partner"


def build_search_url(item: Item, settings: AppSettings) -> str:
    """Direct (non-affiliate) search URL for an item.

    Uses the category's preferred store when one is set, otherwise the
    default link base, and appends the percent-encoded item name.
    """
    preferred = settings.category_store_preferences.get(item.category.value)
    base = preferred or settings.affiliate_link_base
    return base + quote(item.name, safe="!*'()")


class ReorderLinkResolver:
    """Resolves a purchase URL for an item.

    Failures of the remote lookup never propagate: network errors,
    timeouts, non-2xx responses and responses without ``affiliate_url``
    all fall back to ``build_search_url``.
    """

    def __init__(
        self,
        cache: AffiliateCacheDB,
        store: ItemStore,
        api_url: str = "",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._cache = cache
        self._store = store
        self._api_url = api_url
        self._timeout = timeout
        self._transport = transport

    async def resolve(self, item: Item, now: datetime | None = None) -> ReorderLink:
        now = now or datetime.now()
        key = cache_key(item)

        cached = self._cache.get(key, now)
        if cached is not None:
            logger.debug("Reorder link cache hit: %s", key)
            return ReorderLink(url=cached.url, is_affiliate=True)

        if self._api_url:
            try:
                found = await asyncio.wait_for(
                    self._lookup(item), timeout=self._timeout
                )
            except (
                httpx.HTTPError,
                httpx.InvalidURL,
                asyncio.TimeoutError,
                ValueError,
            ) as e:
                logger.warning(
                    "Affiliate lookup failed for %s, using direct link: %r", key, e
                )
                found = None

            if found is not None:
                url, store_label = found
                self._cache.put(
                    AffiliateCacheEntry(
                        key=key, url=url, store=store_label, cached_at=now
                    )
                )
                return ReorderLink(url=url, is_affiliate=True)

        settings = self._store.get_app_settings()
        return ReorderLink(url=build_search_url(item, settings), is_affiliate=False)

    async def _lookup(self, item: Item) -> tuple[str, str] | None:
        """Ask the affiliate API for a link.

        Returns:
            ``(url, store)`` or None if the API answered without a link.
        """
        payload = {"item_name": item.name, "category": item.category.value}
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await client.post(self._api_url, json=payload)

        if not response.is_success:
            logger.warning(
                "Affiliate API returned %d for %s",
                response.status_code,
                cache_key(item),
            )
            return None

        data = response.json()
        if not isinstance(data, dict):
            return None
        url = data.get("affiliate_url")
        if not url or not isinstance(url, str):
            return None
        return url, data.get("store") or DEFAULT_STORE_LABEL
