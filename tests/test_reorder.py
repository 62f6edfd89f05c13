"""Tests for reorder-link resolution (mocked affiliate API)."""

import asyncio
import json
from datetime import timedelta

import httpx
import pytest

from conftest import NOW, MemoryItemStore, make_item

from shelflife.db.affiliate_cache import AffiliateCacheDB
from shelflife.models import AffiliateCacheEntry, AppSettings, Category
from shelflife.reorder import ReorderLinkResolver, build_search_url

API_URL = "https://affiliate.example/api/link"


@pytest.fixture
def cache(tmp_path):
    db = AffiliateCacheDB(db_path=tmp_path / "cache.db")
    yield db
    db.close()


class FakeAPI:
    """Records requests and answers with a canned response."""

    def __init__(self, status=200, payload=None, exc=None, delay=0.0):
        self.status = status
        self.payload = payload if payload is not None else {}
        self.exc = exc
        self.delay = delay
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status, json=self.payload)


def _resolver(cache, api, settings=None, timeout=1.0):
    store = MemoryItemStore(settings=settings or AppSettings())
    return ReorderLinkResolver(
        cache,
        store,
        api_url=API_URL,
        timeout=timeout,
        transport=httpx.MockTransport(api),
    )


class TestBuildSearchUrl:
    def test_default_base(self):
        url = build_search_url(make_item(name="Milk"), AppSettings())
        assert url == "https://www.amazon.in/s?k=Milk"

    def test_name_is_encoded(self):
        url = build_search_url(make_item(name="Soy & Oat milk/1L"), AppSettings())
        assert url.endswith("Soy%20%26%20Oat%20milk%2F1L")

    def test_category_preference_wins(self):
        settings = AppSettings(
            category_store_preferences={"Medicine": "https://pharmacy.example/search?q="}
        )
        item = make_item(name="Paracetamol", category=Category.MEDICINE)
        assert build_search_url(item, settings) == (
            "https://pharmacy.example/search?q=Paracetamol"
        )

    def test_empty_preference_falls_back_to_default(self):
        settings = AppSettings(category_store_preferences={"Grocery": ""})
        url = build_search_url(make_item(name="Milk"), settings)
        assert url.startswith("https://www.amazon.in/s?k=")


@pytest.mark.asyncio
async def test_cache_hit_skips_remote(cache):
    cache.put(AffiliateCacheEntry("Milk|Grocery", "https://aff.example/cached", cached_at=NOW))
    api = FakeAPI(payload={"affiliate_url": "https://aff.example/fresh"})

    link = await _resolver(cache, api).resolve(make_item(), now=NOW + timedelta(days=1))

    assert link.url == "https://aff.example/cached"
    assert link.is_affiliate is True
    assert api.requests == []


@pytest.mark.asyncio
async def test_expired_cache_calls_remote_and_refreshes(cache):
    cache.put(AffiliateCacheEntry(
        "Milk|Grocery", "https://aff.example/old", cached_at=NOW - timedelta(days=8)
    ))
    api = FakeAPI(payload={"affiliate_url": "https://aff.example/new", "store": "BigBasket"})

    link = await _resolver(cache, api).resolve(make_item(), now=NOW)

    assert link.url == "https://aff.example/new"
    assert link.is_affiliate is True
    assert len(api.requests) == 1
    assert json.loads(api.requests[0].content) == {
        "item_name": "Milk",
        "category": "Grocery",
    }

    entry = cache.get("Milk|Grocery", NOW)
    assert entry.url == "https://aff.example/new"
    assert entry.store == "BigBasket"
    assert entry.cached_at == NOW


@pytest.mark.asyncio
async def test_missing_store_label_defaults(cache):
    api = FakeAPI(payload={"affiliate_url": "https://aff.example/x"})
    await _resolver(cache, api).resolve(make_item(), now=NOW)
    assert cache.get("Milk|Grocery", NOW).store == "Partner"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "api",
    [
        FakeAPI(status=500, payload={"error": "boom"}),
        FakeAPI(status=404),
        FakeAPI(payload={"store": "NoLink"}),
        FakeAPI(payload={"affiliate_url": ""}),
        FakeAPI(exc=httpx.ConnectError("connection refused")),
        FakeAPI(exc=httpx.InvalidURL("bad host")),
    ],
    ids=[
        "server-error", "not-found", "no-url", "empty-url", "network-error",
        "invalid-url",
    ],
)
async def test_remote_failure_falls_back(cache, api):
    link = await _resolver(cache, api).resolve(make_item(name="Greek Yogurt"), now=NOW)

    assert link.is_affiliate is False
    assert "Greek%20Yogurt" in link.url
    assert cache.get_raw("Greek Yogurt|Grocery") is None


@pytest.mark.asyncio
async def test_non_json_response_falls_back(cache):
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>")

    store = MemoryItemStore()
    resolver = ReorderLinkResolver(
        cache, store, api_url=API_URL, transport=httpx.MockTransport(handler)
    )
    link = await resolver.resolve(make_item(), now=NOW)
    assert link.is_affiliate is False


@pytest.mark.asyncio
async def test_malformed_api_url_falls_back(cache):
    resolver = ReorderLinkResolver(
        cache, MemoryItemStore(), api_url="http://exa\x01mple.com/api"
    )
    link = await resolver.resolve(make_item(), now=NOW)

    assert link.is_affiliate is False
    assert link.url == "https://www.amazon.in/s?k=Milk"
    assert cache.get_raw("Milk|Grocery") is None


@pytest.mark.asyncio
async def test_hung_remote_times_out(cache):
    api = FakeAPI(payload={"affiliate_url": "https://aff.example/late"}, delay=5.0)

    link = await _resolver(cache, api, timeout=0.05).resolve(make_item(), now=NOW)

    assert link.is_affiliate is False
    assert cache.get_raw("Milk|Grocery") is None


@pytest.mark.asyncio
async def test_fallback_uses_category_preference(cache):
    settings = AppSettings(
        category_store_preferences={"Cosmetics": "https://beauty.example/?s="}
    )
    api = FakeAPI(status=503)
    item = make_item(name="Sunscreen", category=Category.COSMETICS)

    link = await _resolver(cache, api, settings=settings).resolve(item, now=NOW)

    assert link.url == "https://beauty.example/?s=Sunscreen"


@pytest.mark.asyncio
async def test_no_api_url_goes_straight_to_fallback(cache):
    store = MemoryItemStore()
    resolver = ReorderLinkResolver(cache, store)
    link = await resolver.resolve(make_item(), now=NOW)
    assert link.is_affiliate is False
    assert link.url == "https://www.amazon.in/s?k=Milk"
