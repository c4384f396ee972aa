"""Tests for the Topdeck listing fetcher and its cache."""

import httpx
import pytest
import respx

from wishmatch.models.failure import InvalidUrlError, SourceFetchError
from wishmatch.models.listing import ListingPage
from wishmatch.scrapers.topdeck import ListingCache, fetch_listing

LISTING_URL = "https://topdeck.ru/apps/toptrade/topic/12345"


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestListingCache:
    def test_returns_fresh_entry(self) -> None:
        clock = FakeClock()
        cache = ListingCache(ttl_seconds=300, clock=clock)
        page = ListingPage(url=LISTING_URL, title="t", author="a", author_id="1")

        cache.put(LISTING_URL, page)
        clock.now += 299

        assert cache.get(LISTING_URL) is page

    def test_expires_entry(self) -> None:
        clock = FakeClock()
        cache = ListingCache(ttl_seconds=300, clock=clock)
        cache.put(LISTING_URL, ListingPage(url=LISTING_URL, title="", author="", author_id=""))

        clock.now += 301

        assert cache.get(LISTING_URL) is None

    def test_missing_entry(self) -> None:
        assert ListingCache(ttl_seconds=300).get(LISTING_URL) is None

    def test_expired_entries_are_evicted_on_write(self) -> None:
        """Stale pages for other URLs do not pile up."""
        clock = FakeClock()
        cache = ListingCache(ttl_seconds=10, clock=clock, max_entries=2000)
        page = ListingPage(url=LISTING_URL, title="", author="", author_id="")
        for i in range(1000):
            cache.put(f"{LISTING_URL}?page={i}", page)

        clock.now += 10_000
        cache.put(LISTING_URL, page)

        assert len(cache) == 1

    def test_bounded_size(self) -> None:
        cache = ListingCache(ttl_seconds=300, clock=FakeClock(), max_entries=2)
        page = ListingPage(url=LISTING_URL, title="", author="", author_id="")
        for i in range(5):
            cache.put(f"{LISTING_URL}?page={i}", page)

        assert len(cache) == 2


class TestFetchListing:
    @respx.mock
    async def test_fetches_and_parses(self, sample_listing_html: str) -> None:
        route = respx.get(LISTING_URL).mock(
            return_value=httpx.Response(200, text=sample_listing_html)
        )

        page = await fetch_listing(LISTING_URL, cache=ListingCache(ttl_seconds=300))

        assert page.title == "Продаю карты"
        assert [e.name for e in page.entries] == ["Lightning Bolt", "Counterspell", "Tarmogoyf"]
        assert "wishmatch" in route.calls.last.request.headers["User-Agent"]

    @respx.mock
    async def test_cache_hit_skips_network(self, sample_listing_html: str) -> None:
        route = respx.get(LISTING_URL).mock(
            return_value=httpx.Response(200, text=sample_listing_html)
        )
        cache = ListingCache(ttl_seconds=300, clock=FakeClock())

        first = await fetch_listing(LISTING_URL, cache=cache)
        second = await fetch_listing(LISTING_URL, cache=cache)

        assert first is second
        assert route.call_count == 1

    @respx.mock
    async def test_refetches_after_expiry(self, sample_listing_html: str) -> None:
        route = respx.get(LISTING_URL).mock(
            return_value=httpx.Response(200, text=sample_listing_html)
        )
        clock = FakeClock()
        cache = ListingCache(ttl_seconds=300, clock=clock)

        await fetch_listing(LISTING_URL, cache=cache)
        clock.now += 301
        await fetch_listing(LISTING_URL, cache=cache)

        assert route.call_count == 2

    @respx.mock
    async def test_non_2xx_includes_status(self) -> None:
        respx.get(LISTING_URL).mock(return_value=httpx.Response(404))

        with pytest.raises(SourceFetchError, match=r"\(404\)"):
            await fetch_listing(LISTING_URL, cache=ListingCache(ttl_seconds=300))

    @respx.mock
    async def test_network_error(self) -> None:
        respx.get(LISTING_URL).mock(side_effect=httpx.ConnectTimeout("timed out"))

        with pytest.raises(SourceFetchError):
            await fetch_listing(LISTING_URL, cache=ListingCache(ttl_seconds=300))

    @respx.mock
    async def test_failures_are_not_cached(self, sample_listing_html: str) -> None:
        route = respx.get(LISTING_URL).mock(
            side_effect=[
                httpx.Response(502),
                httpx.Response(200, text=sample_listing_html),
            ]
        )
        cache = ListingCache(ttl_seconds=300)

        with pytest.raises(SourceFetchError):
            await fetch_listing(LISTING_URL, cache=cache)
        page = await fetch_listing(LISTING_URL, cache=cache)

        assert len(page.entries) == 3
        assert route.call_count == 2

    async def test_rejects_non_http_url(self) -> None:
        with pytest.raises(InvalidUrlError):
            await fetch_listing("topdeck.ru/topic/1", cache=ListingCache(ttl_seconds=300))
