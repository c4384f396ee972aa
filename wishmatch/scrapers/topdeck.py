"""
Topdeck forum listing fetcher.

Fetches a trade listing topic and parses it into priced entries. Parsed
pages are cached per URL for settings.listing_cache_ttl_seconds, so repeated
comparisons against the same listing do not refetch it.

Note: Web scraping is inherently fragile. Page structure may change.
"""

import logging
import time
from collections.abc import Callable

import httpx
from cachetools import TTLCache

from wishmatch.config import settings
from wishmatch.models.listing import ListingPage
from wishmatch.parsers.listing import parse_listing_page
from wishmatch.scrapers.http import fetch_text, require_http_url

logger = logging.getLogger(__name__)


class ListingCache:
    """
    In-process cache of parsed listing pages.

    Entries expire by elapsed time on a monotonic clock; expired entries
    are evicted on every write.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = 256,
    ) -> None:
        self._entries = TTLCache(
            maxsize=max_entries, ttl=ttl_seconds, timer=clock
        )

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, url: str) -> ListingPage | None:
        """Cached page for a URL, None if absent or expired."""
        return self._entries.get(url)

    def put(self, url: str, page: ListingPage) -> None:
        self._entries[url] = page

    def clear(self) -> None:
        self._entries.clear()


listing_cache = ListingCache(
    settings.listing_cache_ttl_seconds,
    max_entries=settings.listing_cache_max_entries,
)


async def fetch_listing_html(url: str, client: httpx.AsyncClient | None = None) -> str:
    """
    Fetch a listing page's HTML.

    Raises:
        InvalidUrlError: If the URL is not an http(s) link
        SourceFetchError: If the request fails or returns non-2xx
    """
    return await fetch_text(require_http_url(url, "Topdeck"), "Topdeck page", client)


async def fetch_listing(
    url: str,
    client: httpx.AsyncClient | None = None,
    cache: ListingCache | None = None,
) -> ListingPage:
    """
    Fetch and parse a listing, using the cache when the entry is fresh.

    Args:
        url: Listing topic URL
        client: Optional httpx client for connection reuse
        cache: Cache to use. Defaults to the process-wide listing_cache

    Returns:
        ListingPage with entries in source line order

    Raises:
        InvalidUrlError: If the URL is not an http(s) link
        SourceFetchError: If the page cannot be fetched
    """
    cache = cache if cache is not None else listing_cache

    cached = cache.get(url)
    if cached is not None:
        logger.debug("Listing cache hit for %s", url)
        return cached

    logger.info("Fetching Topdeck page %s", url)
    html = await fetch_listing_html(url, client)
    page = parse_listing_page(html, url)
    logger.info("Parsed Topdeck listing %s: %d entries", url, len(page.entries))

    cache.put(url, page)
    return page
