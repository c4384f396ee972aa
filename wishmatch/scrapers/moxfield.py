"""
Moxfield wishlist fetcher.

Moxfield's API rejects direct server-side requests, so decks are read
through a reader proxy (READER_PROXY_BASE) wrapping the public deck API.
"""

import logging

import httpx

from wishmatch.config import MOXFIELD_API_BASE, READER_PROXY_BASE
from wishmatch.models.failure import InvalidUrlError
from wishmatch.models.listing import Wishlist
from wishmatch.parsers.moxfield import load_deck_payload, parse_deck_id, parse_wishlist
from wishmatch.scrapers.http import fetch_text

logger = logging.getLogger(__name__)


def deck_api_url(deck_id: str) -> str:
    """Proxied API URL for a deck."""
    return f"{READER_PROXY_BASE}/{MOXFIELD_API_BASE}/{deck_id}"


async def fetch_wishlist(url: str, client: httpx.AsyncClient | None = None) -> Wishlist:
    """
    Fetch a Moxfield deck and return it as a wishlist.

    Args:
        url: Deck page URL, e.g. https://moxfield.com/decks/<id>
        client: Optional httpx client for connection reuse

    Raises:
        InvalidUrlError: If the URL is not a Moxfield deck link
        SourceFetchError: If the proxy request fails or returns non-2xx
        PayloadFormatError: If the response is not a deck
    """
    deck_id = parse_deck_id(url)
    if not deck_id:
        raise InvalidUrlError("Invalid Moxfield deck URL", detail=url or None)

    logger.info("Fetching Moxfield deck %s", deck_id)
    body = await fetch_text(deck_api_url(deck_id), "Moxfield deck", client)
    wishlist = parse_wishlist(load_deck_payload(body), deck_id)
    logger.info("Parsed Moxfield wishlist %s: %d cards", deck_id, len(wishlist.cards))
    return wishlist
