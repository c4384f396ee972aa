"""
Wishlist vs. listing comparison.

Joins the two inventories by card identity. Listing entries are indexed
under two keys: their oracle id (when resolved) and their normalized
matching name. A wishlist card looks itself up by oracle id first and
falls back to the name key, so cards the resolver misses can still match
on spelling.
"""

import asyncio
import logging
import re
from collections.abc import Iterable, Mapping

from wishmatch.models.comparison import ComparisonReport, ComparisonRow, MatchedListing
from wishmatch.models.failure import ResolverResponseError
from wishmatch.models.listing import ListingEntry, ListingPage, Wishlist
from wishmatch.models.oracle import ResolutionResult
from wishmatch.scrapers.moxfield import fetch_wishlist
from wishmatch.scrapers.topdeck import fetch_listing
from wishmatch.services.card_names import normalize_for_matching
from wishmatch.services.oracle_resolver import OracleBackend, get_oracle_backend

logger = logging.getLogger(__name__)

_LEADING_QUANTITY = re.compile(r"^\d+")


def identity_key(oracle_id: str | None, name: str) -> str | None:
    """Join key: the oracle id when known, else the matching name."""
    if oracle_id:
        return f"oracle:{oracle_id}"
    return name_key(name)


def name_key(name: str) -> str | None:
    normalized = normalize_for_matching(name)
    return f"name:{normalized}" if normalized else None


async def resolve_all(backend: OracleBackend, names: Iterable[str]) -> dict[str, ResolutionResult]:
    """
    Resolve names in one batch.

    A malformed resolver response leaves every name unresolved instead of
    failing the comparison.
    """
    try:
        return await backend.resolve_batch(names)
    except ResolverResponseError as e:
        logger.warning("Oracle resolver returned a malformed batch, treating as unresolved: %s", e)
        return {}


def _result_for(results: Mapping[str, ResolutionResult], name: str) -> ResolutionResult:
    return results.get(name.strip()) or ResolutionResult.unresolved()


def match_listings(
    entries: Iterable[ListingEntry],
    results: Mapping[str, ResolutionResult],
) -> list[MatchedListing]:
    """Attach resolved identities to listing entries, keeping listing order."""
    return [
        MatchedListing(entry=entry, oracle_id=_result_for(results, entry.name).oracle_id)
        for entry in entries
    ]


def join_comparison(
    wishlist: Wishlist,
    listing: ListingPage,
    results: Mapping[str, ResolutionResult],
    resolver_miss_count: int = 0,
) -> ComparisonReport:
    """
    Join a wishlist with a listing.

    Args:
        wishlist: Wanted cards
        listing: Parsed listing page
        results: Resolution results keyed by trimmed raw name
        resolver_miss_count: Misses reported by the resolver's last pass

    Returns:
        ComparisonReport with rows sorted by card name
    """
    by_key: dict[str, list[MatchedListing]] = {}
    for match in match_listings(listing.entries, results):
        keys = {identity_key(match.oracle_id, match.entry.name), name_key(match.entry.name)}
        for key in keys:
            if key is not None:
                by_key.setdefault(key, []).append(match)

    rows: list[ComparisonRow] = []
    for card in wishlist.cards:
        result = _result_for(results, card.name)
        oracle_key = identity_key(result.oracle_id, card.name)
        fallback_key = name_key(card.name)

        listings: list[MatchedListing] = []
        if oracle_key is not None:
            listings = by_key.get(oracle_key, [])
        if not listings and fallback_key is not None:
            listings = by_key.get(fallback_key, [])

        rows.append(
            ComparisonRow(
                name=card.name,
                quantity=card.quantity,
                tags=card.tags,
                oracle_id=result.oracle_id,
                image_urls=result.image_urls,
                eur_price=result.eur_price,
                listings=tuple(listings),
            )
        )

    rows.sort(key=lambda row: row.name.casefold())
    return ComparisonReport(
        deck_name=wishlist.deck_name,
        deck_author=wishlist.author,
        listing=listing,
        rows=tuple(rows),
        resolver_miss_count=resolver_miss_count,
    )


async def compare(
    wishlist_url: str,
    listing_url: str,
    backend: OracleBackend | None = None,
) -> ComparisonReport:
    """
    Fetch both inventories, resolve every name and join them.

    Raises:
        InvalidUrlError: If either link is unusable
        SourceFetchError: If either source cannot be fetched
        PayloadFormatError: If the wishlist payload is not a deck
    """
    backend = backend if backend is not None else get_oracle_backend()

    wishlist, listing = await asyncio.gather(
        fetch_wishlist(wishlist_url),
        fetch_listing(listing_url),
    )

    names = [card.name for card in wishlist.cards] + [entry.name for entry in listing.entries]
    results = await resolve_all(backend, names)

    report = join_comparison(wishlist, listing, results, backend.miss_count)
    logger.info(
        "Compared %s against %s: %d cards, %d listed, %d unresolved",
        wishlist.deck_name,
        listing.url,
        len(report.rows),
        report.listed_count,
        report.unresolved_count,
    )
    return report


def _with_quantity(raw_line: str, quantity: int) -> str:
    if quantity <= 0:
        return raw_line
    trimmed = raw_line.lstrip()
    return f"{quantity} {_LEADING_QUANTITY.sub('', trimmed, count=1).lstrip()}"


def format_shopping_list(report: ComparisonReport) -> str:
    """
    Cheapest listing line per listed card, with the wanted quantity.

    Each line is the listing's raw line with its leading quantity replaced
    by the wishlist quantity, ready to paste into a message to the seller.
    """
    lines: list[str] = []
    for row in report.rows:
        cheapest = row.cheapest
        if cheapest is not None and cheapest.entry.raw_line:
            lines.append(_with_quantity(cheapest.entry.raw_line, row.quantity))
    return "\n".join(lines)
