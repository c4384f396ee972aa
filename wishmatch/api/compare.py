"""
Comparison endpoints.

GET /compare joins a Moxfield wishlist with a Topdeck listing. GET /listing
shows how a single listing was parsed and resolved, for debugging the
line heuristics.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from wishmatch.models.comparison import ComparisonReport, ComparisonRow, MatchedListing
from wishmatch.models.failure import KnownError
from wishmatch.scrapers.topdeck import fetch_listing
from wishmatch.services.comparison import (
    compare,
    format_shopping_list,
    match_listings,
    resolve_all,
)
from wishmatch.services.oracle_resolver import OracleBackend, get_oracle_backend

logger = logging.getLogger(__name__)

router = APIRouter(tags=["compare"])


class ListingEntryResponse(BaseModel):
    """One parsed listing line."""

    name: str
    price: float
    quantity: int | None = None
    raw_line: str
    oracle_id: str | None = None

    @classmethod
    def from_match(cls, match: MatchedListing) -> "ListingEntryResponse":
        return cls(
            name=match.entry.name,
            price=match.entry.price,
            quantity=match.entry.quantity,
            raw_line=match.entry.raw_line,
            oracle_id=match.oracle_id,
        )


class ComparisonRowResponse(BaseModel):
    """One wishlist card with its listing matches."""

    name: str
    quantity: int
    tags: list[str] = Field(default_factory=list)
    oracle_id: str | None = None
    image_urls: list[str] = Field(default_factory=list)
    eur_price: float | None = None
    listings: list[ListingEntryResponse] = Field(default_factory=list)

    @classmethod
    def from_row(cls, row: ComparisonRow) -> "ComparisonRowResponse":
        return cls(
            name=row.name,
            quantity=row.quantity,
            tags=list(row.tags),
            oracle_id=row.oracle_id,
            image_urls=list(row.image_urls),
            eur_price=row.eur_price,
            listings=[ListingEntryResponse.from_match(match) for match in row.listings],
        )


class ComparisonResponse(BaseModel):
    """Response model for a wishlist/listing comparison."""

    deck_name: str
    deck_author: str | None = None
    listing_url: str
    listing_title: str
    listing_author: str
    message_author_url: str | None = None
    total_cards: int
    listed_count: int
    unresolved_count: int
    resolver_miss_count: int
    cheapest_total: float
    shopping_list: str
    rows: list[ComparisonRowResponse]

    @classmethod
    def from_report(cls, report: ComparisonReport) -> "ComparisonResponse":
        return cls(
            deck_name=report.deck_name,
            deck_author=report.deck_author,
            listing_url=report.listing.url,
            listing_title=report.listing.title,
            listing_author=report.listing.author,
            message_author_url=report.message_author_url,
            total_cards=len(report.rows),
            listed_count=report.listed_count,
            unresolved_count=report.unresolved_count,
            resolver_miss_count=report.resolver_miss_count,
            cheapest_total=report.cheapest_total,
            shopping_list=format_shopping_list(report),
            rows=[ComparisonRowResponse.from_row(row) for row in report.rows],
        )


class ListingResponse(BaseModel):
    """Response model for a parsed listing."""

    url: str
    title: str
    author: str
    author_id: str
    count: int
    entries: list[ListingEntryResponse]


@router.get("/compare", response_model=ComparisonResponse)
async def compare_wishlist(
    backend: Annotated[OracleBackend, Depends(get_oracle_backend)],
    wishlist_url: Annotated[str, Query(alias="wishlistUrl")] = "",
    listing_url: Annotated[str, Query(alias="listingUrl")] = "",
) -> ComparisonResponse:
    """
    Compare a Moxfield wishlist against a Topdeck listing.

    Returns 400 for unusable links and 502 when either source cannot be
    fetched. Names the resolver cannot identify are reported as counts.
    """
    try:
        report = await compare(wishlist_url, listing_url, backend)
    except KnownError as e:
        logger.warning("Comparison failed: %s", e.message)
        raise e.to_http_exception() from e

    return ComparisonResponse.from_report(report)


@router.get("/listing", response_model=ListingResponse)
async def parse_listing_url(
    backend: Annotated[OracleBackend, Depends(get_oracle_backend)],
    url: str = "",
) -> ListingResponse:
    """Fetch one listing and return its parsed lines with resolved identities."""
    try:
        page = await fetch_listing(url)
        results = await resolve_all(backend, [entry.name for entry in page.entries])
    except KnownError as e:
        logger.warning("Listing lookup failed: %s", e.message)
        raise e.to_http_exception() from e

    entries = [
        ListingEntryResponse.from_match(match) for match in match_listings(page.entries, results)
    ]

    return ListingResponse(
        url=page.url,
        title=page.title,
        author=page.author,
        author_id=page.author_id,
        count=len(entries),
        entries=entries,
    )
