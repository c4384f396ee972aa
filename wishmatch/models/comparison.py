"""
Comparison models.

A comparison joins a wishlist with a forum listing by card identity.
"""

from dataclasses import dataclass

from wishmatch.models.listing import ListingEntry, ListingPage

TOPDECK_MESSENGER_URL = "https://topdeck.ru/messenger/compose/?to={author_id}"


@dataclass(frozen=True, slots=True)
class MatchedListing:
    """A listing entry with the identity its name resolved to."""

    entry: ListingEntry
    oracle_id: str | None = None


@dataclass(frozen=True, slots=True)
class ComparisonRow:
    """
    One wishlist card and the listing entries offering it.

    Attributes:
        name: Wishlist spelling of the card
        quantity: Wanted quantity
        tags: Wishlist tags
        oracle_id: Resolved identity, None if unresolved
        image_urls: Representative images, front face first
        eur_price: Reference price from the card dataset
        listings: Matching listing entries, in listing order
    """

    name: str
    quantity: int
    tags: tuple[str, ...] = ()
    oracle_id: str | None = None
    image_urls: tuple[str, ...] = ()
    eur_price: float | None = None
    listings: tuple[MatchedListing, ...] = ()

    @property
    def cheapest(self) -> MatchedListing | None:
        """Lowest-priced matching entry (first listed wins ties)."""
        if not self.listings:
            return None
        return min(self.listings, key=lambda match: match.entry.price)


@dataclass(frozen=True, slots=True)
class ComparisonReport:
    """Result of comparing a wishlist against a listing."""

    deck_name: str
    deck_author: str | None
    listing: ListingPage
    rows: tuple[ComparisonRow, ...] = ()
    resolver_miss_count: int = 0

    @property
    def listed_count(self) -> int:
        return sum(1 for row in self.rows if row.listings)

    @property
    def unresolved_count(self) -> int:
        return sum(1 for row in self.rows if row.oracle_id is None)

    @property
    def cheapest_total(self) -> float:
        """Cost of buying every wanted copy at its cheapest listed price."""
        total = 0.0
        for row in self.rows:
            cheapest = row.cheapest
            if cheapest is not None:
                total += cheapest.entry.price * row.quantity
        return total

    @property
    def message_author_url(self) -> str | None:
        if not self.listing.author_id:
            return None
        return TOPDECK_MESSENGER_URL.format(author_id=self.listing.author_id)
