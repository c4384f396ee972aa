"""
Listing and wishlist models.

Both inventories are UNTRUSTED text from third-party sites. These models
hold what was extracted, before any identity resolution.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ListingEntry:
    """
    One priced line from a forum listing.

    Attributes:
        name: Card name with quantity, price and qualifiers stripped
        price: Asking price in the listing's currency
        quantity: Leading quantity, None when the line did not start with one
        raw_line: The source line, kept for display and debugging
    """

    name: str
    price: float
    quantity: int | None
    raw_line: str


@dataclass(frozen=True, slots=True)
class ListingPage:
    """A parsed listing page with its topic metadata."""

    url: str
    title: str
    author: str
    author_id: str
    entries: tuple[ListingEntry, ...] = ()


@dataclass(frozen=True, slots=True)
class WishlistCard:
    """
    One card from a wishlist export.

    Quantity is the SUM across boards; tags are merged.
    """

    name: str
    quantity: int
    tags: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Wishlist:
    """A fetched wishlist."""

    deck_name: str
    author: str | None
    cards: tuple[WishlistCard, ...] = ()
