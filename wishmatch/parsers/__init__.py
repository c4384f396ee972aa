from wishmatch.parsers.listing import (
    parse_listing,
    parse_listing_line,
    parse_listing_page,
    parse_listing_text,
    pick_content,
    split_listing_lines,
)
from wishmatch.parsers.moxfield import parse_deck_id, parse_wishlist
from wishmatch.parsers.scryfall import extract_image_urls, parse_eur_price, project_card

__all__ = [
    "extract_image_urls",
    "parse_deck_id",
    "parse_eur_price",
    "parse_listing",
    "parse_listing_line",
    "parse_listing_page",
    "parse_listing_text",
    "parse_wishlist",
    "pick_content",
    "project_card",
    "split_listing_lines",
]
