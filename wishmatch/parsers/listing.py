"""
Forum listing parser.

Extracts "name, quantity, price" entries from the free text of a trade
listing post. There is no fixed grammar, so each line is read with a few
heuristics:

- a line without digits cannot carry a price and is skipped
- a number followed by "руб" is the price; otherwise the LAST number is
- the name is the text before the price (or after it, if nothing precedes)
- a number at the very start of the line is the quantity

Example:
    "3 Lightning Bolt - 150 руб" -> Lightning Bolt, quantity 3, price 150
"""

import math
import re

from bs4 import BeautifulSoup, Tag

from wishmatch.models.listing import ListingEntry, ListingPage
from wishmatch.services.listing_sanitizer import strip_leading_markers

# Probed in order; the first one with text wins
CONTENT_SELECTORS = (
    ".cPost_contentWrap",
    ".ipsType_richText",
    ".entry-content",
    ".cPost_contentInner",
    "article",
    "body",
)

TITLE_SELECTORS = (
    "h1.ipsType_pageTitle",
    "h1",
    "title",
)

AUTHOR_SELECTORS = (
    ".cAuthorPane_author a",
    ".ipsComment_author a",
    "a[href*='/profile/']",
)

# Elements rendered on their own line
_BLOCK_TAGS = ("p", "div", "li", "tr", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote")

_NUMBER_RUN = re.compile(r"[0-9][0-9\s.,]*")
_CURRENCY_PRICE = re.compile(r"([0-9][0-9\s.,]*)\s*(?:руб|₽)", re.IGNORECASE)
_PROFILE_ID = re.compile(r"/profile/(\d+)")

# Cyrillic look-alikes used as quantity markers: "2х", "х2"
_CONFUSABLE_X = re.compile(r"(?<=\d)[хХ]|[хХ](?=\d)")
_CONFUSABLES = {"х": "x", "Х": "X"}

_TRAILING_SEPARATORS = re.compile(r"[\s\-–—:]+$")
_TRAILING_COUNT = re.compile(r"\s+(?:[xXхХ]?\d+|\d+[xXхХ])\s*$")
_BRACKETED = re.compile(r"\([^)]*\)|\[[^\]]*\]")

# Case-sensitive: "EN"/"IT" are qualifiers, "It" is a word
_CONDITION_LANGUAGE_CODES = re.compile(
    r"\b(?:NM/M|NM|SP|MP|HP|LP|EX|DMG|EN|ENG|RU|RUS|JP|JPN|JA|DE|GER|FR|ES|IT|PT|CN|KO|KR)\b"
)
_FOIL_MARKERS = re.compile(
    r"(?<!\w)(?:non-?foil|foil|etched|promo|фойл|фоил|нефойл|промо|шт\.?|руб\.?)(?!\w)",
    re.IGNORECASE,
)
_TRAILING_SET_CODE = re.compile(r"\s+[A-Z]{2,4}\d?$")
_EDGE_PUNCTUATION = " \t-–—:;,/|."
_WHITESPACE = re.compile(r"\s+")


# =============================================================================
# CONTENT EXTRACTION
# =============================================================================


def _render_text(node: Tag) -> str:
    """Text of a node with <br> and block elements as line breaks."""
    for br in node.find_all("br"):
        br.replace_with("\n")
    for block in node.find_all(_BLOCK_TAGS):
        block.append("\n")
    return node.get_text()


def pick_content(html: str) -> str:
    """
    Extract the listing prose from a page.

    Probes CONTENT_SELECTORS in order and returns the first non-empty text
    block, which leaves out navigation, ads and other page furniture.
    """
    soup = BeautifulSoup(html, "html.parser")
    for selector in CONTENT_SELECTORS:
        candidate = soup.select_one(selector)
        if candidate is None:
            continue
        text = _render_text(candidate).strip()
        if text:
            return text
    return soup.get_text().strip()


def _select_text(soup: BeautifulSoup, selectors: tuple[str, ...]) -> tuple[str, Tag | None]:
    for selector in selectors:
        node = soup.select_one(selector)
        if node is not None:
            text = _WHITESPACE.sub(" ", node.get_text()).strip()
            if text:
                return text, node
    return "", None


# =============================================================================
# LINE PARSING
# =============================================================================


def split_listing_lines(text: str) -> list[str]:
    """Split listing text into trimmed, non-empty candidate lines."""
    normalized = text.replace("\r", "").replace("\t", " ").replace("•", "\n").replace("\u00a0", " ")
    return [line.strip() for line in normalized.split("\n") if line.strip()]


def parse_price(value: str) -> float | None:
    """
    Parse a numeric run as a price.

    Comma is the decimal separator; when a comma is present, dots are
    thousands separators. Spaces are thousands separators.

    Returns:
        The price, or None if the run is not a finite number
    """
    cleaned = re.sub(r"[^\d.,]", "", value)
    if "," in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    cleaned = cleaned.strip(".")
    if not cleaned:
        return None
    try:
        price = float(cleaned)
    except ValueError:
        return None
    return price if math.isfinite(price) else None


def fold_confusables(text: str) -> str:
    """Map Cyrillic х/Х next to a digit to Latin x/X ("2х" -> "2x")."""
    return _CONFUSABLE_X.sub(lambda m: _CONFUSABLES[m.group()], text)


def clean_listing_name(raw: str) -> str:
    """
    Strip listing qualifiers from the name part of a line.

    Removes leading bullets and quantities, trailing counts, bracketed
    content, condition/language/foil abbreviations and trailing set codes.
    """
    name = strip_leading_markers(fold_confusables(raw))
    name = _TRAILING_COUNT.sub("", name)
    name = _BRACKETED.sub(" ", name)
    name = _CONDITION_LANGUAGE_CODES.sub(" ", name)
    name = _FOIL_MARKERS.sub(" ", name)
    name = _WHITESPACE.sub(" ", name).strip(_EDGE_PUNCTUATION)

    while True:
        stripped = _TRAILING_SET_CODE.sub("", name).strip(_EDGE_PUNCTUATION)
        if stripped == name:
            break
        name = stripped

    return name


def parse_listing_line(line: str) -> ListingEntry | None:
    """
    Parse one listing line.

    Returns:
        ListingEntry, or None if the line has no price or no name
    """
    runs = list(_NUMBER_RUN.finditer(line))
    if not runs:
        return None

    currency = _CURRENCY_PRICE.search(line)
    if currency is not None:
        price_text = currency.group(1)
        price_start, price_end = currency.start(1), currency.end()
    else:
        last = runs[-1]
        price_text = last.group()
        price_start, price_end = last.start(), last.end()

    price = parse_price(price_text)
    if price is None:
        return None

    before = _TRAILING_SEPARATORS.sub("", line[:price_start])
    after = line[price_end:].strip()
    name = clean_listing_name(before or after)
    if not name:
        return None

    quantity: int | None = None
    first = runs[0]
    # A line that starts with its price ("150 Lightning Bolt") has no quantity
    if first.start() == 0 and first.start() != price_start:
        first_value = parse_price(first.group())
        if first_value is not None:
            quantity = round(first_value)

    return ListingEntry(name=name, price=price, quantity=quantity, raw_line=line)


def parse_listing_text(text: str) -> list[ListingEntry]:
    """Parse listing text into entries, in line order."""
    entries: list[ListingEntry] = []
    for line in split_listing_lines(text):
        entry = parse_listing_line(line)
        if entry is not None:
            entries.append(entry)
    return entries


def parse_listing(html: str) -> list[ListingEntry]:
    """Parse a listing page's markup into entries."""
    return parse_listing_text(pick_content(html))


def parse_listing_page(html: str, url: str) -> ListingPage:
    """
    Parse a listing page into entries plus topic metadata.

    Args:
        html: Raw page markup
        url: Page URL (kept on the result)

    Returns:
        ListingPage with title, author display name and profile id
    """
    soup = BeautifulSoup(html, "html.parser")
    title, _ = _select_text(soup, TITLE_SELECTORS)
    author, author_node = _select_text(soup, AUTHOR_SELECTORS)

    author_id = ""
    if author_node is not None:
        match = _PROFILE_ID.search(str(author_node.get("href") or ""))
        if match:
            author_id = match.group(1)

    return ListingPage(
        url=url,
        title=title,
        author=author,
        author_id=author_id,
        entries=tuple(parse_listing(html)),
    )
