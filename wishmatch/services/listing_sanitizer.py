"""
Listing name sanitizer.

Re-derives a bare card name from a raw forum line (or a name that still
carries listing noise) so it can be resolved again.
"""

import re

# Bullets, dashes and digits at the start. "x"/"X" only counts as a quantity
# marker when attached to a number ("4x", "x4"), so "Xenagos" survives.
LEADING_MARKERS = re.compile(r"^[\s•\-–—+]*(?:(?:\d+[xXхХ]?|[xXхХ]\d+)[\s•\-–—+]*)*")

# "- 150", "— 1 200,50 руб"
_TRAILING_PRICE = re.compile(r"\s*[-–—]\s*\d[\d\s.,]*(?:\s*руб\.?)?\s*$", re.IGNORECASE)

_PARENTHETICAL = re.compile(r"\([^)]*\)")

_CONDITION_MARKERS = re.compile(r"\b(NM|SP|MP|HP|LP|EX|promo|foil)\b", re.IGNORECASE)

_COMMAS = re.compile(r",+")
_WHITESPACE = re.compile(r"\s{2,}")


def strip_leading_markers(text: str) -> str:
    """Drop leading bullets, dashes and quantity markers ("4x", "x4", "3")."""
    return LEADING_MARKERS.sub("", text)


def sanitize_listing_name(raw: str) -> str:
    """
    Strip listing noise from a raw line.

    Removes leading bullets and quantities, a trailing price segment,
    parenthetical content and condition/foil markers, then collapses
    commas and whitespace.

    Example:
        sanitize_listing_name("• 2x Lightning Bolt (M10) NM - 150 руб")
        == "Lightning Bolt"
    """
    name = strip_leading_markers(raw)
    name = _TRAILING_PRICE.sub("", name)
    name = _PARENTHETICAL.sub("", name)
    name = _CONDITION_MARKERS.sub("", name)
    name = _COMMAS.sub(" ", name)
    name = _WHITESPACE.sub(" ", name)
    return name.strip()
