"""
Scryfall bulk data records.

Shapes of the records in Scryfall's default-cards bulk file, and the
projection that trims each record down to the fields the reference index
needs before it is persisted.

Bulk data: https://scryfall.com/docs/api/bulk-data
"""

import json
import math
from pathlib import Path
from typing import Any, TypedDict, cast

from wishmatch.models.failure import CardDatabaseError


class CardFace(TypedDict, total=False):
    """One face of a multi-faced card."""

    name: str
    printed_name: str
    image_uris: dict[str, str]


class CardPrices(TypedDict, total=False):
    eur: str | None


class ScryfallCard(TypedDict, total=False):
    """Minimal card data we keep from Scryfall (one printing)."""

    oracle_id: str
    name: str
    printed_name: str
    lang: str
    released_at: str
    finishes: list[str]
    promo: bool
    frame_effects: list[str]
    full_art: bool
    set: str
    set_type: str
    border_color: str
    frame: str
    games: list[str]
    prices: CardPrices
    image_uris: dict[str, str]
    card_faces: list[CardFace]


class BulkMetadata(TypedDict):
    """Scryfall bulk-data object for one bulk file."""

    type: str
    updated_at: str
    download_uri: str


# Top-level fields copied verbatim when present
_PROJECTED_FIELDS = (
    "oracle_id",
    "name",
    "printed_name",
    "lang",
    "released_at",
    "finishes",
    "promo",
    "frame_effects",
    "full_art",
    "set",
    "set_type",
    "border_color",
    "frame",
    "games",
    "image_uris",
)

_PROJECTED_FACE_FIELDS = ("name", "printed_name", "image_uris")


def project_card(raw: dict[str, Any]) -> ScryfallCard:
    """
    Trim a full Scryfall card object to the fields the index uses.

    Args:
        raw: One card object from the bulk file

    Returns:
        ScryfallCard with only the projected fields (and EUR price)
    """
    card: dict[str, Any] = {key: raw[key] for key in _PROJECTED_FIELDS if raw.get(key) is not None}

    prices = raw.get("prices") or {}
    card["prices"] = {"eur": prices.get("eur")}

    faces = raw.get("card_faces")
    if faces:
        card["card_faces"] = [
            {key: face[key] for key in _PROJECTED_FACE_FIELDS if face.get(key) is not None}
            for face in faces
        ]

    return cast(ScryfallCard, card)


def _face_image(image_uris: dict[str, str] | None) -> str | None:
    if not image_uris:
        return None
    return image_uris.get("normal") or image_uris.get("large") or None


def extract_image_urls(card: ScryfallCard) -> list[str]:
    """
    Extract display images for a printing.

    Multi-faced cards yield one URL per face ("normal", falling back to
    "large"). Some multi-face layouts (e.g. Rooms, split cards) have no
    per-face images and share one card-level image instead.

    Returns:
        Image URLs in face order; empty if the printing has no images
    """
    faces = card.get("card_faces") or []
    if faces:
        images = [url for face in faces if (url := _face_image(face.get("image_uris")))]
        if images:
            return images

    shared = _face_image(card.get("image_uris"))
    return [shared] if shared else []


def parse_eur_price(card: ScryfallCard) -> float | None:
    """Parse the EUR price of a printing, None if absent or not numeric."""
    raw = (card.get("prices") or {}).get("eur")
    if raw is None or raw == "":
        return None
    try:
        price = float(raw)
    except (TypeError, ValueError):
        return None
    return price if math.isfinite(price) else None


def load_reference_records(path: Path) -> list[ScryfallCard]:
    """
    Load the trimmed bulk dataset.

    Args:
        path: Path to the persisted JSON array of projected records

    Returns:
        List of ScryfallCard records in file order

    Raises:
        CardDatabaseError: If the file is missing, corrupted, or not an array
    """
    if not path.exists():
        raise CardDatabaseError(f"Card database not found at {path}.")

    try:
        with open(path, encoding="utf-8") as f:
            cards = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CardDatabaseError(
            f"Card database at {path} is corrupted.",
            detail=str(e),
        ) from e

    if not isinstance(cards, list):
        raise CardDatabaseError(
            f"Card database at {path} is corrupted.",
            detail=f"Expected a JSON array, got {type(cards).__name__}",
        )

    return [card for card in cards if isinstance(card, dict)]
