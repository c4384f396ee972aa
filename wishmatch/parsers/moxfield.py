"""
Moxfield deck parser.

Turns a Moxfield deck payload into a Wishlist. Moxfield is reached through
a reader proxy that wraps the JSON in a markdown envelope, so the payload
is first cut out of the envelope.

Board layout:
    {"name": ..., "boards": {"mainboard": {"cards": {<id>: {"quantity": 1,
    "card": {"name": ...}}}}}, "createdByUser": {"userName": ...}}
"""

import json
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from wishmatch.models.failure import PayloadFormatError
from wishmatch.models.listing import Wishlist, WishlistCard

PROXY_CONTENT_MARKER = "Markdown Content:"

# Boards that never hold wanted cards
SKIPPED_BOARDS = frozenset({"tokens"})


class MoxfieldCardRef(BaseModel):
    name: str | None = None


class MoxfieldBoardEntry(BaseModel):
    quantity: int | None = None
    card: MoxfieldCardRef | None = None
    name: str | None = None
    tags: list[str] | None = None


class MoxfieldBoard(BaseModel):
    cards: dict[str, MoxfieldBoardEntry] = Field(default_factory=dict)


class MoxfieldUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_name: str | None = Field(default=None, alias="userName")
    display_name: str | None = Field(default=None, alias="displayName")


class MoxfieldDeck(BaseModel):
    """The subset of a Moxfield deck this service reads."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    boards: dict[str, MoxfieldBoard | None] = Field(default_factory=dict)
    tags: dict[str, list[str]] = Field(default_factory=dict)
    tagged_cards: dict[str, list[str]] = Field(default_factory=dict, alias="taggedCards")
    author_tags: dict[str, list[str]] = Field(default_factory=dict, alias="authorTags")
    created_by_user: MoxfieldUser | None = Field(default=None, alias="createdByUser")
    created_by: str | None = Field(default=None, alias="createdBy")
    user: MoxfieldUser | None = None
    user_name: str | None = Field(default=None, alias="userName")

    @field_validator("tags", "tagged_cards", "author_tags", mode="before")
    @classmethod
    def _tag_maps_only(cls, value: Any) -> Any:
        # Only name -> tags maps are read, other shapes are ignored
        return value if isinstance(value, dict) else {}

    def author(self) -> str | None:
        """Best available author name."""
        candidates = [
            self.created_by_user.display_name if self.created_by_user else None,
            self.created_by_user.user_name if self.created_by_user else None,
            self.created_by,
            self.user.user_name if self.user else None,
            self.user_name,
        ]
        return next((candidate for candidate in candidates if candidate), None)


def parse_deck_id(url: str) -> str | None:
    """
    Extract the deck id from a Moxfield deck URL.

    Example:
        parse_deck_id("https://moxfield.com/decks/abc123") == "abc123"
    """
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    parts = [part for part in parsed.path.split("/") if part]
    if len(parts) < 2 or parts[0] != "decks":
        return None
    return parts[1]


def extract_proxied_json(body: str) -> str:
    """Cut the JSON document out of the reader proxy's markdown envelope."""
    index = body.find(PROXY_CONTENT_MARKER)
    if index == -1:
        return body.strip()
    return body[index + len(PROXY_CONTENT_MARKER) :].strip()


def load_deck_payload(body: str) -> Any:
    """
    Decode a proxied deck response.

    Raises:
        PayloadFormatError: If the body does not contain JSON
    """
    try:
        return json.loads(extract_proxied_json(body))
    except json.JSONDecodeError as e:
        raise PayloadFormatError("Unexpected Moxfield response format", detail=str(e)) from e


def _entry_tags(deck: MoxfieldDeck, entry: MoxfieldBoardEntry, name: str) -> list[str]:
    # First non-empty source wins
    for tags in (
        entry.tags,
        deck.tags.get(name),
        deck.tagged_cards.get(name),
        deck.author_tags.get(name),
    ):
        if tags:
            return tags
    return []


def parse_wishlist(payload: Any, deck_id: str) -> Wishlist:
    """
    Build a Wishlist from a decoded deck payload.

    Cards appearing on several boards (or under different ids) are merged
    by case-insensitive name: quantities are summed and tags unioned. The
    first spelling seen is kept.

    Raises:
        PayloadFormatError: If the payload is not a deck
    """
    try:
        deck = MoxfieldDeck.model_validate(payload)
    except ValidationError as e:
        raise PayloadFormatError("Unexpected Moxfield response format", detail=str(e)) from e

    merged: dict[str, tuple[str, int, list[str]]] = {}
    for board_name, board in deck.boards.items():
        if board is None or board_name in SKIPPED_BOARDS:
            continue

        for entry in board.cards.values():
            name = (entry.card.name if entry.card else None) or entry.name
            if not name:
                continue
            quantity = entry.quantity if entry.quantity is not None else 1
            tags = _entry_tags(deck, entry, name)

            key = name.lower()
            if key in merged:
                first_name, total, seen_tags = merged[key]
                merged[key] = (
                    first_name,
                    total + quantity,
                    list(dict.fromkeys([*seen_tags, *tags])),
                )
            else:
                merged[key] = (name, quantity, list(dict.fromkeys(tags)))

    cards = tuple(
        WishlistCard(name=name, quantity=quantity, tags=tuple(tags))
        for name, quantity, tags in merged.values()
    )
    return Wishlist(deck_name=deck.name or deck_id, author=deck.author(), cards=cards)
