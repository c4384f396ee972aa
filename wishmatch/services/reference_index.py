"""
Reference index over Scryfall printings.

Maps normalized card names to oracle ids, and every oracle id to one
IdentityProjection built from its representative printing.

INVARIANTS:
1. Records without an oracle_id are ignored
2. Printing order is decided by printing_sort_key() ALONE
3. The chosen image and price do not depend on record order
4. The index is immutable once built

Known limitation: when two identities share a normalized name, the record
seen last in the dataset wins the name.
"""

import json
import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from wishmatch.models.oracle import IdentityProjection, ResolutionResult
from wishmatch.parsers.scryfall import ScryfallCard, extract_image_urls, parse_eur_price
from wishmatch.services.card_names import normalize

logger = logging.getLogger(__name__)

# =============================================================================
# PRINTING PREFERENCE
# =============================================================================

SPECIAL_FRAME_EFFECTS: frozenset[str] = frozenset(
    {"extendedart", "showcase", "borderless", "etched", "inverted", "retro"}
)

# Secret Lair drops
SECRET_LAIR_SET = "sld"

LOW_VALUE_SET_TYPES: frozenset[str] = frozenset({"promo", "token"})

DIGITAL_GAMES: frozenset[str] = frozenset({"arena", "mtgo"})

FRAME_WEIGHTS: dict[str, int] = {
    "1993": 1,
    "1997": 2,
    "2003": 3,
    "2015": 4,
    "future": 5,
}


def set_bonus(card: ScryfallCard) -> int:
    """0 for Secret Lair, promo and token sets; 1 otherwise."""
    if card.get("set") == SECRET_LAIR_SET:
        return 0
    if card.get("set_type") in LOW_VALUE_SET_TYPES:
        return 0
    return 1


def printing_score(card: ScryfallCard) -> int:
    """Weighted desirability of a printing as a display/price source."""
    score = 0
    if "nonfoil" in (card.get("finishes") or []):
        score += 3
    if SPECIAL_FRAME_EFFECTS.intersection(card.get("frame_effects") or []):
        score -= 2
    if card.get("full_art"):
        score -= 2
    if card.get("promo") or card.get("set_type") == "promo":
        score -= 3
    if card.get("set") == SECRET_LAIR_SET:
        score -= 5
    if card.get("border_color") == "white":
        score -= 4

    games = card.get("games") or []
    if "paper" in games:
        score += 4
    if games and all(game in DIGITAL_GAMES for game in games):
        score -= 6

    score += set_bonus(card) * 2
    return score


def release_ordinal(card: ScryfallCard) -> int:
    """Release date as a day ordinal; 0 when missing or unparseable."""
    released = card.get("released_at")
    if not released:
        return 0
    try:
        return date.fromisoformat(released[:10]).toordinal()
    except ValueError:
        return 0


def frame_weight(card: ScryfallCard) -> int:
    return FRAME_WEIGHTS.get(card.get("frame") or "", 0)


def printing_preference(card: ScryfallCard) -> tuple[int, int, int, int]:
    """
    Preference tuple for a printing, compared lexicographically.

    Higher is better. Keys, in order of dominance:
        1. printing_score
        2. set_bonus
        3. release date (most recent first)
        4. frame era (later frames first)
    """
    return (
        printing_score(card),
        set_bonus(card),
        release_ordinal(card),
        frame_weight(card),
    )


def printing_sort_key(card: ScryfallCard) -> tuple[int, int, int, int, str, str, str]:
    """Ascending sort key: most preferred printing first, ties broken by content."""
    score, bonus, released, frame = printing_preference(card)
    return (
        -score,
        -bonus,
        -released,
        -frame,
        card.get("set") or "",
        json.dumps(extract_image_urls(card)),
        str((card.get("prices") or {}).get("eur") or ""),
    )


def rank_printings(cards: Iterable[ScryfallCard]) -> list[ScryfallCard]:
    """Printings of one identity, most preferred first."""
    return sorted(cards, key=printing_sort_key)


# =============================================================================
# INDEX
# =============================================================================


def _display_names(card: ScryfallCard) -> set[str]:
    candidates = [card.get("name"), card.get("printed_name")]
    for face in card.get("card_faces") or []:
        candidates.extend((face.get("name"), face.get("printed_name")))
    return {name for name in candidates if name}


def project_identity(oracle_id: str, printings: Iterable[ScryfallCard]) -> IdentityProjection:
    """
    Build the projection for one identity from all of its printings.

    The image comes from the most preferred printing that has one; the
    price from the most preferred printing with a usable EUR price.
    """
    ranked = rank_printings(printings)

    images: list[str] = []
    for card in ranked:
        images = extract_image_urls(card)
        if images:
            break

    price: float | None = None
    for card in ranked:
        price = parse_eur_price(card)
        if price is not None:
            break

    return IdentityProjection(oracle_id=oracle_id, image_urls=tuple(images), eur_price=price)


@dataclass(frozen=True)
class ReferenceIndex:
    """Normalized name -> oracle id, and oracle id -> projection."""

    names: dict[str, str] = field(default_factory=dict)
    projections: dict[str, IdentityProjection] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.projections)

    def oracle_id_for(self, name: str) -> str | None:
        """Oracle id for a raw name, None if unknown."""
        key = normalize(name)
        if not key:
            return None
        return self.names.get(key)

    def lookup(self, name: str) -> ResolutionResult:
        """Resolve a raw name against the index."""
        oracle_id = self.oracle_id_for(name)
        if oracle_id is None:
            return ResolutionResult.unresolved()
        projection = self.projections.get(oracle_id)
        if projection is None:
            return ResolutionResult(oracle_id=oracle_id)
        return ResolutionResult.from_projection(projection)


def build_reference_index(records: Iterable[ScryfallCard]) -> ReferenceIndex:
    """
    Build the reference index from bulk records.

    Args:
        records: Projected Scryfall records, in dataset order

    Returns:
        ReferenceIndex with one projection per oracle id
    """
    names: dict[str, str] = {}
    buckets: dict[str, list[ScryfallCard]] = defaultdict(list)
    skipped = 0

    for card in records:
        oracle_id = card.get("oracle_id")
        if not oracle_id:
            skipped += 1
            continue

        buckets[oracle_id].append(card)
        for name in _display_names(card):
            key = normalize(name)
            if key:
                names[key] = oracle_id

    projections = {
        oracle_id: project_identity(oracle_id, printings)
        for oracle_id, printings in buckets.items()
    }

    logger.info(
        "Built reference index: %d identities, %d names, %d records without oracle_id",
        len(projections),
        len(names),
        skipped,
    )
    return ReferenceIndex(names=names, projections=projections)
