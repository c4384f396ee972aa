"""
Oracle resolution models.

INVARIANTS:
- IdentityProjection is built once per oracle id when the reference index
  is constructed and never changes afterwards
- A ResolutionResult without an oracle_id is a valid miss, not an error
- All models are frozen (immutable after construction)
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class IdentityProjection:
    """
    Per-identity view derived from the representative printing.

    Attributes:
        oracle_id: Scryfall oracle ID (stable across printings)
        image_urls: One image URL per visual face, in face order
        eur_price: Reference price in EUR, if any printing has one
    """

    oracle_id: str
    image_urls: tuple[str, ...] = ()
    eur_price: float | None = None


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """
    Result of resolving one card name.

    Attributes:
        oracle_id: Resolved identity, None on a miss
        image_urls: Image URLs for the identity, empty on a miss
        eur_price: Reference price, None when unknown
    """

    oracle_id: str | None = None
    image_urls: tuple[str, ...] = ()
    eur_price: float | None = None

    @property
    def resolved(self) -> bool:
        """True if the name resolved to an identity."""
        return self.oracle_id is not None

    @classmethod
    def unresolved(cls) -> "ResolutionResult":
        """A result carrying no identity."""
        return cls()

    @classmethod
    def from_projection(cls, projection: IdentityProjection) -> "ResolutionResult":
        return cls(
            oracle_id=projection.oracle_id,
            image_urls=projection.image_urls,
            eur_price=projection.eur_price,
        )
