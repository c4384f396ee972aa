from wishmatch.models.failure import (
    CardDatabaseError,
    FailureDetail,
    FailureKind,
    InvalidUrlError,
    KnownError,
    PayloadFormatError,
    ResolverResponseError,
    SourceFetchError,
)
from wishmatch.models.listing import ListingEntry, ListingPage, Wishlist, WishlistCard
from wishmatch.models.oracle import IdentityProjection, ResolutionResult

__all__ = [
    "CardDatabaseError",
    "FailureDetail",
    "FailureKind",
    "IdentityProjection",
    "InvalidUrlError",
    "KnownError",
    "ListingEntry",
    "ListingPage",
    "PayloadFormatError",
    "ResolutionResult",
    "ResolverResponseError",
    "SourceFetchError",
    "Wishlist",
    "WishlistCard",
]
