"""
wishmatch services.

Card identity resolution and the wishlist/listing comparison.
"""

from wishmatch.services.card_names import normalize, normalize_for_matching
from wishmatch.services.listing_sanitizer import sanitize_listing_name
from wishmatch.services.oracle_resolver import (
    LocalIndexBackend,
    OracleBackend,
    RemoteResolverBackend,
    get_oracle_backend,
    resolve_name,
    resolve_names,
    set_oracle_backend,
)
from wishmatch.services.reference_index import (
    ReferenceIndex,
    build_reference_index,
    printing_sort_key,
)

__all__ = [
    # Names
    "normalize",
    "normalize_for_matching",
    "sanitize_listing_name",
    # Reference index
    "ReferenceIndex",
    "build_reference_index",
    "printing_sort_key",
    # Resolution
    "LocalIndexBackend",
    "OracleBackend",
    "RemoteResolverBackend",
    "get_oracle_backend",
    "resolve_name",
    "resolve_names",
    "set_oracle_backend",
]
