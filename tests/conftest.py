from collections.abc import Callable
from typing import Any

import pytest

from wishmatch.parsers.scryfall import ScryfallCard
from wishmatch.scrapers.topdeck import listing_cache
from wishmatch.services.oracle_resolver import set_oracle_backend


@pytest.fixture(autouse=True)
def reset_process_state():
    """Drop the process-wide resolver backend and listing cache between tests.

    Both live at module level, so a backend installed or a page cached by
    one test would otherwise leak into the next.
    """
    set_oracle_backend(None)
    listing_cache.clear()
    yield
    set_oracle_backend(None)
    listing_cache.clear()


@pytest.fixture
def make_card() -> Callable[..., ScryfallCard]:
    """Factory for projected Scryfall records with sensible paper defaults."""

    def _make(**overrides: Any) -> ScryfallCard:
        card: dict[str, Any] = {
            "oracle_id": "oracle-bolt",
            "name": "Lightning Bolt",
            "released_at": "2010-07-16",
            "finishes": ["nonfoil", "foil"],
            "set": "m11",
            "set_type": "core",
            "border_color": "black",
            "frame": "2003",
            "games": ["paper", "mtgo"],
            "prices": {"eur": "1.50"},
            "image_uris": {"normal": "https://img.example/m11/bolt.jpg"},
        }
        card.update(overrides)
        return card  # type: ignore[return-value]

    return _make


@pytest.fixture
def sample_listing_html() -> str:
    """A forum topic in the markup the listing parser targets."""
    return """
<html>
  <head><title>Продаю карты | Topdeck</title></head>
  <body>
    <nav>Forum 2024 navigation 15</nav>
    <h1 class="ipsType_pageTitle">Продаю карты</h1>
    <div class="cAuthorPane_author">
      <a href="https://topdeck.ru/profile/4242-seller/">Seller Name</a>
    </div>
    <div class="cPost_contentWrap">
      <p>Всем привет!</p>
      <p>3 Lightning Bolt - 150 руб</p>
      <p>Counterspell (LEA) NM - 1 200 руб</p>
      <p>2x Tarmogoyf — 4500</p>
      <p>Looking for trades</p>
    </div>
  </body>
</html>
"""
