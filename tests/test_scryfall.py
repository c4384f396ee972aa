"""Tests for Scryfall record projection and field extraction."""

import json
from pathlib import Path

import pytest

from wishmatch.models.failure import CardDatabaseError
from wishmatch.parsers.scryfall import (
    extract_image_urls,
    load_reference_records,
    parse_eur_price,
    project_card,
)


@pytest.fixture
def full_card() -> dict:
    """A (shortened) card object as it appears in the bulk file."""
    return {
        "object": "card",
        "id": "e3285e6b-3e79-4d7c-bf96-d920f973b80d",
        "oracle_id": "oracle-bolt",
        "name": "Lightning Bolt",
        "lang": "en",
        "released_at": "2010-07-16",
        "oracle_text": "Lightning Bolt deals 3 damage to any target.",
        "finishes": ["nonfoil", "foil"],
        "promo": False,
        "set": "m11",
        "set_type": "core",
        "border_color": "black",
        "frame": "2003",
        "games": ["paper", "mtgo"],
        "legalities": {"modern": "legal"},
        "image_uris": {
            "small": "https://img.example/small.jpg",
            "normal": "https://img.example/normal.jpg",
        },
        "prices": {"usd": "2.10", "eur": "1.50", "tix": "0.03"},
    }


class TestProjectCard:
    def test_keeps_indexed_fields(self, full_card: dict) -> None:
        """Fields the index uses are copied."""
        card = project_card(full_card)

        assert card["oracle_id"] == "oracle-bolt"
        assert card["name"] == "Lightning Bolt"
        assert card["set"] == "m11"
        assert card["finishes"] == ["nonfoil", "foil"]
        assert card["released_at"] == "2010-07-16"

    def test_drops_unused_fields(self, full_card: dict) -> None:
        """Rules text, legalities and ids are not persisted."""
        card = project_card(full_card)

        assert "oracle_text" not in card
        assert "legalities" not in card
        assert "id" not in card

    def test_keeps_only_eur_price(self, full_card: dict) -> None:
        card = project_card(full_card)

        assert card["prices"] == {"eur": "1.50"}

    def test_missing_prices(self, full_card: dict) -> None:
        del full_card["prices"]

        assert project_card(full_card)["prices"] == {"eur": None}

    def test_trims_card_faces(self) -> None:
        """Faces keep only names and images."""
        raw = {
            "oracle_id": "oracle-delver",
            "name": "Delver of Secrets // Insectile Aberration",
            "card_faces": [
                {
                    "name": "Delver of Secrets",
                    "oracle_text": "At the beginning of your upkeep...",
                    "image_uris": {"normal": "https://img.example/front.jpg"},
                },
                {
                    "name": "Insectile Aberration",
                    "image_uris": {"normal": "https://img.example/back.jpg"},
                },
            ],
        }

        card = project_card(raw)

        assert card["card_faces"] == [
            {"name": "Delver of Secrets", "image_uris": {"normal": "https://img.example/front.jpg"}},
            {"name": "Insectile Aberration", "image_uris": {"normal": "https://img.example/back.jpg"}},
        ]


class TestExtractImageUrls:
    def test_single_faced_card(self, make_card) -> None:
        assert extract_image_urls(make_card()) == ["https://img.example/m11/bolt.jpg"]

    def test_falls_back_to_large(self, make_card) -> None:
        card = make_card(image_uris={"large": "https://img.example/large.jpg"})

        assert extract_image_urls(card) == ["https://img.example/large.jpg"]

    def test_one_image_per_face(self, make_card) -> None:
        """Double-faced cards show front then back."""
        card = make_card(
            image_uris=None,
            card_faces=[
                {"name": "Front", "image_uris": {"normal": "https://img.example/front.jpg"}},
                {"name": "Back", "image_uris": {"normal": "https://img.example/back.jpg"}},
            ],
        )

        assert extract_image_urls(card) == [
            "https://img.example/front.jpg",
            "https://img.example/back.jpg",
        ]

    def test_faces_without_images_use_card_image(self, make_card) -> None:
        """Split layouts share one card-level image."""
        card = make_card(card_faces=[{"name": "Fire"}, {"name": "Ice"}])

        assert extract_image_urls(card) == ["https://img.example/m11/bolt.jpg"]

    def test_no_images(self, make_card) -> None:
        assert extract_image_urls(make_card(image_uris=None)) == []


class TestParseEurPrice:
    def test_parses_string_price(self, make_card) -> None:
        assert parse_eur_price(make_card(prices={"eur": "12.34"})) == pytest.approx(12.34)

    @pytest.mark.parametrize("eur", [None, "", "n/a", "inf"])
    def test_unusable_price(self, make_card, eur) -> None:
        assert parse_eur_price(make_card(prices={"eur": eur})) is None

    def test_missing_prices(self, make_card) -> None:
        assert parse_eur_price(make_card(prices=None)) is None


class TestLoadReferenceRecords:
    def test_loads_array(self, make_card, tmp_path: Path) -> None:
        path = tmp_path / "cards.json"
        path.write_text(json.dumps([make_card(), make_card(name="Shock")]), encoding="utf-8")

        records = load_reference_records(path)

        assert [r["name"] for r in records] == ["Lightning Bolt", "Shock"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CardDatabaseError, match="not found"):
            load_reference_records(tmp_path / "missing.json")

    def test_corrupted_file(self, tmp_path: Path) -> None:
        path = tmp_path / "cards.json"
        path.write_text("[{not json", encoding="utf-8")

        with pytest.raises(CardDatabaseError, match="corrupted"):
            load_reference_records(path)

    def test_not_an_array(self, tmp_path: Path) -> None:
        path = tmp_path / "cards.json"
        path.write_text('{"data": []}', encoding="utf-8")

        with pytest.raises(CardDatabaseError, match="corrupted"):
            load_reference_records(path)
