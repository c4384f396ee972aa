"""Tests for the forum listing parser."""

import pytest

from wishmatch.models.listing import ListingEntry
from wishmatch.parsers.listing import (
    clean_listing_name,
    parse_listing,
    parse_listing_line,
    parse_listing_page,
    parse_listing_text,
    parse_price,
    pick_content,
    split_listing_lines,
)


class TestParsePrice:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("150", 150.0),
            ("150 ", 150.0),
            ("1 200", 1200.0),
            ("12,50", 12.5),
            ("1.234,56", 1234.56),
            ("12.5", 12.5),
        ],
    )
    def test_parses_numbers(self, value: str, expected: float) -> None:
        assert parse_price(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["", "руб", "..", ","])
    def test_rejects_non_numbers(self, value: str) -> None:
        assert parse_price(value) is None


class TestSplitListingLines:
    def test_splits_and_trims(self) -> None:
        text = "  first line \r\n\n\tsecond line  \n"

        assert split_listing_lines(text) == ["first line", "second line"]

    def test_bullets_start_new_lines(self) -> None:
        assert split_listing_lines("Bolt 100 • Shock 50") == ["Bolt 100", "Shock 50"]


class TestCleanListingName:
    def test_strips_quantity_and_condition(self) -> None:
        assert clean_listing_name("2x Counterspell (LEA) NM") == "Counterspell"

    def test_strips_trailing_count(self) -> None:
        assert clean_listing_name("Sol Ring x2") == "Sol Ring"

    def test_strips_trailing_set_codes(self) -> None:
        assert clean_listing_name("Tarmogoyf MH1 EN") == "Tarmogoyf"

    def test_strips_foil_markers(self) -> None:
        assert clean_listing_name("Lightning Bolt фойл") == "Lightning Bolt"
        assert clean_listing_name("Lightning Bolt Foil") == "Lightning Bolt"

    def test_condition_codes_are_case_sensitive(self) -> None:
        """Title-case words that spell a code are part of the name."""
        assert clean_listing_name("Smash It") == "Smash It"

    def test_folds_cyrillic_quantity_marker(self) -> None:
        assert clean_listing_name("3х Lightning Bolt") == "Lightning Bolt"


class TestParseListingLine:
    def test_quantity_name_currency_price(self) -> None:
        """The canonical forum line."""
        line = "3 Lightning Bolt - 150 руб"

        assert parse_listing_line(line) == ListingEntry(
            name="Lightning Bolt", price=150.0, quantity=3, raw_line=line
        )

    def test_line_without_digits(self) -> None:
        assert parse_listing_line("Looking for trades") is None

    def test_last_number_is_price_without_currency(self) -> None:
        entry = parse_listing_line("2x Tarmogoyf — 4500")

        assert entry is not None
        assert entry.name == "Tarmogoyf"
        assert entry.price == 4500.0
        assert entry.quantity == 2

    def test_currency_number_beats_last_number(self) -> None:
        entry = parse_listing_line("Lightning Bolt 300 руб (M11) x2")

        assert entry is not None
        assert entry.price == 300.0
        assert entry.name == "Lightning Bolt"

    def test_ruble_sign(self) -> None:
        entry = parse_listing_line("Shock - 45₽")

        assert entry is not None
        assert entry.price == 45.0
        assert entry.name == "Shock"

    def test_price_with_thousands_space(self) -> None:
        entry = parse_listing_line("Counterspell (LEA) NM - 1 200 руб")

        assert entry is not None
        assert entry.price == 1200.0
        assert entry.name == "Counterspell"
        assert entry.quantity is None

    def test_decimal_comma(self) -> None:
        entry = parse_listing_line("Shock - 12,50")

        assert entry is not None
        assert entry.price == pytest.approx(12.5)

    def test_name_after_price(self) -> None:
        """With nothing before the price, the name follows it."""
        entry = parse_listing_line("150 руб Lightning Bolt")

        assert entry is not None
        assert entry.name == "Lightning Bolt"
        assert entry.price == 150.0

    def test_price_run_is_not_also_quantity(self) -> None:
        entry = parse_listing_line("150 руб Lightning Bolt")

        assert entry is not None
        assert entry.quantity is None

    def test_no_quantity_when_line_starts_with_name(self) -> None:
        entry = parse_listing_line("Lightning Bolt 150")

        assert entry is not None
        assert entry.quantity is None

    def test_line_with_only_numbers(self) -> None:
        assert parse_listing_line("2024") is None
        assert parse_listing_line("3 - 150") is None

    def test_keeps_raw_line(self) -> None:
        line = "• 4 Shock - 40"

        entry = parse_listing_line(line)

        assert entry is not None
        assert entry.raw_line == line
        assert entry.name == "Shock"


class TestParseListingText:
    def test_keeps_source_order_and_skips_prose(self) -> None:
        text = "Продаю:\nShock - 40\nLooking for trades\nLightning Bolt - 150\nShock - 35"

        entries = parse_listing_text(text)

        assert [(e.name, e.price) for e in entries] == [
            ("Shock", 40.0),
            ("Lightning Bolt", 150.0),
            ("Shock", 35.0),
        ]


class TestPickContent:
    def test_prefers_post_content(self, sample_listing_html: str) -> None:
        """Navigation outside the post body is ignored."""
        text = pick_content(sample_listing_html)

        assert "Lightning Bolt" in text
        assert "navigation" not in text

    def test_falls_through_empty_selectors(self) -> None:
        html = (
            '<html><body><div class="cPost_contentWrap">  </div>'
            '<article><p>Shock - 40</p></article></body></html>'
        )

        assert pick_content(html) == "Shock - 40"

    def test_renders_line_breaks(self) -> None:
        html = '<div class="ipsType_richText">Shock - 40<br>Bolt - 150</div>'

        assert split_listing_lines(pick_content(html)) == ["Shock - 40", "Bolt - 150"]


class TestParseListingPage:
    def test_parses_entries(self, sample_listing_html: str) -> None:
        entries = parse_listing(sample_listing_html)

        assert [(e.name, e.price, e.quantity) for e in entries] == [
            ("Lightning Bolt", 150.0, 3),
            ("Counterspell", 1200.0, None),
            ("Tarmogoyf", 4500.0, 2),
        ]

    def test_extracts_topic_metadata(self, sample_listing_html: str) -> None:
        page = parse_listing_page(sample_listing_html, "https://topdeck.ru/apps/toptrade/topic/1")

        assert page.url == "https://topdeck.ru/apps/toptrade/topic/1"
        assert page.title == "Продаю карты"
        assert page.author == "Seller Name"
        assert page.author_id == "4242"
        assert len(page.entries) == 3

    def test_missing_metadata(self) -> None:
        page = parse_listing_page("<html><body><p>Shock - 40</p></body></html>", "u")

        assert page.title == ""
        assert page.author == ""
        assert page.author_id == ""
        assert [e.name for e in page.entries] == ["Shock"]
