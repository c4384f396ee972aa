"""Tests for card name normalization."""

import pytest

from wishmatch.services.card_names import normalize, normalize_for_matching


class TestNormalize:
    def test_lowercases_and_collapses_whitespace(self) -> None:
        """Keys are lowercase with single spaces."""
        assert normalize("  Lightning   Bolt ") == "lightning bolt"

    def test_strips_trailing_qualifiers(self) -> None:
        """Set code, language and finish qualifiers are dropped."""
        assert normalize("Lightning Bolt LEA EN Foil") == normalize("Lightning Bolt")
        assert normalize("Lightning Bolt LEA EN Foil") == "lightning bolt"

    def test_strips_parenthesised_set_code(self) -> None:
        """Punctuation is removed first, so "(MH2)" becomes a set code token."""
        assert normalize("Ragavan, Nimble Pilferer (MH2)") == "ragavan nimble pilferer"

    def test_set_codes_are_case_sensitive(self) -> None:
        """Lowercase words are not mistaken for set codes."""
        assert normalize("lightning bolt lea") == "lightning bolt lea"

    def test_title_case_two_letter_word_survives(self) -> None:
        """A capitalized two-letter word is not a set code."""
        assert normalize("Ready to Go") == "ready to go"

    def test_keeps_split_card_separator(self) -> None:
        """Split cards keep their "//" separator."""
        assert normalize("Fire // Ice") == "fire // ice"

    def test_strips_cyrillic_qualifiers(self) -> None:
        """Non-Latin finish and language words are qualifiers."""
        assert normalize("Молния фойл рус") == "молния"

    def test_strips_art_pair(self) -> None:
        """"alt art" / "full art" are removed as a pair."""
        assert normalize("Lightning Bolt Full Art") == "lightning bolt"

    def test_keeps_at_least_one_token(self) -> None:
        """A name made only of qualifiers keeps its first token."""
        assert normalize("Foil") == "foil"
        assert normalize("Foil EN") == "foil"

    def test_empty_input(self) -> None:
        assert normalize("") == ""
        assert normalize("  ...  ") == ""

    @pytest.mark.parametrize(
        "raw",
        [
            "Lightning Bolt LEA EN Foil",
            "Fire // Ice",
            "Jace, the Mind Sculptor (2XM) NM",
            "Молния фойл",
            "Foil",
            "Ready to Go",
            "Lim-Dûl's Vault",
            "Bolt İen",
        ],
    )
    def test_is_idempotent(self, raw: str) -> None:
        """Normalizing a key yields the same key."""
        once = normalize(raw)
        assert normalize(once) == once

    def test_lowercasing_that_adds_marks(self) -> None:
        """A dotted capital I lowers to "i" plus a combining dot, which splits the word."""
        assert normalize("Bolt İen") == "bolt i"


class TestNormalizeForMatching:
    def test_strips_simple_qualifiers(self) -> None:
        """The simple set still covers Latin finishes, languages and set codes."""
        assert normalize_for_matching("Lightning Bolt LEA EN Foil") == "lightning bolt"

    def test_keeps_extended_qualifiers(self) -> None:
        """Cyrillic qualifiers are only known to the extended set."""
        assert normalize_for_matching("Молния фойл") == "молния фойл"

    def test_does_not_strip_art_pairs(self) -> None:
        """"alt art" is only removed by the extended normalizer."""
        assert normalize_for_matching("Lightning Bolt alt art") == "lightning bolt alt art"

    @pytest.mark.parametrize("raw", ["Lightning Bolt EN", "Молния фойл", "Foil"])
    def test_is_idempotent(self, raw: str) -> None:
        once = normalize_for_matching(raw)
        assert normalize_for_matching(once) == once
