"""
Card name normalization.

Turns raw card names from wishlists and forum listings into lookup keys.
Punctuation is replaced by spaces BEFORE tokenizing, so bracketed
qualifiers such as "(LEA)" become ordinary trailing tokens. Trailing
qualifier tokens (finish, language, set code) are then dropped and the
remainder is lowercased.

Known imprecision: a real card name whose last word is an all-caps 2-4
letter token, or any word equal to a language code ("It"), loses that
word. Title-case words such as "Go" are never read as set codes.
"""

import re
from collections.abc import Callable

# Set codes are checked against the input casing: "LEA", "M21", "MH3"
_SET_CODE_PATTERN = re.compile(r"^[A-Z]{2,4}\d?$")

# Everything that is not a letter, digit or "/" (split cards keep "//")
_NON_KEY_CHARS = re.compile(r"[^\w/]|_")

# =============================================================================
# QUALIFIER SETS
# =============================================================================

SIMPLE_DESCRIPTORS: frozenset[str] = frozenset(
    {
        "foil",
        "etched",
        "nonfoil",
        "alt",
        "promo",
        "prerelease",
        "signed",
    }
)

SIMPLE_LANGUAGES: frozenset[str] = frozenset(
    {
        "en",
        "eng",
        "ru",
        "rus",
        "jp",
        "ja",
        "de",
        "fr",
        "es",
        "it",
        "pt",
        "cn",
        "ko",
    }
)

EXTENDED_DESCRIPTORS: frozenset[str] = SIMPLE_DESCRIPTORS | frozenset(
    {
        "foiled",
        "surge",
        "textured",
        "prerelese",
        "stamped",
        "autographed",
        "misprint",
        # Cyrillic
        "фойл",
        "фоил",
        "фольга",
        "фольгированная",
        "нефойл",
        "промо",
        "пререлиз",
        "подписанная",
        "подписана",
        "альт",
        "альтарт",
        "этчед",
    }
)

EXTENDED_LANGUAGES: frozenset[str] = SIMPLE_LANGUAGES | frozenset(
    {
        "jpn",
        "ger",
        "deu",
        "fra",
        "fre",
        "spa",
        "ita",
        "por",
        "chs",
        "cht",
        "zh",
        "kor",
        "kr",
        "english",
        "russian",
        "japanese",
        "german",
        "french",
        "spanish",
        "italian",
        "portuguese",
        "chinese",
        "korean",
        # Cyrillic
        "англ",
        "английский",
        "английская",
        "рус",
        "русский",
        "русская",
        "яп",
        "японский",
        "японская",
        "нем",
        "немецкий",
        "немецкая",
        "франц",
        "французский",
        "французская",
        "исп",
        "испанский",
        "испанская",
        "итал",
        "итальянский",
        "итальянская",
        "португальский",
        "португальская",
        "кит",
        "китайский",
        "китайская",
        "корейский",
        "корейская",
        # Japanese / Chinese / Korean scripts
        "英語",
        "日本語",
        "中文",
        "한국어",
    }
)

# Two-word trailing qualifiers: "alt art", "full art", "extended art"
ART_PREFIXES: frozenset[str] = frozenset({"alt", "full", "extended", "альт"})
ART_WORDS: frozenset[str] = frozenset({"art", "арт"})


def _key_tokens(raw: str) -> list[tuple[str, str]]:
    """
    Split a raw name into (original, key) token pairs.

    Keys are lowercased and re-split, since lowercasing can introduce
    non-key characters ("İ" lowers to "i" plus a combining dot).
    """
    pairs: list[tuple[str, str]] = []
    for token in _NON_KEY_CHARS.sub(" ", raw).split():
        parts = _NON_KEY_CHARS.sub(" ", token.lower()).split()
        if len(parts) == 1:
            pairs.append((token, parts[0]))
        else:
            pairs.extend((part, part) for part in parts)
    return pairs


def _strip_qualifiers(
    tokens: list[tuple[str, str]],
    descriptors: frozenset[str],
    languages: frozenset[str],
    art_pairs: bool,
) -> list[tuple[str, str]]:
    """Pop trailing qualifier tokens, always leaving at least one token."""
    tokens = list(tokens)
    while len(tokens) > 1:
        original, key = tokens[-1]

        if art_pairs and key in ART_WORDS and tokens[-2][1] in ART_PREFIXES:
            if len(tokens) == 2:
                break
            del tokens[-2:]
            continue

        if key in descriptors or key in languages or _SET_CODE_PATTERN.match(original):
            tokens.pop()
            continue
        break
    return tokens


def _make_normalizer(
    descriptors: frozenset[str],
    languages: frozenset[str],
    art_pairs: bool,
) -> Callable[[str], str]:
    def normalizer(raw: str) -> str:
        kept = _strip_qualifiers(_key_tokens(raw), descriptors, languages, art_pairs)
        return " ".join(key for _, key in kept)

    return normalizer


_normalize = _make_normalizer(EXTENDED_DESCRIPTORS, EXTENDED_LANGUAGES, art_pairs=True)
_normalize_for_matching = _make_normalizer(SIMPLE_DESCRIPTORS, SIMPLE_LANGUAGES, art_pairs=False)


def normalize(raw: str) -> str:
    """
    Normalize a raw card name to an index key.

    Strips the extended qualifier set (Latin and non-Latin descriptors and
    language names) and trailing set codes.

    Example:
        normalize("Lightning Bolt LEA EN Foil") == "lightning bolt"
    """
    return _normalize(raw)


def normalize_for_matching(raw: str) -> str:
    """
    Normalize a raw card name for cross-source matching.

    Uses only the simple qualifier set, so fewer words are dropped.
    """
    return _normalize_for_matching(raw)
