"""Tests for mojibake repair and description cleaning."""

import pytest

from vax_scraper.encoding import (
    MAX_DESCRIPTION_LENGTH,
    MISDECODINGS,
    POLISH_LETTERS,
    REPAIR_TABLE,
    clean_description,
    decode_document,
    repair_text,
    truncate_description,
)

PANGRAM = "Zażółć gęślą jaźń"

CHAINS = [(first,) for first in MISDECODINGS] + [
    (first, second) for first in MISDECODINGS for second in MISDECODINGS
]

# iso-8859-2 "Ź" corrupts to the same text as cp1250 "Ś" and repairs as "Ś"
ROUND_TRIP_CASES = [
    (text, chain)
    for text in (PANGRAM, PANGRAM.upper())
    for chain in CHAINS
    if not ("Ź" in text and chain[0] == "iso-8859-2")
]


def case_id(value):
    if isinstance(value, tuple):
        return " -> ".join(value)
    return "upper" if value.isupper() else "lower"


def corrupt(text, *encodings):
    for encoding in encodings:
        text = text.encode("utf-8").decode(encoding)
    return text


class TestRepairText:
    @pytest.mark.parametrize(
        "text",
        ["modułowy", PANGRAM, PANGRAM.upper(), "Zasilacz 24V DC", ""],
    )
    def test_correct_text_is_unchanged(self, text):
        assert repair_text(text) == text

    def test_repair_is_idempotent(self):
        once = repair_text(corrupt(PANGRAM, "cp1252"))
        assert repair_text(once) == once

    @pytest.mark.parametrize("corrupted", ["zÅ‚", "zĹ‚", "zÅ"])
    def test_currency_suffix(self, corrupted):
        assert repair_text(corrupted) == "zł"

    @pytest.mark.parametrize("text,chain", ROUND_TRIP_CASES, ids=case_id)
    def test_round_trips(self, text, chain):
        try:
            corrupted = corrupt(text, *chain)
        except UnicodeDecodeError:
            pytest.skip(f"{text!r} is not decodable through {' -> '.join(chain)}")
        assert repair_text(corrupted) == text

    @pytest.mark.parametrize("letter", POLISH_LETTERS)
    @pytest.mark.parametrize("chain", CHAINS, ids=" -> ".join)
    def test_every_letter_and_chain(self, letter, chain):
        if letter == "Ź" and chain[0] == "iso-8859-2":
            pytest.skip("collides with cp1250 Ś, see test_shared_pattern_keeps_first_letter")
        try:
            corrupted = corrupt(f"x{letter}y", *chain)
        except UnicodeDecodeError:
            pytest.skip(f"{letter} is not decodable through {' -> '.join(chain)}")
        assert repair_text(corrupted) == f"x{letter}y"

    def test_double_round_trip_differs_from_single(self):
        assert corrupt(PANGRAM, "cp1252", "cp1252") != corrupt(PANGRAM, "cp1252")

    def test_shared_pattern_keeps_first_letter(self):
        assert corrupt("Ź", "iso-8859-2") == corrupt("Ś", "cp1250") == "Ĺš"
        assert repair_text("Ĺš") == "Ś"
        assert repair_text(corrupt("Ź", "cp1250")) == "Ź"

    def test_observed_phrases(self):
        assert repair_text("Pytaj o dostÄpnoÅÄ") == "Pytaj o dostępność"
        assert repair_text("Zasilacz moduÅowy") == "Zasilacz modułowy"
        assert repair_text("do zastosowañ") == "do zastosowań"
        assert repair_text("czujnik prÄdowy") == "czujnik prądowy"

    def test_lossy_fallback_picks_one_letter(self):
        assert repair_text("gÄsty") == "gęsty"

    def test_unknown_text_passes_through(self):
        assert repair_text("  Ω-resistor ®  ") == "Ω-resistor ®"

    def test_bytes_are_decoded(self):
        assert repair_text("żółw".encode("iso-8859-2")) == "żółw"
        assert repair_text("10 zÅ‚".encode("utf-8")) == "10 zł"

    def test_phrases_come_before_letter_patterns(self):
        patterns = [corrupted for corrupted, _ in REPAIR_TABLE]
        assert patterns.index("Pytaj o dostÄpnoÅÄ") < patterns.index("dostÄpnoÅÄ")
        assert patterns.index("dostÄpnoÅÄ") < patterns.index("Ä")
        assert patterns.index("zÅ‚") < patterns.index("zÅ")
        assert patterns[-1] == "Å"


class TestDecodeDocument:
    def test_utf8(self):
        assert decode_document("Dostępny".encode("utf-8")) == "Dostępny"

    def test_iso_8859_2_fallback(self):
        assert decode_document("Dostępny, 5 zł".encode("iso-8859-2")) == "Dostępny, 5 zł"

    def test_any_bytes_decode(self):
        assert len(decode_document(bytes(range(256)))) == 256


class TestDescription:
    def test_truncates_long_description(self):
        source = ("Zasilacz modułowy 24V " * 20)[:250]
        result = clean_description(source)
        assert len(result) == MAX_DESCRIPTION_LENGTH
        assert result.endswith("...")
        assert result[:197] == source[:197]

    def test_short_description_is_kept(self):
        assert truncate_description("Przekaźnik") == "Przekaźnik"

    def test_exact_limit_is_kept(self):
        text = "a" * MAX_DESCRIPTION_LENGTH
        assert truncate_description(text) == text

    def test_custom_limit(self):
        assert truncate_description("abcdefghij", 8) == "abcde..."

    def test_whitespace_and_markup(self):
        assert clean_description("  Czujnik\n\t <b>prÄdowy</b>  ") == "Czujnik prądowy"
