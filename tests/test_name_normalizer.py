"""Tests for card name normalization and loose matching."""

import unicodedata

import pytest

from cardledger.services.name_normalizer import (
    KEY_TERM_STOP_WORDS,
    extract_key_terms,
    generate_variations,
    matches_entry,
    split_keywords,
)


class TestGenerateVariations:
    @pytest.mark.parametrize(
        "raw_name",
        ["Pikachu", "  Charizard ex  ", "Lillie's Determination", "ピカチュウ", "Pikachu & Zekrom-GX"],
    )
    def test_contains_lowercased_trimmed_original(self, raw_name: str) -> None:
        variations = generate_variations(raw_name)

        assert variations
        assert raw_name.strip().lower() in variations

    def test_blank_name_has_no_variations(self) -> None:
        assert generate_variations("   ") == set()

    def test_possessive_forms(self) -> None:
        variations = generate_variations("Lillie's Determination")

        assert "lillies determination" in variations
        assert "lillie determination" in variations

    def test_typographic_apostrophe(self) -> None:
        variations = generate_variations("Lillie’s Determination")

        assert "lillies determination" in variations

    def test_ampersand_forms(self) -> None:
        variations = generate_variations("Pikachu & Zekrom")

        assert "pikachu and zekrom" in variations
        assert "pikachu ＆ zekrom" in variations
        assert "pikachu&zekrom" in variations

    def test_full_width_ampersand_input(self) -> None:
        variations = generate_variations("Pikachu ＆ Zekrom")

        assert "pikachu ＆ zekrom" in variations
        assert "pikachu & zekrom" in variations

    @pytest.mark.parametrize("form", ["NFC", "NFD"])
    def test_canonical_unicode_forms(self, form: str) -> None:
        variations = generate_variations(unicodedata.normalize(form, "Flab\u00e9b\u00e9"))

        assert "flab\u00e9b\u00e9" in variations
        assert unicodedata.normalize("NFD", "flab\u00e9b\u00e9") in variations

    def test_whitespace_and_hyphen_forms(self) -> None:
        variations = generate_variations("Ho-Oh GX")

        assert "ho oh gx" in variations
        assert "hooh gx" in variations
        assert "ho-oh-gx" in variations
        assert "ho-ohgx" in variations

    def test_stop_words_stripped(self) -> None:
        variations = generate_variations("Team Rocket's Handiwork of the Shadows")

        assert "team rocket's handiwork shadows" in variations

    def test_only_stop_words_keeps_original(self) -> None:
        assert generate_variations("The") == {"the"}

    def test_no_blank_variations(self) -> None:
        assert all(v.strip() for v in generate_variations("&"))


class TestExtractKeyTerms:
    def test_excludes_stop_words(self) -> None:
        terms = extract_key_terms(generate_variations("Lillie's Determination"))

        assert not terms & KEY_TERM_STOP_WORDS
        assert "determination" not in terms

    def test_includes_long_tokens(self) -> None:
        terms = extract_key_terms({"charizard vmax shiny"})

        assert "charizard" in terms
        assert "shiny" in terms
        assert "vmax" not in terms

    def test_drops_short_tokens(self) -> None:
        terms = extract_key_terms({"mr mime"})

        assert "mr" not in terms
        assert "mime" in terms

    def test_keeps_full_variation(self) -> None:
        terms = extract_key_terms({"lillie determination"})

        assert "lillie determination" in terms
        assert "lillie" in terms

    def test_splits_on_apostrophe_and_underscore(self) -> None:
        terms = extract_key_terms({"professor_oak's research"})

        assert {"professor", "oak", "research"} <= terms


class TestSplitKeywords:
    def test_comma_and_semicolon(self) -> None:
        assert split_keywords("Pika, Pikachu V ;  yellow mouse") == [
            "pika",
            "pikachu v",
            "yellow mouse",
        ]

    def test_blank(self) -> None:
        assert split_keywords(" , ;") == []


class TestMatchesEntry:
    def test_matches_name_by_substring(self) -> None:
        terms = extract_key_terms(generate_variations("Lillie's Determination"))

        assert matches_entry("Lillie's Determination", [], terms)

    def test_term_longer_than_name_still_matches(self) -> None:
        assert matches_entry("Pikachu", [], {"pikachu vmax"})

    def test_matches_on_keyword(self) -> None:
        assert matches_entry("ピカチュウ", ["pikachu", "pika"], {"pikachu"})

    def test_blank_name_never_matches(self) -> None:
        assert not matches_entry("   ", [""], {"pikachu"})

    def test_unrelated_entry(self) -> None:
        terms = extract_key_terms(generate_variations("Charizard"))

        assert not matches_entry("Blastoise", ["water turtle"], terms)
