"""Unit tests for reportfusion.utils.text.

Covers:
- normalize_text: case, punctuation, stop words, accented letters
- extract_keywords: domain terms, location substrings, frequent words
- extract_entities: numbers, street phrases, RT/RW codes
- jaccard / cosine_similarity / length_similarity edge cases
"""

from __future__ import annotations

import pytest

from reportfusion.utils.text import (
    cosine_similarity,
    extract_entities,
    extract_keywords,
    jaccard,
    length_similarity,
    normalize_text,
)


# ── normalize_text ────────────────────────────────────────────────────────────────

class TestNormalizeText:
    def test_lowercases_and_drops_stop_words(self):
        assert normalize_text("Jalan rusak parah di depan rumah") == "jalan rusak parah depan rumah"

    def test_strips_punctuation_and_collapses_whitespace(self):
        assert normalize_text("Lampu   mati!!! (gelap)") == "lampu mati gelap"

    def test_keeps_accented_letters(self):
        assert normalize_text("Café déjà") == "café déjà"

    def test_empty_and_stop_word_only(self):
        assert normalize_text("") == ""
        assert normalize_text("yang dan di") == ""


# ── extract_keywords ──────────────────────────────────────────────────────────────

class TestExtractKeywords:
    def test_domain_terms(self):
        keywords = extract_keywords("jalan rusak parah depan rumah")
        assert keywords == ["jalan", "rusak", "parah", "depan"]

    def test_location_term_matched_as_substring(self):
        """'mengganggu' contains 'gg' and 'gang', so it counts as a location word."""
        assert "mengganggu" in extract_keywords("jalan berlubang besar mengganggu")

    def test_frequent_long_words_included(self):
        keywords = extract_keywords("sampah sampah menumpuk")
        assert "sampah" in keywords
        assert "menumpuk" not in keywords

    def test_short_words_excluded(self):
        assert extract_keywords("rt rw gg") == []

    def test_keywords_are_distinct(self):
        keywords = extract_keywords("jalan jalan jalan")
        assert keywords == ["jalan"]


# ── extract_entities ──────────────────────────────────────────────────────────────

class TestExtractEntities:
    def test_numbers(self):
        assert "12" in extract_entities("lampu mati nomor 12")

    def test_street_phrase(self):
        entities = extract_entities("jalan sudirman")
        assert "jalan sudirman" in entities

    def test_rt_rw_codes(self):
        entities = extract_entities("banjir rt 05 rw 02")
        assert "rt 05" in entities
        assert "rw 02" in entities

    def test_no_entities(self):
        assert extract_entities("sampah menumpuk") == []


# ── Similarity measures ───────────────────────────────────────────────────────────

class TestMeasures:
    def test_jaccard_basic(self):
        assert jaccard(["a", "b"], ["b", "c"]) == pytest.approx(1 / 3)

    def test_jaccard_both_empty_is_zero(self):
        assert jaccard([], []) == 0.0

    def test_jaccard_ignores_duplicates(self):
        assert jaccard(["a", "a"], ["a"]) == 1.0

    def test_cosine_identical(self):
        assert cosine_similarity("jalan rusak", "jalan rusak") == pytest.approx(1.0)

    def test_cosine_disjoint(self):
        assert cosine_similarity("jalan rusak", "sampah menumpuk") == 0.0

    def test_cosine_symmetric(self):
        a, b = "jalan rusak parah depan rumah", "jalan berlubang besar mengganggu"
        assert cosine_similarity(a, b) == cosine_similarity(b, a)

    def test_cosine_empty(self):
        assert cosine_similarity("", "jalan") == 0.0

    def test_length_similarity(self):
        assert length_similarity("abcd", "ab") == 0.5
        assert length_similarity("", "") == 1.0
        assert length_similarity("", "ab") == 0.0
