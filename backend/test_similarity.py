"""Tests for the string similarity helpers used by deduplication"""

import pytest

from plangraph.matching.similarity import (
    extract_keywords,
    is_fuzzy_match,
    levenshtein_distance,
    normalize_label,
    similarity,
)


class TestLevenshtein:

    def test_classic_example(self):
        assert levenshtein_distance("kitten", "sitting") == 3

    @pytest.mark.parametrize("text", ["", "a", "postgres", "Backend & APIs"])
    def test_identity(self, text):
        assert levenshtein_distance(text, text) == 0

    @pytest.mark.parametrize("a,b", [("kitten", "sitting"), ("", "abc"), ("flaw", "lawn"), ("ab", "ba")])
    def test_symmetric(self, a, b):
        assert levenshtein_distance(a, b) == levenshtein_distance(b, a)

    def test_against_empty(self):
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("abcd", "") == 4


def test_similarity_bounds():
    assert similarity("", "") == 1.0
    assert similarity("abc", "abc") == 1.0
    assert similarity("abc", "xyz") == 0.0
    assert similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)


class TestFuzzyMatch:

    def test_substring_matches(self):
        assert is_fuzzy_match("postgres", "postgresql")
        assert is_fuzzy_match("PostgreSQL", "postgres")

    def test_unrelated_words_do_not_match(self):
        assert not is_fuzzy_match("swagger", "django")

    def test_case_insensitive_equality(self):
        assert is_fuzzy_match("Redis", "REDIS")

    def test_close_spelling_matches(self):
        # 1 edit over 10 characters -> 0.9
        assert is_fuzzy_match("kubernetes", "kubernetis")

    @pytest.mark.parametrize("blank", ["", "   ", None])
    def test_blank_never_matches(self, blank):
        assert not is_fuzzy_match(blank, "anything")
        assert not is_fuzzy_match("anything", blank)
        assert not is_fuzzy_match(blank, blank)

    def test_threshold_override(self):
        assert not is_fuzzy_match("kitten", "sitting")
        assert is_fuzzy_match("kitten", "sitting", threshold=0.5)


def test_extract_keywords():
    assert extract_keywords("Backend & APIs") == ["backend", "apis"]
    assert extract_keywords("user-profile_service.v2/api") == ["user", "profile", "service", "v2", "api"]
    assert extract_keywords("a b") == []
    assert extract_keywords("   ") == []
    assert extract_keywords("") == []


def test_normalize_label():
    assert normalize_label("  Front-End_App  ") == "frontendapp"
    assert normalize_label("Order   Service!") == "order service"
