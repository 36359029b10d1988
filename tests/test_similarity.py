"""Tests for Levenshtein distance and similarity."""

import pytest

from inventory_voice.services.similarity import levenshtein_distance, similarity


class TestLevenshteinDistance:

    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ("kitten", "sitting", 3),
            ("", "abc", 3),
            ("abc", "", 3),
            ("siemns", "siemens", 1),
            ("flaw", "lawn", 2),
            ("same", "same", 0),
        ],
    )
    def test_known_distances(self, a, b, expected):
        assert levenshtein_distance(a, b) == expected


class TestSimilarity:

    @pytest.mark.parametrize("s", ["a", "frigorifero", "Camera 12", "ü"])
    def test_identity_is_one(self, s):
        assert similarity(s, s) == 1.0

    @pytest.mark.parametrize("s", ["a", "Tecnomed"])
    def test_empty_against_non_empty_is_zero(self, s):
        assert similarity(s, "") == 0.0
        assert similarity("", s) == 0.0

    def test_both_empty_is_one(self):
        assert similarity("", "") == 1.0

    @pytest.mark.parametrize(
        "a, b",
        [("siemns", "siemens"), ("filipz", "philips"), ("medika", "medikal srl"), ("x", "yz")],
    )
    def test_symmetric(self, a, b):
        assert similarity(a, b) == similarity(b, a)

    def test_one_edit_in_seven(self):
        assert similarity("siemns", "siemens") == pytest.approx(1 - 1 / 7)

    def test_case_sensitive(self):
        """Callers are expected to lowercase first."""
        assert similarity("ABC", "abc") == 0.0

    def test_bounded(self):
        for a, b in [("abc", "xyz"), ("a", "abcdef"), ("camera", "cucina")]:
            assert 0.0 <= similarity(a, b) <= 1.0
