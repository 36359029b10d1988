"""Tests for speech-to-text post-processing."""

import pytest

from inventory_voice.services.transcript import (
    correct_known_terms,
    normalize_city_sequence,
    normalize_spelling,
    postprocess_transcript,
)


class TestCorrectKnownTerms:

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("gruppo di continuità ABC", "gruppo di continuità APC"),
            ("un ubs da 1500", "un UPS da 1500"),
            ("monitor Phillips", "monitor Philips"),
            ("ventilatore bipap", "ventilatore BiPAP"),
            ("bombola o 2", "bombola O2"),
        ],
    )
    def test_corrections(self, text, expected):
        assert correct_known_terms(text) == expected

    def test_whole_words_only(self):
        assert correct_known_terms("codice ABCD") == "codice ABCD"


class TestNormalizeSpelling:

    def test_spelled_acronym_collapsed(self):
        text = "UPS A come Ancona P come Padova C come Como Smart 3000"
        assert normalize_spelling(text) == "UPS APC Smart 3000"

    def test_letter_with_unlisted_city(self):
        assert normalize_spelling("modello B come Bologna") == "modello B"

    def test_city_without_letter(self):
        assert normalize_spelling("come Ancona, come Padova") == "AP"

    def test_ordinary_come_untouched(self):
        text = "funziona come prima"
        assert normalize_spelling(text) == text

    def test_conjunction_before_come_is_not_a_letter(self):
        text = "il frigo perde acqua e come sempre nessuno interviene"
        assert normalize_spelling(text) == text

    def test_text_between_spellings_kept(self):
        text = "UPS A come Ancona in camera 12, e come detto funziona"
        assert normalize_spelling(text) == "UPS A in camera 12, e come detto funziona"

    def test_separate_runs_replaced_in_place(self):
        text = "modello A come Ancona P come Padova in camera 3, serie Z come Zara"
        assert normalize_spelling(text) == "modello AP in camera 3, serie Z"


class TestNormalizeCitySequence:

    def test_sequence_becomes_letters(self):
        assert normalize_city_sequence("modello Ancona Padova Como 1500") == "modello APC 1500"

    def test_single_city_kept(self):
        assert normalize_city_sequence("magazzino di Roma") == "magazzino di Roma"

    def test_punctuation_tolerated(self):
        assert normalize_city_sequence("Savona, Milano.") == "SM"


class TestPostprocessTranscript:

    def test_full_pipeline(self):
        assert postprocess_transcript("cerca l'ubs   Ancona Padova Como") == "cerca l'UPS APC"

    def test_empty_untouched(self):
        assert postprocess_transcript("") == ""
        assert postprocess_transcript("   ") == "   "

    def test_plain_text_unchanged(self):
        assert postprocess_transcript("mostrami le scadenze") == "mostrami le scadenze"

    def test_everyday_come_phrase_unchanged(self):
        text = "il frigo perde acqua e come sempre nessuno interviene"
        assert postprocess_transcript(text) == text

    def test_spelled_letter_keeps_following_words(self):
        text = "UPS A come Ancona in camera 12, e come detto funziona"
        assert postprocess_transcript(text) == "UPS A in camera 12, e come detto funziona"
