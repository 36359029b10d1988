"""
Heuristic classifiers over a single utterance.

Both sit behind a narrow ``classify(text)`` protocol so the regex heuristics
can be swapped for a model without touching the orchestrator.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Protocol

from inventory_voice.contracts.dialogue import SpeakerHint

__all__ = [
    "SpeakerHint",
    "SpeakerClassifier",
    "RegexSpeakerClassifier",
    "update_speaker_hint",
    "UserIntent",
    "IntentClassifier",
    "PhraseIntentClassifier",
]


class SpeakerClassifier(Protocol):
    def classify(self, text: str) -> SpeakerHint: ...


# Maintainer talking about their own work.
FIRST_PERSON_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\b(ho|abbiamo)\s+(riparato|fatto|verificato|installato|sostituito|sistemato|controllato)",
        r"\bfinito\s+(l'intervento|il lavoro|la riparazione|la manutenzione)",
        r"\bsono\s+(di|della|del)\s+\w+",  # "Sono di Tecnomed"
        r"\bsiamo\s+(di|della|del|venuti)\s*",
        r"\b(sono|siamo)\s+intervenut[oiae]",
        r"\bho\s+(appena|già)\s+",
    )
)

# Operator reporting someone else's work.
THIRD_PERSON_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\b(è|sono)\s+venut[oiae]",
        r"\b(ha|hanno)\s+(riparato|fatto|verificato|installato|sostituito|sistemato)",
        r"\b(il|la|i|le)\s+(tecnico|tecnici|manutentore|manutentori|ditta)\s+ha",
        r"\b(il|la)\s+\w+\s+ha\s+(fatto|riparato|sistemato)",  # "La Tecnomed ha riparato"
        r"\bhanno\s+detto\s+che",
        r"\b(mi|ci)\s+hanno\s+",
    )
)


class RegexSpeakerClassifier:
    """Score first- vs third-person phrasing; the higher count wins, ties are UNKNOWN."""

    def __init__(
        self,
        first_person: tuple[re.Pattern[str], ...] = FIRST_PERSON_PATTERNS,
        third_person: tuple[re.Pattern[str], ...] = THIRD_PERSON_PATTERNS,
    ):
        self._first_person = first_person
        self._third_person = third_person

    def classify(self, text: str) -> SpeakerHint:
        first = sum(1 for p in self._first_person if p.search(text))
        third = sum(1 for p in self._third_person if p.search(text))
        if first > third:
            return SpeakerHint.LIKELY_MAINTAINER
        if third > first:
            return SpeakerHint.LIKELY_OPERATOR
        return SpeakerHint.UNKNOWN


def update_speaker_hint(current: SpeakerHint, new: SpeakerHint) -> SpeakerHint:
    """UNKNOWN never overrides a known hint; between known hints the newer wins."""
    if new == SpeakerHint.UNKNOWN:
        return current
    return new


class UserIntent(str, Enum):
    CONTINUE = "continue"  # still dictating fields
    PROCEED = "proceed"    # save with what was collected
    CANCEL = "cancel"      # drop the task


class IntentClassifier(Protocol):
    def classify(self, text: str) -> UserIntent: ...


PROCEED_PHRASES: tuple[str, ...] = (
    "basta", "così", "procedi", "ok così", "va bene", "conferma",
    "fatto", "ok", "bene così", "va bene così", "salva", "registra",
    "sì", "si", "esatto", "perfetto", "confermo",
)

CANCEL_PHRASES: tuple[str, ...] = (
    "annulla", "lascia stare", "cancella", "lascia perdere",
    "non importa", "stop", "ferma", "no", "niente", "abbandona",
)

_PUNCTUATION = re.compile(r"[.,;:!?\"]+")


def normalize_reply(text: str) -> str:
    """Lowercase, drop punctuation and collapse whitespace."""
    return " ".join(_PUNCTUATION.sub(" ", text.lower()).split())


class PhraseIntentClassifier:
    """
    Fixed phrase lists. Cancellation is checked first and always wins, so
    "no, procedi" is a cancel.
    """

    def __init__(
        self,
        proceed_phrases: tuple[str, ...] = PROCEED_PHRASES,
        cancel_phrases: tuple[str, ...] = CANCEL_PHRASES,
    ):
        self._proceed = proceed_phrases
        # Whole words only: "no" must not fire inside "nome" or "nota".
        self._cancel = tuple(re.compile(rf"\b{re.escape(p)}\b") for p in cancel_phrases)

    def classify(self, text: str) -> UserIntent:
        normalized = normalize_reply(text)
        if any(p.search(normalized) for p in self._cancel):
            return UserIntent.CANCEL
        for phrase in self._proceed:
            if (
                normalized == phrase
                or normalized.startswith(phrase + " ")
                or normalized.endswith(" " + phrase)
            ):
                return UserIntent.PROCEED
        return UserIntent.CONTINUE
