"""
Speech-to-text post-processing.

Fixes acronyms the recognizer commonly distorts ("ABC" -> "APC") and turns
Italian phonetic spelling ("A come Ancona, P come Padova") into letters.
"""

import re

from inventory_voice.logging_config import get_logger

logger = get_logger(__name__)

KNOWN_CORRECTIONS: dict[str, str] = {
    # Manufacturer acronyms
    "ABC": "APC",
    "UBS": "UPS",
    "EPS": "UPS",
    "IPS": "UPS",
    # Medical acronyms
    "BIPAP": "BiPAP",
    # Brands
    "Phillips": "Philips",
    "Fillips": "Philips",
    "Simmons": "Siemens",
    # Common terms
    "o 2": "O2",
    "oh 2": "O2",
}

PHONETIC_ALPHABET: dict[str, str] = {
    "ancona": "A",
    "bari": "B",
    "como": "C",
    "domodossola": "D",
    "empoli": "E",
    "firenze": "F",
    "genova": "G",
    "hotel": "H",
    "imola": "I",
    "jolly": "J",
    "kappa": "K",
    "kilo": "K",
    "livorno": "L",
    "milano": "M",
    "napoli": "N",
    "otranto": "O",
    "padova": "P",
    "quarto": "Q",
    "quebec": "Q",
    "roma": "R",
    "savona": "S",
    "torino": "T",
    "udine": "U",
    "venezia": "V",
    "washington": "W",
    "xilofono": "X",
    "york": "Y",
    "yacht": "Y",
    "zara": "Z",
    "zebra": "Z",
}

_CORRECTION_PATTERNS = [
    (re.compile(rf"\b{re.escape(wrong)}\b", re.IGNORECASE), right)
    for wrong, right in KNOWN_CORRECTIONS.items()
]
# "A come Ancona" or just "come Ancona"
_SPELLING = re.compile(r"(?:\b([A-Za-z])\s+)?\bcome\s+(\w+)", re.IGNORECASE)
# Single letters that are also Italian words ("e come sempre")
_LETTER_WORDS = frozenset({"a", "e", "i", "o"})
_PUNCTUATION = re.compile(r"[,.]")
_WHITESPACE = re.compile(r"\s+")


def correct_known_terms(text: str) -> str:
    """Replace commonly misrecognized whole words, case-insensitively."""
    for pattern, right in _CORRECTION_PATTERNS:
        text = pattern.sub(right, text)
    return text


def normalize_spelling(text: str) -> str:
    """
    Collapse each run of "X come City" spellings into one acronym, in place.

    "UPS A come Ancona P come Padova C come Como Smart 3000" -> "UPS APC Smart 3000".
    Without an alphabet city, "come" counts as spelling only after a letter
    that is not itself a word: "e come sempre" and "funziona come prima" are
    ordinary speech.
    """
    matches = [m for m in _SPELLING.finditer(text) if _is_spelling(m)]
    if not matches:
        return text

    runs: list[list[re.Match[str]]] = [[matches[0]]]
    for prev, m in zip(matches, matches[1:]):
        if text[prev.end():m.start()].strip(" ,."):
            runs.append([m])
        else:
            runs[-1].append(m)

    out: list[str] = []
    pos = 0
    for run in runs:
        out.append(text[pos:run[0].start()])
        out.append("".join(_spelled_letter(m) for m in run))
        pos = run[-1].end()
    out.append(text[pos:])
    return "".join(out)


def _is_spelling(m: re.Match[str]) -> bool:
    letter, city = m.group(1), m.group(2).lower()
    if city in PHONETIC_ALPHABET:
        return True
    return bool(letter) and letter.lower() not in _LETTER_WORDS


def _spelled_letter(m: re.Match[str]) -> str:
    city = m.group(2).lower()
    return PHONETIC_ALPHABET.get(city) or (m.group(1) or city[0]).upper()


def normalize_city_sequence(text: str) -> str:
    """
    Turn two or more consecutive alphabet cities into letters.

    "Ancona Padova Como" -> "APC"; a single city stays as spoken, it is
    probably a real place name.
    """
    words = text.split()
    out: list[str] = []
    run: list[str] = []

    def flush() -> None:
        if len(run) >= 2:
            out.append("".join(PHONETIC_ALPHABET[_PUNCTUATION.sub("", w).lower()] for w in run))
        else:
            out.extend(run)
        run.clear()

    for word in words:
        if _PUNCTUATION.sub("", word).lower() in PHONETIC_ALPHABET:
            run.append(word)
        else:
            flush()
            out.append(word)
    flush()
    return " ".join(out)


def postprocess_transcript(text: str) -> str:
    """Spelling, then city sequences, then known terms, then whitespace."""
    if not text.strip():
        return text
    result = normalize_spelling(text)
    result = normalize_city_sequence(result)
    result = correct_known_terms(result)
    result = _WHITESPACE.sub(" ", result).strip()
    if result != text:
        logger.info("transcript_postprocessed", original=text[:100], processed=result[:100])
    return result
