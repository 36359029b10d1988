"""Sanitize dictated text and scanned codes before they reach the oracle."""

import re

from inventory_voice.contracts.sanitize import Clean, Rejected, SanitizeResult, Suspicious
from inventory_voice.errors import InvalidInputError, SuspiciousInputError
from inventory_voice.logging_config import get_logger

logger = get_logger(__name__)

MAX_INPUT_LENGTH = 500
MAX_BARCODE_LENGTH = 100
SUSPICIOUS_TRUNCATE_LENGTH = 100

SUSPICIOUS_PATTERNS: tuple[re.Pattern[str], ...] = (
    # Attempts to override the system instructions
    re.compile(r"(ignora|ignore|dimentica).*(system|istruzioni di sistema)", re.IGNORECASE),
    # Code interpolation
    re.compile(r"\$\{.*\}"),
    # Path traversal
    re.compile(r"\.\./\.\./"),
)

# NUL and low control chars, then zero-width chars that can hide text.
_STRIPPED_CHARS = str.maketrans(
    "", "", "\u0000\u0001\u0002\u0003\u200b\u200c\u200d\ufeff"
)
_WHITESPACE = re.compile(r"\s+")
_BARCODE = re.compile(r"[A-Za-z0-9\-_.]+")
_BARCODE_DISALLOWED = re.compile(r"[^A-Za-z0-9\-_.]")


def sanitize_free_text(text: str) -> SanitizeResult:
    """
    Sanitize a natural-language utterance.

    Suspicious input is never rejected: it is truncated and flagged so the
    caller can audit it and keep going.
    """
    if len(text) > MAX_INPUT_LENGTH:
        logger.warning("input_too_long", length=len(text), max_length=MAX_INPUT_LENGTH)
        return Rejected(reason=f"Input troppo lungo (max {MAX_INPUT_LENGTH} caratteri)")

    cleaned = _WHITESPACE.sub(" ", text.translate(_STRIPPED_CHARS)).strip()
    if not cleaned:
        return Rejected(reason="Input vuoto")

    for pattern in SUSPICIOUS_PATTERNS:
        if pattern.search(cleaned):
            logger.warning("suspicious_pattern_detected", pattern=pattern.pattern)
            return Suspicious(
                reason="Pattern sospetto rilevato",
                text=cleaned[:SUSPICIOUS_TRUNCATE_LENGTH],
            )

    return Clean(text=cleaned)


def sanitize_barcode(text: str) -> SanitizeResult:
    """Stricter check for scanned codes, which can carry crafted payloads."""
    cleaned = text.strip()
    if len(cleaned) > MAX_BARCODE_LENGTH:
        logger.warning("barcode_too_long", length=len(cleaned))
        return Rejected(reason="Codice troppo lungo")

    if _BARCODE.fullmatch(cleaned):
        return Clean(text=cleaned)

    filtered = _BARCODE_DISALLOWED.sub("", cleaned)
    logger.warning("barcode_invalid_chars", removed=len(cleaned) - len(filtered))
    if not filtered:
        return Rejected(reason="Codice non valido")
    return Suspicious(reason="Caratteri rimossi dal codice", text=filtered)


def admit_free_text(text: str) -> Clean | Suspicious:
    """sanitize_free_text for callers that stop on rejection; raises InvalidInputError."""
    result = sanitize_free_text(text)
    if isinstance(result, Rejected):
        raise InvalidInputError(result.reason, context={"length": len(text)})
    return result


def admit_barcode(code: str) -> Clean:
    """
    Admit a scanned code only when it is clean.

    A filtered code is not looked up: the scan is refused as suspicious.
    """
    result = sanitize_barcode(code)
    if isinstance(result, Rejected):
        raise InvalidInputError(result.reason, context={"length": len(code)})
    if isinstance(result, Suspicious):
        raise SuspiciousInputError(result.reason, context={"input": result.text[:50]})
    return result
