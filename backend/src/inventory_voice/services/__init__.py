"""Services package - export service abstractions."""

from inventory_voice.services.audit import AuditTrail
from inventory_voice.services.classifiers import (
    PhraseIntentClassifier,
    RegexSpeakerClassifier,
    UserIntent,
)
from inventory_voice.services.conversation import AssistantSession
from inventory_voice.services.entity_resolver import EntityResolver, resolve_against
from inventory_voice.services.input_guard import (
    admit_barcode,
    admit_free_text,
    sanitize_barcode,
    sanitize_free_text,
)
from inventory_voice.services.oracle import OllamaOracle, TextOracle
from inventory_voice.services.rate_limiter import RateLimiter
from inventory_voice.services.similarity import levenshtein_distance, similarity

__all__ = [
    "AssistantSession",
    "AuditTrail",
    "EntityResolver",
    "OllamaOracle",
    "PhraseIntentClassifier",
    "RateLimiter",
    "RegexSpeakerClassifier",
    "TextOracle",
    "UserIntent",
    "admit_barcode",
    "admit_free_text",
    "levenshtein_distance",
    "resolve_against",
    "sanitize_barcode",
    "sanitize_free_text",
    "similarity",
]
