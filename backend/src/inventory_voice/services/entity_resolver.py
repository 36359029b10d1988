"""
Resolve spoken names against catalog entities.

Three tiers, each an early return:
1. exact name match
2. containment (name or secondary fields contain the query, or vice versa)
3. fuzzy Levenshtein similarity with a confidence gap heuristic
"""

from __future__ import annotations

from typing import Sequence

from inventory_voice.contracts.catalog import (
    Assignee,
    CatalogEntity,
    CatalogReader,
    Location,
    Maintainer,
)
from inventory_voice.contracts.resolution import (
    Ambiguous,
    Found,
    NeedsConfirmation,
    NotFound,
    ResolutionResult,
)
from inventory_voice.contracts.tasks import MaintenanceMetaCategory, MaintenanceType
from inventory_voice.errors import ResolutionFailureError
from inventory_voice.logging_config import get_logger
from inventory_voice.services.similarity import similarity

logger = get_logger(__name__)

MIN_SIMILARITY = 0.6
HIGH_CONFIDENCE = 0.8
CONFIDENCE_GAP = 0.2
MAX_AMBIGUOUS_CONTAINMENT = 5
MAX_FUZZY_CANDIDATES = 3


def _comparable_texts(entity: CatalogEntity) -> list[str]:
    texts = [entity.name.strip().lower()]
    texts.extend(f.strip().lower() for f in entity.secondary_fields() if f and f.strip())
    return texts


def _contains_either_way(query: str, text: str) -> bool:
    return bool(text) and (query in text or text in query)


def resolve_against(query: str, candidates: Sequence[CatalogEntity]) -> ResolutionResult:
    """Resolve ``query`` against ``candidates`` with the exact/containment/fuzzy tiers."""
    normalized = query.strip().lower()
    if not normalized:
        return NotFound(original_query=query)

    for candidate in candidates:
        if candidate.name.strip().lower() == normalized:
            return Found(entity=candidate)

    contained = [
        c for c in candidates
        if any(_contains_either_way(normalized, t) for t in _comparable_texts(c))
    ]
    if len(contained) == 1:
        return Found(entity=contained[0])
    if 2 <= len(contained) <= MAX_AMBIGUOUS_CONTAINMENT:
        return Ambiguous(candidates=contained, original_query=query)
    # No containment hit, or too broad to disambiguate: fall through to fuzzy.

    scored: list[tuple[float, CatalogEntity]] = []
    for candidate in candidates:
        score = max(similarity(normalized, t) for t in _comparable_texts(candidate))
        if score >= MIN_SIMILARITY:
            scored.append((score, candidate))
    scored.sort(key=lambda pair: pair[0], reverse=True)

    if not scored:
        return NotFound(original_query=query)
    if len(scored) == 1:
        score, candidate = scored[0]
        if score >= HIGH_CONFIDENCE:
            return Found(entity=candidate)
        return NeedsConfirmation(candidate=candidate, similarity=score, original_query=query)

    (top_score, top), (second_score, _) = scored[0], scored[1]
    if top_score - second_score > CONFIDENCE_GAP:
        return NeedsConfirmation(candidate=top, similarity=top_score, original_query=query)
    return Ambiguous(
        candidates=[c for _, c in scored[:MAX_FUZZY_CANDIDATES]],
        original_query=query,
    )


class EntityResolver:
    """Resolves maintainers, locations and assignees against live catalog snapshots."""

    def __init__(
        self,
        maintainers: CatalogReader[Maintainer],
        locations: CatalogReader[Location],
        assignees: CatalogReader[Assignee],
    ):
        self._maintainers = maintainers
        self._locations = locations
        self._assignees = assignees

    def resolve_maintainer(self, query: str) -> ResolutionResult:
        return self._resolve("maintainer", self._maintainers, query)

    def resolve_location(self, query: str) -> ResolutionResult:
        return self._resolve("location", self._locations, query)

    def resolve_assignee(self, query: str) -> ResolutionResult:
        return self._resolve("assignee", self._assignees, query)

    @staticmethod
    def _candidates(kind: str, catalog: CatalogReader[CatalogEntity]) -> list[CatalogEntity]:
        try:
            return list(catalog.list_active())
        except Exception as e:
            raise ResolutionFailureError(
                f"Could not list {kind} catalog",
                entity_kind=kind,
                context={"original_error_type": type(e).__name__, "error": str(e)[:200]},
            ) from e

    def _resolve(self, kind: str, catalog: CatalogReader[CatalogEntity], query: str) -> ResolutionResult:
        try:
            candidates = self._candidates(kind, catalog)
        except ResolutionFailureError as e:
            # Catalog failures degrade to NotFound rather than aborting the task flow.
            logger.warning("entity_resolution_failed", **e.to_dict())
            return NotFound(original_query=query)
        result = resolve_against(query, candidates)
        logger.debug("entity_resolved", entity_kind=kind, outcome=result.kind)
        return result


_META_CATEGORY_PHRASES: dict[str, MaintenanceMetaCategory] = {
    "ordinaria": MaintenanceMetaCategory.ORDINARIA,
    "manutenzione ordinaria": MaintenanceMetaCategory.ORDINARIA,
    "straordinaria": MaintenanceMetaCategory.STRAORDINARIA,
    "manutenzione straordinaria": MaintenanceMetaCategory.STRAORDINARIA,
}


def match_maintenance_type(text: str) -> ResolutionResult:
    """
    Match a spoken maintenance type.

    "ordinaria"/"straordinaria" name a whole meta-category and always come back
    Ambiguous over its types. Otherwise: display name, then synonym, then containment.
    """
    normalized = text.strip().lower()
    if not normalized:
        return NotFound(original_query=text)

    meta = _META_CATEGORY_PHRASES.get(normalized)
    if meta is not None:
        return Ambiguous(candidates=MaintenanceType.by_meta_category(meta), original_query=text)

    for t in MaintenanceType:
        if t.display_name.lower() == normalized:
            return Found(entity=t)
    for t in MaintenanceType:
        if normalized in t.synonyms:
            return Found(entity=t)

    partial = [
        t for t in MaintenanceType
        if _contains_either_way(normalized, t.display_name.lower())
        or any(_contains_either_way(normalized, s) for s in t.synonyms)
    ]
    if not partial:
        return NotFound(original_query=text)
    if len(partial) == 1:
        return Found(entity=partial[0])
    return Ambiguous(candidates=partial, original_query=text)
