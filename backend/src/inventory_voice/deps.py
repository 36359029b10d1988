"""Dependency injection helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from inventory_voice.config import Settings, get_settings
from inventory_voice.contracts.catalog import (
    Assignee,
    CatalogReader,
    InMemoryCatalog,
    Location,
    Maintainer,
    ProductCatalog,
)
from inventory_voice.services.audit import AuditCallback, AuditTrail
from inventory_voice.services.entity_resolver import EntityResolver
from inventory_voice.services.oracle import OllamaOracle, TextOracle
from inventory_voice.services.rate_limiter import RateLimiter

if TYPE_CHECKING:
    from inventory_voice.orchestration.orchestrator import TaskOrchestrator
    from inventory_voice.services.conversation import AssistantSession


def create_rate_limiter(settings: Optional[Settings] = None) -> RateLimiter:
    """Create rate limiter from settings."""
    _settings = settings or get_settings()
    return RateLimiter(
        max_requests=_settings.rate_limit_max_requests,
        window_seconds=_settings.rate_limit_window_seconds,
    )


def create_oracle(settings: Optional[Settings] = None) -> OllamaOracle:
    """Create the Ollama-backed oracle from settings."""
    _settings = settings or get_settings()
    return OllamaOracle(
        base_url=_settings.oracle_base_url,
        model=_settings.oracle_model,
        timeout_seconds=_settings.oracle_timeout_seconds,
    )


def create_entity_resolver(
    maintainers: Optional[CatalogReader[Maintainer]] = None,
    locations: Optional[CatalogReader[Location]] = None,
    assignees: Optional[CatalogReader[Assignee]] = None,
) -> EntityResolver:
    """Create entity resolver; missing catalogs default to empty in-memory ones."""
    return EntityResolver(
        maintainers=maintainers or InMemoryCatalog[Maintainer](),
        locations=locations or InMemoryCatalog[Location](),
        assignees=assignees or InMemoryCatalog[Assignee](),
    )


def create_audit_trail(
    callback: Optional[AuditCallback] = None,
    settings: Optional[Settings] = None,
) -> AuditTrail:
    """Create audit trail instance."""
    _settings = settings or get_settings()
    return AuditTrail(callback=callback, max_events=_settings.audit_max_events)


def create_orchestrator(
    oracle: Optional[TextOracle] = None,
    rate_limiter: Optional[RateLimiter] = None,
    entity_resolver: Optional[EntityResolver] = None,
    products: Optional[ProductCatalog] = None,
    maintainers: Optional[CatalogReader[Maintainer]] = None,
    audit: Optional[AuditTrail] = None,
    settings: Optional[Settings] = None,
) -> TaskOrchestrator:
    """Create orchestrator with default dependencies."""
    from inventory_voice.orchestration.orchestrator import TaskOrchestrator
    from inventory_voice.orchestration.prompts import PromptBuilder

    _settings = settings or get_settings()
    _resolver = entity_resolver or create_entity_resolver(maintainers=maintainers)

    return TaskOrchestrator(
        oracle=oracle or create_oracle(_settings),
        rate_limiter=rate_limiter or create_rate_limiter(_settings),
        entity_resolver=_resolver,
        products=products,
        prompt_builder=PromptBuilder(maintainers=maintainers, products=products),
        audit=audit or create_audit_trail(settings=_settings),
        stt_postprocess=_settings.stt_postprocess_enabled,
    )


def create_session(
    orchestrator: Optional[TaskOrchestrator] = None,
) -> AssistantSession:
    """Create a conversation session around an orchestrator."""
    from inventory_voice.services.conversation import AssistantSession

    return AssistantSession(orchestrator or create_orchestrator())
