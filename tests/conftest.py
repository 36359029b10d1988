"""Fixtures for the assistant tests: in-memory catalogs and an orchestrator factory."""

from typing import Callable, Optional

import pytest

from fakes import FREEZER, FRIDGE, TODAY, VENTILATOR, FakeClock, FakeOracle
from inventory_voice.contracts.catalog import (
    Assignee,
    InMemoryCatalog,
    InMemoryProductCatalog,
    Location,
    Maintainer,
)
from inventory_voice.logging_config import clear_turn_id
from inventory_voice.orchestration.orchestrator import TaskOrchestrator
from inventory_voice.orchestration.prompts import PromptBuilder
from inventory_voice.services.audit import AuditTrail
from inventory_voice.services.entity_resolver import EntityResolver
from inventory_voice.services.rate_limiter import RateLimiter


@pytest.fixture(autouse=True)
def reset_turn_id() -> None:
    clear_turn_id()


@pytest.fixture
def maintainers() -> InMemoryCatalog[Maintainer]:
    return InMemoryCatalog(
        [
            Maintainer(id="m1", name="Tecnomed S.r.l.", email="assistenza@tecnomed.it", specialization="elettromedicali"),
            Maintainer(id="m2", name="Siemens Healthineers", phone="02 1234567"),
            Maintainer(id="m3", name="Frigotecnica Bianchi", city="Padova"),
        ]
    )


@pytest.fixture
def locations() -> InMemoryCatalog[Location]:
    return InMemoryCatalog(
        [
            Location(id="l3", name="Camera 3", building="Hospice", floor_name="Piano 1"),
            Location(id="l12", name="Camera 12", building="Hospice", floor_name="Piano 2"),
            Location(id="l20", name="Magazzino", building="Hospice", floor_name="Piano terra"),
        ]
    )


@pytest.fixture
def assignees() -> InMemoryCatalog[Assignee]:
    return InMemoryCatalog(
        [
            Assignee(id="a1", name="Mario Rossi", department="Infermieristica"),
            Assignee(id="a2", name="Ufficio tecnico", department="Servizi generali"),
        ]
    )


@pytest.fixture
def products() -> InMemoryProductCatalog:
    return InMemoryProductCatalog([FRIDGE, VENTILATOR, FREEZER], today=TODAY)


@pytest.fixture
def resolver(maintainers, locations, assignees) -> EntityResolver:
    return EntityResolver(maintainers=maintainers, locations=locations, assignees=assignees)


@pytest.fixture
def make_orchestrator(resolver, products, maintainers) -> Callable[..., TaskOrchestrator]:
    """Factory for an orchestrator wired to in-memory catalogs and a scripted oracle."""

    def _make(
        oracle: Optional[FakeOracle] = None,
        max_requests: int = 15,
        clock: Optional[FakeClock] = None,
        with_products: bool = True,
        stt_postprocess: bool = True,
        audit: Optional[AuditTrail] = None,
    ) -> TaskOrchestrator:
        catalog = products if with_products else None
        return TaskOrchestrator(
            oracle=oracle or FakeOracle(),
            rate_limiter=RateLimiter(max_requests=max_requests, window_seconds=60.0, clock=clock or FakeClock()),
            entity_resolver=resolver,
            products=catalog,
            prompt_builder=PromptBuilder(maintainers=maintainers, products=catalog, today=lambda: TODAY),
            audit=audit or AuditTrail(),
            stt_postprocess=stt_postprocess,
        )

    return _make
