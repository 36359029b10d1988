"""Tests for entity resolution against catalogs and maintenance type matching."""

from unittest.mock import MagicMock

import pytest

from inventory_voice.contracts.catalog import Assignee, InMemoryCatalog, Location, Maintainer
from inventory_voice.contracts.resolution import Ambiguous, Found, NeedsConfirmation, NotFound
from inventory_voice.contracts.tasks import MaintenanceType
from inventory_voice.errors import ResolutionFailureError
from inventory_voice.services.entity_resolver import (
    MIN_SIMILARITY,
    EntityResolver,
    match_maintenance_type,
    resolve_against,
)
from inventory_voice.services.similarity import similarity


def _maintainers(*names: str) -> list[Maintainer]:
    return [Maintainer(id=f"m{i}", name=name) for i, name in enumerate(names, 1)]


class TestExactTier:

    def test_exact_match_case_insensitive(self):
        result = resolve_against("  TECNOMED ", _maintainers("Tecnomed", "Biomedica"))
        assert isinstance(result, Found)
        assert result.entity.name == "Tecnomed"

    def test_exact_match_beats_containment(self):
        """"Tecnomed" is also contained in "Tecnomed Service" but the exact hit wins."""
        result = resolve_against("tecnomed", _maintainers("Tecnomed Service", "Tecnomed"))
        assert isinstance(result, Found)
        assert result.entity.name == "Tecnomed"

    def test_empty_query_not_found(self):
        result = resolve_against("   ", _maintainers("Tecnomed"))
        assert isinstance(result, NotFound)
        assert result.original_query == "   "


class TestContainmentTier:

    def test_single_containment_found(self):
        result = resolve_against("tecnomed", _maintainers("Tecnomed S.r.l.", "Siemens"))
        assert isinstance(result, Found)
        assert result.entity.name == "Tecnomed S.r.l."

    def test_query_containing_name_found(self):
        result = resolve_against("la ditta Siemens", _maintainers("Tecnomed", "Siemens"))
        assert isinstance(result, Found)
        assert result.entity.name == "Siemens"

    def test_two_containments_ambiguous(self):
        result = resolve_against("Medika", _maintainers("Medika Srl", "MediKal"))
        assert isinstance(result, Ambiguous)
        assert [c.name for c in result.candidates] == ["Medika Srl", "MediKal"]
        assert result.original_query == "Medika"

    def test_more_than_five_containments_fall_through_to_fuzzy(self):
        names = [f"Camera {i}" for i in range(1, 7)]
        result = resolve_against("camera", [Location(id=n, name=n) for n in names])
        # All six tie on similarity, so the fuzzy tier returns the first three.
        assert isinstance(result, Ambiguous)
        assert len(result.candidates) == 3

    def test_assignee_department_is_matched(self):
        assignees = [
            Assignee(id="a1", name="Mario Rossi", department="Infermieristica"),
            Assignee(id="a2", name="Anna Verdi", department="Cardiologia"),
        ]
        result = resolve_against("cardiologia", assignees)
        assert isinstance(result, Found)
        assert result.entity.name == "Anna Verdi"

    def test_location_ambiguity_uses_same_banding(self):
        locations = [Location(id="1", name="Magazzino nord"), Location(id="2", name="Magazzino sud")]
        assert isinstance(resolve_against("magazzino", locations), Ambiguous)


class TestFuzzyTier:

    def test_typo_above_high_confidence_found(self):
        result = resolve_against("Siemns", _maintainers("Siemens"))
        assert isinstance(result, Found)
        assert result.entity.name == "Siemens"

    def test_below_min_similarity_not_found(self):
        assert similarity("filipz", "philips") < MIN_SIMILARITY
        result = resolve_against("Filipz", _maintainers("Philips"))
        assert isinstance(result, NotFound)
        assert result.original_query == "Filipz"

    def test_single_medium_match_needs_confirmation(self):
        result = resolve_against("Tecnmd", _maintainers("Tecnomed", "Philips"))
        assert isinstance(result, NeedsConfirmation)
        assert result.candidate.name == "Tecnomed"
        assert result.similarity == pytest.approx(0.75)

    def test_clear_winner_needs_confirmation(self):
        result = resolve_against("Tecnomed", _maintainers("Tecnomet", "Teknomat"))
        assert isinstance(result, NeedsConfirmation)
        assert result.candidate.name == "Tecnomet"
        assert result.similarity == pytest.approx(0.875)

    def test_close_scores_ambiguous_top_three(self):
        result = resolve_against(
            "Tecnomed", _maintainers("Tecnomet", "Tecnomex", "Tecnoged", "Tecnomad")
        )
        assert isinstance(result, Ambiguous)
        assert len(result.candidates) == 3

    def test_nothing_similar_not_found(self):
        assert isinstance(resolve_against("xyz", _maintainers("Tecnomed", "Siemens")), NotFound)


class TestEntityResolver:

    def _make_resolver(self, maintainers=None, locations=None, assignees=None):
        return EntityResolver(
            maintainers=maintainers or InMemoryCatalog(),
            locations=locations or InMemoryCatalog(),
            assignees=assignees or InMemoryCatalog(),
        )

    def test_resolves_each_kind(self, resolver):
        assert resolver.resolve_maintainer("siemens healthineers").entity.id == "m2"
        assert resolver.resolve_location("Camera 12").entity.id == "l12"
        assert resolver.resolve_assignee("mario rossi").entity.id == "a1"

    def test_inactive_entities_are_ignored(self):
        maintainers = InMemoryCatalog([Maintainer(id="m1", name="Siemens", is_active=False)])
        result = self._make_resolver(maintainers=maintainers).resolve_maintainer("Siemens")
        assert isinstance(result, NotFound)

    def test_catalog_failure_degrades_to_not_found(self):
        broken = MagicMock()
        broken.list_active.side_effect = ConnectionError("catalog offline")
        result = self._make_resolver(locations=broken).resolve_location("Camera 12")
        assert isinstance(result, NotFound)
        assert result.original_query == "Camera 12"

    def test_catalog_failure_wrapped_with_entity_kind(self):
        broken = MagicMock()
        broken.list_active.side_effect = ConnectionError("catalog offline")
        with pytest.raises(ResolutionFailureError) as exc_info:
            EntityResolver._candidates("maintainer", broken)
        assert exc_info.value.code == "RESOLUTION_FAILURE"
        assert exc_info.value.context["entity_kind"] == "maintainer"
        assert exc_info.value.context["original_error_type"] == "ConnectionError"
        assert isinstance(exc_info.value.__cause__, ConnectionError)


class TestMatchMaintenanceType:

    def test_ordinaria_is_ambiguous_over_meta_category(self):
        result = match_maintenance_type("ordinaria")
        assert isinstance(result, Ambiguous)
        assert result.candidates == [MaintenanceType.PROGRAMMATA, MaintenanceType.VERIFICA]

    def test_prefixed_straordinaria_is_ambiguous(self):
        result = match_maintenance_type("Manutenzione straordinaria")
        assert isinstance(result, Ambiguous)
        assert set(result.candidates) == {
            MaintenanceType.RIPARAZIONE,
            MaintenanceType.SOSTITUZIONE,
            MaintenanceType.STRAORDINARIA,
        }

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Riparazione", MaintenanceType.RIPARAZIONE),
            ("verifica periodica", MaintenanceType.VERIFICA),
            ("aggiustato", MaintenanceType.RIPARAZIONE),
            ("controllo", MaintenanceType.VERIFICA),
            ("collaudato", MaintenanceType.COLLAUDO),
        ],
    )
    def test_display_name_and_synonyms(self, text, expected):
        result = match_maintenance_type(text)
        assert isinstance(result, Found)
        assert result.entity == expected

    def test_containment_over_several_types_ambiguous(self):
        result = match_maintenance_type("riparazione urgente")
        assert isinstance(result, Ambiguous)
        assert MaintenanceType.RIPARAZIONE in result.candidates
        assert MaintenanceType.STRAORDINARIA in result.candidates

    def test_unknown_not_found(self):
        assert isinstance(match_maintenance_type("pulizia"), NotFound)
        assert isinstance(match_maintenance_type(""), NotFound)
