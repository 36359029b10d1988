"""Tests for action tag parsing and directive to action mapping."""

import pytest

from inventory_voice.contracts.actions import (
    CreateProduct,
    PrepareEmail,
    ScanBarcode,
    SearchProducts,
    ShowMaintenanceList,
    ShowOverdueAlerts,
    ShowProduct,
)
from inventory_voice.orchestration.directives import (
    TASK_DIRECTIVES,
    Directive,
    DirectiveType,
    parse_key_values,
    parse_reply,
    to_action,
)


class TestParseReply:

    def test_no_tag(self):
        parsed = parse_reply("  Ciao, come posso aiutarti? ")
        assert parsed.text == "Ciao, come posso aiutarti?"
        assert parsed.directive is None

    def test_tag_stripped_and_parsed(self):
        parsed = parse_reply("Cerco subito. [ACTION:SEARCH:frigorifero]")
        assert parsed.text == "Cerco subito."
        assert parsed.directive == Directive(DirectiveType.SEARCH, "frigorifero")

    def test_tag_without_params(self):
        parsed = parse_reply("[ACTION:ALERTS] Ecco le scadenze.")
        assert parsed.text == "Ecco le scadenze."
        assert parsed.directive == Directive(DirectiveType.ALERTS, "")

    def test_first_directive_wins_all_tags_stripped(self):
        parsed = parse_reply("Ok [ACTION:SHOW:p1] e poi [ACTION:ALERTS]")
        assert parsed.directive.type == DirectiveType.SHOW
        assert "[ACTION" not in parsed.text

    def test_params_keep_inner_colons(self):
        parsed = parse_reply("[ACTION:START_MAINTENANCE:p1:Frigorifero farmaci]")
        assert parsed.directive == Directive(DirectiveType.START_MAINTENANCE, "p1:Frigorifero farmaci")

    def test_unknown_type_ignored_but_stripped(self):
        parsed = parse_reply("Fatto. [ACTION:DELETE_ALL:everything]")
        assert parsed.text == "Fatto."
        assert parsed.directive is None


class TestParseKeyValues:

    def test_pairs(self):
        assert parse_key_values("name=Frigo, category = Arredo,flag") == {
            "name": "Frigo",
            "category": "Arredo",
            "flag": "",
        }

    def test_empty(self):
        assert parse_key_values("") == {}
        assert parse_key_values(" , ,") == {}


class TestToAction:

    @pytest.mark.parametrize(
        "directive, expected",
        [
            (Directive(DirectiveType.SEARCH, "frigo"), SearchProducts(query="frigo")),
            (Directive(DirectiveType.SHOW, "p1"), ShowProduct(product_id="p1")),
            (Directive(DirectiveType.CREATE, "name=Frigo"), CreateProduct(prefill={"name": "Frigo"})),
            (Directive(DirectiveType.CREATE, ""), CreateProduct(prefill=None)),
            (Directive(DirectiveType.MAINTENANCE_LIST, "scadute"), ShowMaintenanceList(filter="scadute")),
            (Directive(DirectiveType.MAINTENANCE_LIST, ""), ShowMaintenanceList(filter=None)),
            (
                Directive(DirectiveType.EMAIL, "p1:Il frigo non raffredda"),
                PrepareEmail(product_id="p1", description="Il frigo non raffredda"),
            ),
            (Directive(DirectiveType.SCAN, "nuovo prodotto"), ScanBarcode(reason="nuovo prodotto")),
            (Directive(DirectiveType.ALERTS, ""), ShowOverdueAlerts()),
        ],
    )
    def test_mapping(self, directive, expected):
        assert to_action(directive) == expected

    @pytest.mark.parametrize(
        "directive",
        [
            Directive(DirectiveType.SEARCH, ""),
            Directive(DirectiveType.SHOW, ""),
            Directive(DirectiveType.EMAIL, ":solo descrizione"),
        ],
    )
    def test_missing_mandatory_param(self, directive):
        assert to_action(directive) is None

    @pytest.mark.parametrize("directive_type", sorted(TASK_DIRECTIVES, key=lambda d: d.value))
    def test_task_directives_have_no_action(self, directive_type):
        assert to_action(Directive(directive_type, "name=Frigo")) is None
