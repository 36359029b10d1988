"""Extract the embedded action tag from an oracle answer."""

from __future__ import annotations

import re
from enum import Enum
from typing import NamedTuple

from inventory_voice.contracts.actions import (
    AssistantAction,
    CreateProduct,
    PrepareEmail,
    ScanBarcode,
    SearchProducts,
    ShowMaintenanceList,
    ShowOverdueAlerts,
    ShowProduct,
)
from inventory_voice.logging_config import get_logger

logger = get_logger(__name__)

ACTION_TAG = re.compile(r"\[ACTION:([A-Z_]+):?([^\]]*)\]")


class DirectiveType(str, Enum):
    SEARCH = "SEARCH"
    SHOW = "SHOW"
    CREATE = "CREATE"
    START_PRODUCT_CREATION = "START_PRODUCT_CREATION"
    START_MAINTENANCE = "START_MAINTENANCE"
    START_MAINTAINER_CREATION = "START_MAINTAINER_CREATION"
    UPDATE_TASK = "UPDATE_TASK"
    MAINTENANCE_LIST = "MAINTENANCE_LIST"
    EMAIL = "EMAIL"
    SCAN = "SCAN"
    ALERTS = "ALERTS"


# Directives handled by the orchestrator itself instead of the caller.
TASK_DIRECTIVES = frozenset(
    {
        DirectiveType.START_PRODUCT_CREATION,
        DirectiveType.START_MAINTENANCE,
        DirectiveType.START_MAINTAINER_CREATION,
        DirectiveType.UPDATE_TASK,
    }
)


class Directive(NamedTuple):
    type: DirectiveType
    params: str


class ParsedReply(NamedTuple):
    """User-visible text with every tag stripped, plus the first known directive."""

    text: str
    directive: Directive | None


def parse_key_values(params: str) -> dict[str, str]:
    """Parse ``k=v,k2=v2``; pieces without ``=`` get an empty value."""
    result: dict[str, str] = {}
    for piece in params.split(","):
        if not piece.strip():
            continue
        key, _, value = piece.partition("=")
        if key.strip():
            result[key.strip()] = value.strip()
    return result


def parse_reply(text: str) -> ParsedReply:
    match = ACTION_TAG.search(text)
    if match is None:
        return ParsedReply(text.strip(), None)

    clean = ACTION_TAG.sub("", text).strip()
    try:
        directive_type = DirectiveType(match.group(1))
    except ValueError:
        logger.info("unknown_directive_ignored", directive=match.group(1))
        return ParsedReply(clean, None)
    return ParsedReply(clean, Directive(directive_type, match.group(2).strip()))


def to_action(directive: Directive) -> AssistantAction | None:
    """
    Map a caller-facing directive to its action.

    Task directives, and directives missing a mandatory parameter, map to None.
    """
    params = directive.params
    kind = directive.type
    if kind == DirectiveType.SEARCH:
        return SearchProducts(query=params) if params else None
    if kind == DirectiveType.SHOW:
        return ShowProduct(product_id=params) if params else None
    if kind == DirectiveType.CREATE:
        return CreateProduct(prefill=parse_key_values(params) or None)
    if kind == DirectiveType.MAINTENANCE_LIST:
        return ShowMaintenanceList(filter=params or None)
    if kind == DirectiveType.EMAIL:
        product_id, _, description = params.partition(":")
        if not product_id.strip():
            return None
        return PrepareEmail(product_id=product_id.strip(), description=description.strip())
    if kind == DirectiveType.SCAN:
        return ScanBarcode(reason=params)
    if kind == DirectiveType.ALERTS:
        return ShowOverdueAlerts()
    return None
