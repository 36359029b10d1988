"""Actions the assistant can hand to the caller, their risk levels, and turn results."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class RiskLevel(str, Enum):
    """How much confirmation an action needs before the caller runs it."""
    LOW = "low"        # Read-only: executed directly
    MEDIUM = "medium"  # Creates or changes records: simple confirmation
    HIGH = "high"      # Leaves the app (email) or destroys data: explicit confirmation


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)

    risk_level: ClassVar[RiskLevel] = RiskLevel.LOW


class SearchProducts(_Action):
    type: Literal["search"] = "search"
    query: str


class ShowProduct(_Action):
    type: Literal["show"] = "show"
    product_id: str


class CreateProduct(_Action):
    """Open the product creation form, optionally prefilled."""

    type: Literal["create"] = "create"
    prefill: dict[str, str] | None = None

    risk_level: ClassVar[RiskLevel] = RiskLevel.MEDIUM


class ShowMaintenanceList(_Action):
    type: Literal["list"] = "list"
    filter: str | None = None


class PrepareEmail(_Action):
    """Send a maintenance request email to the product's maintainer."""

    type: Literal["email"] = "email"
    product_id: str
    description: str = ""

    risk_level: ClassVar[RiskLevel] = RiskLevel.HIGH


class ScanBarcode(_Action):
    type: Literal["scan"] = "scan"
    reason: str = ""


class ShowOverdueAlerts(_Action):
    type: Literal["alert"] = "alert"


class RegisterMaintenance(_Action):
    """Persist a completed maintenance registration."""

    type: Literal["register_maintenance"] = "register_maintenance"
    fields: dict[str, str]

    risk_level: ClassVar[RiskLevel] = RiskLevel.MEDIUM


class CreateMaintainer(_Action):
    """Persist a completed maintainer/supplier record."""

    type: Literal["create_maintainer"] = "create_maintainer"
    fields: dict[str, str]

    risk_level: ClassVar[RiskLevel] = RiskLevel.MEDIUM


AssistantAction = Annotated[
    Union[
        SearchProducts,
        ShowProduct,
        CreateProduct,
        ShowMaintenanceList,
        PrepareEmail,
        ScanBarcode,
        ShowOverdueAlerts,
        RegisterMaintenance,
        CreateMaintainer,
    ],
    Field(discriminator="type"),
]


class ErrorType(str, Enum):
    """User-facing failure categories."""
    GENERIC = "generic"
    RATE_LIMITED = "rate_limited"
    INVALID_INPUT = "invalid_input"
    SUSPICIOUS_INPUT = "suspicious_input"


class TurnReply(BaseModel):
    """Plain spoken answer, nothing to execute."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["reply"] = "reply"
    text: str


class TurnAction(BaseModel):
    """Action the caller should execute now."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["action"] = "action"
    action: AssistantAction
    text: str


class TurnConfirmation(BaseModel):
    """Action parked until the user explicitly confirms it."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["confirmation"] = "confirmation"
    action: AssistantAction
    text: str
    confirmation_message: str


class TurnFailure(BaseModel):
    """Turn refused (rate limit, invalid input). Short and user-facing."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["failure"] = "failure"
    message: str
    error_type: ErrorType = ErrorType.GENERIC


TurnResult = Union[TurnReply, TurnAction, TurnConfirmation, TurnFailure]
