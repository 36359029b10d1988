"""Conversation memory threaded through every turn."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from inventory_voice.contracts.actions import AssistantAction, RiskLevel
from inventory_voice.contracts.catalog import Product
from inventory_voice.contracts.tasks import ActiveTask

MAX_EXCHANGES = 6


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class SpeakerHint(str, Enum):
    """Who is probably speaking. There is no login, so it is inferred from phrasing."""
    UNKNOWN = "unknown"
    LIKELY_MAINTAINER = "likely_maintainer"  # first person: "ho riparato..."
    LIKELY_OPERATOR = "likely_operator"      # third person: "il tecnico ha riparato..."


class Exchange(BaseModel):
    """Single user or assistant utterance."""

    model_config = ConfigDict(frozen=True)

    role: Role
    text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PendingAction(BaseModel):
    """State-changing action parked until the user confirms it."""

    model_config = ConfigDict(frozen=True)

    action: AssistantAction
    risk_level: RiskLevel

    @classmethod
    def of(cls, action: AssistantAction) -> "PendingAction":
        return cls(action=action, risk_level=action.risk_level)


class FieldClarification(BaseModel):
    """Catalog match offered for a task field ('Intendi X?') and not yet accepted."""

    model_config = ConfigDict(frozen=True)

    field: str
    candidate_id: str
    candidate_name: str
    original_query: str


class DialogueState(BaseModel):
    """
    Immutable snapshot of one conversation.

    Every turn reads a snapshot and produces a new one; nothing is updated in
    place. ``awaiting_confirmation`` is true exactly when ``pending_action`` is set.
    """

    model_config = ConfigDict(frozen=True)

    current_product: Optional[Product] = None
    last_search_results: tuple[Product, ...] = ()
    pending_action: Optional[PendingAction] = None
    awaiting_confirmation: bool = False
    active_task: Optional[ActiveTask] = None
    pending_clarification: Optional[FieldClarification] = None
    exchanges: tuple[Exchange, ...] = ()
    speaker_hint: SpeakerHint = SpeakerHint.UNKNOWN

    @model_validator(mode="after")
    def check_invariants(self) -> "DialogueState":
        if self.awaiting_confirmation != (self.pending_action is not None):
            raise ValueError("awaiting_confirmation must be true exactly when pending_action is set")
        if self.pending_clarification is not None and self.active_task is None:
            raise ValueError("pending_clarification needs an active task")
        if len(self.exchanges) > MAX_EXCHANGES:
            raise ValueError(f"at most {MAX_EXCHANGES} exchanges are kept")
        return self

    @classmethod
    def empty(cls) -> "DialogueState":
        return cls()

    @property
    def has_active_task(self) -> bool:
        return self.active_task is not None

    @property
    def is_active_task_complete(self) -> bool:
        return self.active_task is not None and self.active_task.is_complete

    def add_exchange(self, role: Role, text: str) -> "DialogueState":
        """Append an exchange, evicting the oldest beyond MAX_EXCHANGES."""
        exchanges = (*self.exchanges, Exchange(role=role, text=text))[-MAX_EXCHANGES:]
        return self.model_copy(update={"exchanges": exchanges})

    def with_pending(self, action: AssistantAction) -> "DialogueState":
        return self.model_copy(
            update={"pending_action": PendingAction.of(action), "awaiting_confirmation": True}
        )

    def restore_pending(self, pending: PendingAction) -> "DialogueState":
        """Put back a pending action exactly as it was."""
        return self.model_copy(update={"pending_action": pending, "awaiting_confirmation": True})

    def clear_pending(self) -> "DialogueState":
        return self.model_copy(update={"pending_action": None, "awaiting_confirmation": False})

    def with_task(self, task: ActiveTask) -> "DialogueState":
        return self.model_copy(update={"active_task": task})

    def clear_task(self) -> "DialogueState":
        return self.model_copy(update={"active_task": None, "pending_clarification": None})

    def with_clarification(self, clarification: FieldClarification) -> "DialogueState":
        return self.model_copy(update={"pending_clarification": clarification})

    def clear_clarification(self) -> "DialogueState":
        return self.model_copy(update={"pending_clarification": None})

    def with_speaker_hint(self, hint: SpeakerHint) -> "DialogueState":
        return self.model_copy(update={"speaker_hint": hint})

    def with_current_product(self, product: Optional[Product]) -> "DialogueState":
        return self.model_copy(update={"current_product": product})

    def with_search_results(self, products: list[Product] | tuple[Product, ...]) -> "DialogueState":
        return self.model_copy(update={"last_search_results": tuple(products)})

    def history_before_current(self, limit: int = 5) -> tuple[Exchange, ...]:
        """Most recent exchanges, excluding the utterance being processed."""
        return self.exchanges[:-1][-limit:]
