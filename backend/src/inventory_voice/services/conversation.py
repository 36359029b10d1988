"""Holder for the single conversation of an assistant instance."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, Optional

from inventory_voice.contracts.actions import TurnReply, TurnResult
from inventory_voice.contracts.catalog import Product
from inventory_voice.contracts.dialogue import DialogueState
from inventory_voice.contracts.tasks import ActiveTask
from inventory_voice.errors import TurnInProgressError
from inventory_voice.logging_config import get_logger

if TYPE_CHECKING:
    from inventory_voice.orchestration.orchestrator import TaskOrchestrator

logger = get_logger(__name__)


class AssistantSession:
    """
    Single-writer owner of the conversation's DialogueState.

    Each turn snapshots the state, runs the orchestrator on the snapshot and
    commits the returned state. A turn that raises (or is abandoned) commits
    nothing. Turns are serialized: submitting one while another is running
    raises TurnInProgressError instead of queueing.
    """

    def __init__(self, orchestrator: "TaskOrchestrator", state: Optional[DialogueState] = None):
        self._orchestrator = orchestrator
        self._state = state or DialogueState.empty()
        self._state_lock = threading.Lock()
        self._turn_lock = threading.Lock()

    @property
    def state(self) -> DialogueState:
        with self._state_lock:
            return self._state

    def _commit(self, state: DialogueState) -> None:
        with self._state_lock:
            self._state = state

    @contextmanager
    def _turn(self) -> Iterator[DialogueState]:
        if not self._turn_lock.acquire(blocking=False):
            raise TurnInProgressError("A turn is already being processed for this session")
        try:
            yield self.state
        finally:
            self._turn_lock.release()

    def send(self, utterance: str) -> TurnResult:
        """Process one utterance and commit the resulting state."""
        with self._turn() as snapshot:
            new_state, result = self._orchestrator.advance(snapshot, utterance)
            self._commit(new_state)
            return result

    def send_barcode(self, code: str) -> TurnResult:
        with self._turn() as snapshot:
            new_state, result = self._orchestrator.advance_barcode(snapshot, code)
            self._commit(new_state)
            return result

    def present_search_results(self, utterance: str, products: list[Product]) -> TurnResult:
        with self._turn() as snapshot:
            new_state, result = self._orchestrator.present_search_results(snapshot, utterance, products)
            self._commit(new_state)
            return result

    def suggest(self) -> TurnReply:
        with self._turn() as snapshot:
            return self._orchestrator.suggest(snapshot)

    def set_current_product(self, product: Optional[Product]) -> None:
        with self._turn() as snapshot:
            self._commit(snapshot.with_current_product(product))

    def cancel_pending_action(self) -> None:
        with self._turn() as snapshot:
            self._commit(self._orchestrator.cancel_pending(snapshot))

    def has_pending_action(self) -> bool:
        return self.state.awaiting_confirmation

    @property
    def active_task(self) -> Optional[ActiveTask]:
        return self.state.active_task

    def remaining_requests(self) -> int:
        return self._orchestrator.rate_limiter.remaining_requests()

    def reset(self) -> None:
        """End the session: back to an empty state."""
        with self._turn():
            self._commit(DialogueState.empty())
        logger.info("session_reset")
