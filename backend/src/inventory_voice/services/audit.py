"""Audit trail for assistant operations."""

import threading
from typing import Any, Callable, Optional

from inventory_voice.contracts.audit import AuditEvent, AuditEventType
from inventory_voice.logging_config import get_logger, get_turn_id

logger = get_logger("inventory_voice.audit")

# Type alias for audit callback
AuditCallback = Callable[[AuditEvent], None]

REQUEST_PREVIEW_LENGTH = 50

_WARNING_EVENTS = {AuditEventType.SUSPICIOUS_INPUT, AuditEventType.RATE_LIMITED}


class AuditTrail:
    """
    In-memory audit trail with optional callback hook.

    Every event is also written to the structured log, at WARNING for
    suspicious input and rate limiting, ERROR for errors, INFO otherwise.
    The callback is the integration point for a persistent sink.
    """

    def __init__(
        self,
        callback: Optional[AuditCallback] = None,
        max_events: int = 500,
    ):
        if max_events <= 0:
            raise ValueError("max_events must be > 0")
        self._events: list[AuditEvent] = []
        self._callback = callback
        self._max_events = max_events
        self._lock = threading.Lock()

    def log(
        self,
        event_type: AuditEventType,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ) -> AuditEvent:
        """Record an event, evicting the oldest when full."""
        event = AuditEvent(
            event_type=event_type,
            message=message,
            details=dict(details or {}),
            turn_id=get_turn_id(),
        )
        with self._lock:
            if len(self._events) >= self._max_events:
                self._events.pop(0)
            self._events.append(event)

        fields = {"audit_event": event_type.value, "audit_message": message, **event.details}
        if event_type in _WARNING_EVENTS:
            logger.warning("audit", **fields)
        elif event_type == AuditEventType.ERROR:
            logger.error("audit", **fields)
        else:
            logger.info("audit", **fields)

        if self._callback is not None:
            self._callback(event)
        return event

    def log_request(self, text: str, suspicious: bool = False) -> AuditEvent:
        """Log a sanitized user request; only a short preview is kept."""
        return self.log(
            AuditEventType.SUSPICIOUS_INPUT if suspicious else AuditEventType.REQUEST,
            "User input",
            {
                "input": text[:REQUEST_PREVIEW_LENGTH],
                "length": len(text),
                "suspicious": suspicious,
            },
        )

    def log_response(self, text: str, has_action: bool) -> AuditEvent:
        return self.log(
            AuditEventType.RESPONSE,
            "Assistant response",
            {"length": len(text), "has_action": has_action},
        )

    def log_action(self, event_type: AuditEventType, action: Any) -> AuditEvent:
        """Log an action lifecycle event (requested, confirmed, rejected)."""
        return self.log(
            event_type,
            f"Action {getattr(action, 'type', type(action).__name__)}",
            {
                "action_type": getattr(action, "type", type(action).__name__),
                "risk_level": getattr(getattr(action, "risk_level", None), "value", None),
            },
        )

    def log_error(self, message: str, error: Optional[BaseException] = None) -> AuditEvent:
        details: dict[str, Any] = {}
        if error is not None:
            details["error_type"] = type(error).__name__
            code = getattr(error, "code", None)
            if code is not None:
                details["code"] = code
        return self.log(AuditEventType.ERROR, message, details)

    def get_events(self) -> list[AuditEvent]:
        """Return all recorded events (newest last)."""
        with self._lock:
            return list(self._events)

    def get_latest(self, n: int = 1) -> list[AuditEvent]:
        """Return the N most recent events."""
        with self._lock:
            return list(self._events[-n:])

    def by_type(self, event_type: AuditEventType) -> list[AuditEvent]:
        with self._lock:
            return [e for e in self._events if e.event_type == event_type]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    @property
    def count(self) -> int:
        """Number of events currently stored."""
        with self._lock:
            return len(self._events)
