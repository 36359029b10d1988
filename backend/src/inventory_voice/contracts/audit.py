"""Audit records for assistant requests, responses and actions."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    REQUEST = "request"
    RESPONSE = "response"
    ACTION_REQUESTED = "action_requested"
    ACTION_CONFIRMED = "action_confirmed"
    ACTION_REJECTED = "action_rejected"
    SUSPICIOUS_INPUT = "suspicious_input"
    RATE_LIMITED = "rate_limited"
    ERROR = "error"


class AuditEvent(BaseModel):
    """Single audit record."""

    # Identity
    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    turn_id: str | None = None

    event_type: AuditEventType
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
