"""
Error taxonomy for the voice inventory assistant.

Defines hierarchical exceptions with standardized attributes for consistent
error handling, logging, and user-facing messages throughout the assistant.

Each error class implements:
- code: String identifier for the error type
- message: Human-readable description
- context: Dict containing additional contextual information
- retry_hint: Boolean indicating if retry might succeed
"""
from __future__ import annotations
from typing import Any


class AssistantError(Exception):
    """Base exception for all assistant errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "UNKNOWN_ERROR",
        context: dict[str, Any] | None = None,
        retry_hint: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = dict(context) if context else {}
        self.retry_hint = retry_hint

    def to_dict(self) -> dict[str, Any]:
        """Serialize to structured dict."""
        return {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
            "retry_hint": self.retry_hint,
        }


class RateLimitedError(AssistantError):
    """Request budget for outbound oracle calls exhausted."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "RATE_LIMITED",
        context: dict[str, Any] | None = None,
        retry_hint: bool = True,
    ) -> None:
        super().__init__(message, code=code, context=context, retry_hint=retry_hint)


class InvalidInputError(AssistantError):
    """Input rejected by the input guard."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "INVALID_INPUT",
        context: dict[str, Any] | None = None,
        retry_hint: bool = False,
    ) -> None:
        super().__init__(message, code=code, context=context, retry_hint=retry_hint)


class SuspiciousInputError(AssistantError):
    """Input flagged by the input guard (processed, but audited)."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "SUSPICIOUS_INPUT",
        context: dict[str, Any] | None = None,
        retry_hint: bool = False,
    ) -> None:
        super().__init__(message, code=code, context=context, retry_hint=retry_hint)


class OracleUnavailableError(AssistantError):
    """Text-completion oracle unreachable (transport failure or timeout)."""

    def __init__(
        self,
        message: str,
        *,
        provider: str = "unknown",
        code: str = "ORACLE_UNAVAILABLE",
        context: dict[str, Any] | None = None,
        retry_hint: bool = True,
    ) -> None:
        ctx = dict(context) if context else {}
        ctx["provider"] = provider
        super().__init__(message, code=code, context=ctx, retry_hint=retry_hint)


class OracleMalformedError(AssistantError):
    """Oracle answered, but the answer is empty, truncated or unparseable."""

    def __init__(
        self,
        message: str,
        *,
        reason: str = "unparseable",
        code: str = "ORACLE_MALFORMED",
        context: dict[str, Any] | None = None,
        retry_hint: bool = True,
    ) -> None:
        ctx = dict(context) if context else {}
        ctx["reason"] = reason
        super().__init__(message, code=code, context=ctx, retry_hint=retry_hint)

    @property
    def reason(self) -> str:
        return str(self.context.get("reason", "unparseable"))


class ResolutionFailureError(AssistantError):
    """Catalog lookup raised while resolving an entity name."""

    def __init__(
        self,
        message: str,
        *,
        entity_kind: str = "unknown",
        code: str = "RESOLUTION_FAILURE",
        context: dict[str, Any] | None = None,
        retry_hint: bool = False,
    ) -> None:
        ctx = dict(context) if context else {}
        ctx["entity_kind"] = entity_kind
        super().__init__(message, code=code, context=ctx, retry_hint=retry_hint)


class ConfigurationError(AssistantError):
    """Missing or invalid configuration."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "CONFIGURATION_ERROR",
        context: dict[str, Any] | None = None,
        retry_hint: bool = False,
    ) -> None:
        super().__init__(message, code=code, context=context, retry_hint=retry_hint)


class TurnInProgressError(AssistantError):
    """A turn was submitted while another turn of the same session is still running."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "TURN_IN_PROGRESS",
        context: dict[str, Any] | None = None,
        retry_hint: bool = True,
    ) -> None:
        super().__init__(message, code=code, context=context, retry_hint=retry_hint)
