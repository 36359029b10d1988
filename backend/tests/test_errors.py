"""
Unit tests for the AssistantError hierarchy.
"""
import pytest

from inventory_voice.errors import (
    AssistantError,
    ConfigurationError,
    InvalidInputError,
    OracleMalformedError,
    OracleUnavailableError,
    RateLimitedError,
    ResolutionFailureError,
    SuspiciousInputError,
    TurnInProgressError,
)


class TestAssistantErrorBase:
    """Test the base AssistantError class functionality."""

    def test_initialization_minimal(self):
        error = AssistantError("Test message")
        assert error.code == "UNKNOWN_ERROR"
        assert error.message == "Test message"
        assert error.context == {}
        assert not error.retry_hint

    def test_initialization_with_all_params(self):
        context = {"key": "value"}
        error = AssistantError("Test message", code="CUSTOM_CODE", context=context, retry_hint=True)
        assert error.code == "CUSTOM_CODE"
        assert error.context == context
        assert error.retry_hint is True

    def test_context_is_copied(self):
        """Mutating the caller's dict after construction does not leak in."""
        context = {"key": "value"}
        error = AssistantError("Test message", context=context)
        context["key"] = "changed"
        assert error.context == {"key": "value"}

    def test_to_dict_serialization(self):
        context = {"param1": "val1"}
        error = AssistantError("Test message", code="SERIALIZE_TEST", context=context)
        assert error.to_dict() == {
            "code": "SERIALIZE_TEST",
            "message": "Test message",
            "context": context,
            "retry_hint": False,
        }

    def test_str_representation(self):
        assert str(AssistantError("Test message")) == "Test message"


class TestDefaults:
    """Each subclass carries its own code and retry hint."""

    @pytest.mark.parametrize(
        "error_cls, code, retry_hint",
        [
            (RateLimitedError, "RATE_LIMITED", True),
            (InvalidInputError, "INVALID_INPUT", False),
            (SuspiciousInputError, "SUSPICIOUS_INPUT", False),
            (OracleUnavailableError, "ORACLE_UNAVAILABLE", True),
            (OracleMalformedError, "ORACLE_MALFORMED", True),
            (ResolutionFailureError, "RESOLUTION_FAILURE", False),
            (ConfigurationError, "CONFIGURATION_ERROR", False),
            (TurnInProgressError, "TURN_IN_PROGRESS", True),
        ],
    )
    def test_default_code_and_retry_hint(self, error_cls, code, retry_hint):
        error = error_cls("test error")
        assert error.code == code
        assert error.retry_hint is retry_hint
        assert isinstance(error, AssistantError)

    def test_custom_code_overrides_default(self):
        error = ConfigurationError("Config validation failed", code="CUSTOM_CONFIG_ERROR")
        assert error.code == "CUSTOM_CONFIG_ERROR"


class TestContextFields:
    """Subclasses that record extra context."""

    def test_oracle_unavailable_records_provider(self):
        error = OracleUnavailableError("Connection refused", provider="ollama")
        assert error.context["provider"] == "ollama"
        assert error.to_dict()["context"]["provider"] == "ollama"

    def test_oracle_unavailable_default_provider(self):
        assert OracleUnavailableError("boom").context["provider"] == "unknown"

    def test_oracle_malformed_reason(self):
        error = OracleMalformedError("cut off", reason="truncated")
        assert error.reason == "truncated"
        assert error.context["reason"] == "truncated"

    def test_oracle_malformed_keeps_extra_context(self):
        error = OracleMalformedError("empty", reason="empty", context={"model": "m"})
        assert error.context == {"model": "m", "reason": "empty"}

    def test_resolution_failure_entity_kind(self):
        error = ResolutionFailureError("catalog down", entity_kind="maintainer")
        assert error.context["entity_kind"] == "maintainer"


class TestErrorHierarchy:

    def test_all_catchable_via_base(self):
        errors = [
            RateLimitedError("test"),
            InvalidInputError("test"),
            OracleUnavailableError("test"),
            TurnInProgressError("test"),
        ]
        for error in errors:
            with pytest.raises(AssistantError):
                raise error
