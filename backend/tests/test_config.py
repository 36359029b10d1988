"""Tests for Pydantic Settings configuration."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from inventory_voice.config import Settings, get_settings

_ENV_KEYS = [
    "ORACLE_BASE_URL",
    "ORACLE_MODEL",
    "ORACLE_TIMEOUT_SECONDS",
    "RATE_LIMIT_MAX_REQUESTS",
    "RATE_LIMIT_WINDOW_SECONDS",
    "STT_POSTPROCESS_ENABLED",
    "AUDIT_MAX_EVENTS",
    "LOG_LEVEL",
]


class TestSettingsDefaults:
    """Test Settings with no environment variables (default values)."""

    def test_all_defaults(self):
        get_settings.cache_clear()
        with patch.dict(os.environ, {}, clear=False):
            for key in _ENV_KEYS:
                os.environ.pop(key, None)
            settings = Settings(_env_file=None)

        assert settings.oracle_base_url == "http://localhost:11434"
        assert settings.oracle_model == "qwen3-coder-next"
        assert settings.oracle_timeout_seconds == 30.0
        assert settings.rate_limit_max_requests == 15
        assert settings.rate_limit_window_seconds == 60.0
        assert settings.stt_postprocess_enabled is True
        assert settings.audit_max_events == 500
        assert settings.log_level == "INFO"

    def test_to_dict(self):
        get_settings.cache_clear()
        config_dict = Settings(_env_file=None).to_dict()
        assert isinstance(config_dict, dict)
        for key in (k.lower() for k in _ENV_KEYS):
            assert key in config_dict


class TestSettingsEnvOverrides:
    """Test Settings with environment variable overrides."""

    def test_bool_parsing(self):
        get_settings.cache_clear()
        for raw, expected in [("true", True), ("1", True), ("no", False), ("off", False)]:
            with patch.dict(os.environ, {"STT_POSTPROCESS_ENABLED": raw}):
                settings = Settings(_env_file=None)
                assert settings.stt_postprocess_enabled is expected, f"Failed for {raw}"

    def test_string_and_numeric_env_vars(self):
        get_settings.cache_clear()
        with patch.dict(
            os.environ,
            {
                "ORACLE_BASE_URL": "http://remote-ollama:11434",
                "ORACLE_MODEL": "llama3",
                "RATE_LIMIT_MAX_REQUESTS": "3",
                "RATE_LIMIT_WINDOW_SECONDS": "10",
            },
        ):
            settings = Settings(_env_file=None)
            assert settings.oracle_base_url == "http://remote-ollama:11434"
            assert settings.oracle_model == "llama3"
            assert settings.rate_limit_max_requests == 3
            assert settings.rate_limit_window_seconds == 10.0

    def test_case_insensitive_env_vars(self):
        get_settings.cache_clear()
        with patch.dict(os.environ, {"oracle_model": "lowercase-key"}):
            assert Settings(_env_file=None).oracle_model == "lowercase-key"

    def test_extra_env_vars_ignored(self):
        get_settings.cache_clear()
        with patch.dict(os.environ, {"RANDOM_VAR": "should_be_ignored"}):
            settings = Settings(_env_file=None)
            assert hasattr(settings, "random_var") is False


class TestSettingsValidation:
    """Test Settings validation error handling."""

    @pytest.mark.parametrize(
        "field",
        ["oracle_timeout_seconds", "rate_limit_max_requests", "rate_limit_window_seconds", "audit_max_events"],
    )
    def test_non_positive_values_rejected(self, field):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: 0})

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="LOUD")

    def test_log_level_normalized_to_upper(self):
        assert Settings(_env_file=None, log_level="warning").log_level == "WARNING"


class TestGetSettingsFunction:
    """Test get_settings() singleton function."""

    def test_returns_singleton(self):
        get_settings.cache_clear()
        assert get_settings() is get_settings()

    def test_cache_can_be_cleared(self):
        get_settings.cache_clear()
        settings1 = get_settings()
        get_settings.cache_clear()
        settings2 = get_settings()
        assert settings1 is not settings2
