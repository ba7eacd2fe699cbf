"""
Configuration Test Suite
"""

import logging

import pytest

from mpc_verify.config import DEFAULT_API_URL, Settings, load_settings
from mpc_verify.engine.exceptions import ConfigurationError
from mpc_verify.utils import logger, setup_logger, short


class TestLoadSettings:
    """Environment parsing."""

    def test_defaults(self):
        settings = load_settings({})
        assert settings.planbok_api_url == DEFAULT_API_URL
        assert settings.planbok_api_key == ""
        assert settings.organization_public_key == ""
        assert settings.request_timeout == 30.0
        assert settings.log_level == "INFO"

    def test_values_from_environment(self):
        settings = load_settings({
            "PLANBOK_API_URL": "https://custody.example/v2/",
            "PLANBOK_API_KEY": "key-123",
            "ORGANIZATION_PK": "org-pk",
            "PLANBOK_REQUEST_TIMEOUT": "5",
            "MPC_VERIFY_LOG_LEVEL": "DEBUG",
        })
        assert settings.api_base_url == "https://custody.example/v2"
        assert settings.require_api_key() == "key-123"
        assert settings.organization_public_key == "org-pk"
        assert settings.request_timeout == 5.0
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("timeout", ["abc", "0", "-3"])
    def test_invalid_timeout(self, timeout):
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_settings({"PLANBOK_REQUEST_TIMEOUT": timeout})

    def test_missing_api_key(self):
        with pytest.raises(ConfigurationError, match="PLANBOK_API_KEY"):
            Settings().require_api_key()


class TestLoggingHelpers:
    """Package logger setup."""

    def test_setup_logger_sets_level(self):
        setup_logger("debug")
        assert logger.level == logging.DEBUG
        setup_logger("not-a-level")
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1

    def test_short(self):
        assert short("abc") == "abc"
        assert short("") == ""
        assert short("a" * 10 + "b" * 30 + "c" * 10) == "a" * 10 + "..." + "c" * 10
