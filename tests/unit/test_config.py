"""Tests for credentials, client options and environment configuration."""

import dataclasses

import pytest

from logger_simple.config import (
    DEFAULT_API_URL,
    USER_AGENT,
    ClientOptions,
    Credentials,
    credentials_from_env,
    options_from_env,
)
from logger_simple.errors import ConfigurationError


class TestCredentials:
    def test_requires_both_fields(self):
        with pytest.raises(ConfigurationError):
            Credentials(app_id="", api_key="k")
        with pytest.raises(ConfigurationError):
            Credentials(app_id="a", api_key="")

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            Credentials(app_id="", api_key="")

    def test_immutable(self):
        creds = Credentials(app_id="a", api_key="k")
        with pytest.raises(dataclasses.FrozenInstanceError):
            creds.api_key = "other"


class TestClientOptions:
    def test_defaults(self):
        options = ClientOptions()

        assert options.base_url == DEFAULT_API_URL
        assert options.timeout == 30.0
        assert options.connect_timeout == 10.0
        assert options.retry_attempts == 3
        assert options.retry_delay == 1.0
        assert options.max_log_length == 10000
        assert options.crash_capture_enabled is True
        assert options.tls_verify is True
        assert options.user_agent == USER_AGENT

    def test_merged_overrides(self):
        options = ClientOptions.merged({"timeout": 5.0}, tls_verify=False)

        assert options.timeout == 5.0
        assert options.tls_verify is False
        assert options.retry_attempts == 3

    def test_merged_rejects_unknown(self):
        with pytest.raises(ConfigurationError, match="retry_count"):
            ClientOptions.merged({"retry_count": 2})

    @pytest.mark.parametrize(
        "overrides",
        [{"retry_attempts": 0}, {"retry_delay": -1}, {"max_log_length": 0}, {"base_url": ""}],
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ConfigurationError):
            ClientOptions.merged(overrides)

    def test_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            ClientOptions().retry_attempts = 10


class TestEnvironment:
    def test_credentials_from_env(self, monkeypatch):
        monkeypatch.setenv("LOGGER_SIMPLE_APP_ID", "app")
        monkeypatch.setenv("LOGGER_SIMPLE_API_KEY", "key")

        assert credentials_from_env() == Credentials(app_id="app", api_key="key")

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.setenv("LOGGER_SIMPLE_APP_ID", "app")
        monkeypatch.delenv("LOGGER_SIMPLE_API_KEY", raising=False)

        with pytest.raises(ConfigurationError, match="LOGGER_SIMPLE_API_KEY"):
            credentials_from_env()

    def test_options_from_env_uses_api_url(self, monkeypatch):
        monkeypatch.setenv("LOGGER_SIMPLE_API_URL", "https://logs.internal/")

        assert options_from_env().base_url == "https://logs.internal/"

    def test_explicit_base_url_wins(self, monkeypatch):
        monkeypatch.setenv("LOGGER_SIMPLE_API_URL", "https://logs.internal/")

        assert options_from_env(base_url="https://other/").base_url == "https://other/"
