"""
Configuration for the Logger Simple client.

Credentials and options are frozen after construction; reads need no locking.

Environment variables:
    LOGGER_SIMPLE_APP_ID: Application identifier (required)
    LOGGER_SIMPLE_API_KEY: API key (required)
    LOGGER_SIMPLE_API_URL: Service root (optional)
"""

import os
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any

from .errors import ConfigurationError

VERSION = "1.0.0"
USER_AGENT = f"Logger-Simple-Python/{VERSION}"

DEFAULT_API_URL = "https://api.logger-simple.com/"


@dataclass(frozen=True)
class Credentials:
    """Application identity sent with every request."""

    app_id: str
    api_key: str = field(repr=False)  # never shown in reprs or logs

    def __post_init__(self):
        if not self.app_id or not self.api_key:
            raise ConfigurationError("app_id and api_key are required")


@dataclass(frozen=True)
class ClientOptions:
    """Transport, retry and capture options. Durations are in seconds."""

    base_url: str = DEFAULT_API_URL
    timeout: float = 30.0  # Per-attempt read timeout
    connect_timeout: float = 10.0
    retry_attempts: int = 3
    retry_delay: float = 1.0  # Linear backoff base: delay * attempt
    max_log_length: int = 10000
    crash_capture_enabled: bool = True
    tls_verify: bool = True
    user_agent: str = USER_AGENT

    def __post_init__(self):
        if self.retry_attempts < 1:
            raise ConfigurationError(f"retry_attempts must be >= 1, got {self.retry_attempts}")
        if self.retry_delay < 0:
            raise ConfigurationError(f"retry_delay must be >= 0, got {self.retry_delay}")
        if self.max_log_length < 1:
            raise ConfigurationError(f"max_log_length must be >= 1, got {self.max_log_length}")
        if not self.base_url:
            raise ConfigurationError("base_url cannot be empty")

    @classmethod
    def merged(cls, overrides: dict[str, Any] | None = None, **kwargs) -> "ClientOptions":
        """Build options from the defaults with ``overrides`` applied on top."""
        values = {**(overrides or {}), **kwargs}
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown client option(s): {', '.join(unknown)}")
        return replace(cls(), **values)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def credentials_from_env() -> Credentials:
    """Read credentials from ``LOGGER_SIMPLE_APP_ID`` / ``LOGGER_SIMPLE_API_KEY``."""
    app_id = os.environ.get("LOGGER_SIMPLE_APP_ID")
    api_key = os.environ.get("LOGGER_SIMPLE_API_KEY")

    if not app_id:
        raise ConfigurationError("LOGGER_SIMPLE_APP_ID environment variable required")
    if not api_key:
        raise ConfigurationError("LOGGER_SIMPLE_API_KEY environment variable required")

    return Credentials(app_id=app_id, api_key=api_key)


def options_from_env(**overrides) -> ClientOptions:
    """Client options with ``LOGGER_SIMPLE_API_URL`` applied when set."""
    api_url = os.environ.get("LOGGER_SIMPLE_API_URL")
    if api_url and "base_url" not in overrides:
        overrides["base_url"] = api_url
    return ClientOptions.merged(overrides)
