"""
Exception hierarchy for the Logger Simple client.

Validation problems are raised before any network call. The four delivery
kinds (transport, malformed response, HTTP status, API rejection) are what the
retry policy retries; after the last attempt the final one reaches the caller
unchanged.
"""

import re

# Secrets that may be echoed back in server bodies or request reprs
REDACT_PATTERNS = [
    (re.compile(r'("api_key"\s*:\s*")[^"]*(")'), r"\1[REDACTED]\2"),
    (re.compile(r"api_key=\S+"), "api_key=[REDACTED]"),
    (re.compile(r"Bearer [A-Za-z0-9\-_\.]+"), "Bearer [REDACTED]"),
]


def redact_secrets(text: str | None, *secrets: str) -> str:
    """Strip API keys and bearer tokens from text destined for errors or logs."""
    if not text:
        return ""

    for pattern, replacement in REDACT_PATTERNS:
        text = pattern.sub(replacement, text)

    for secret in secrets:
        if secret:
            text = text.replace(secret, "[REDACTED]")

    return text


class LoggerSimpleError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(LoggerSimpleError, ValueError):
    """Missing credentials or invalid client options."""


class ValidationError(LoggerSimpleError, ValueError):
    """Invalid log level or empty message; nothing was sent."""


class DeliveryError(LoggerSimpleError):
    """A round trip to the logging service failed."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TransportError(DeliveryError):
    """The connection could not be completed (DNS, refused, timeout, TLS)."""


class MalformedResponse(DeliveryError):
    """The service answered with a body that is not JSON."""


class HttpError(DeliveryError):
    """The service answered with a non-2xx status."""


class ApiRejection(DeliveryError):
    """The service answered 2xx but reported ``success: false``."""
