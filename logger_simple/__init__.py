"""
Logger Simple - Python client for the Logger Simple logging API.

This package provides:
- LoggerSimple: log delivery with retries, connection health, metrics and events
- LoggerSimpleHandler / setup_logging: bridge from the standard ``logging`` module
- CrashCapture: uncaught exceptions and fatal errors reported as critical logs

Usage:
    from logger_simple import create_logger

    log = create_logger("my-app", "sk_xxx")
    log.log_info("Service started")
    log.on("logError", lambda event: print(event.error))

    try:
        charge(card)
    except PaymentError as e:
        log.log_exception(e)
"""

from .client import LoggerSimple, create_logger, from_env
from .codec import LogLevel, StructuredContext, TextContext
from .config import DEFAULT_API_URL, VERSION, ClientOptions, Credentials
from .crash import CrashCapture, CrashHookRegistrar, FatalDiagnostic, SysCrashHookRegistrar
from .errors import (
    ApiRejection,
    ConfigurationError,
    DeliveryError,
    HttpError,
    LoggerSimpleError,
    MalformedResponse,
    TransportError,
    ValidationError,
)
from .events import EventKind
from .handler import LoggerSimpleHandler, setup_logging
from .state import MetricsSnapshot

__all__ = [
    # Client
    "LoggerSimple",
    "create_logger",
    "from_env",
    "ClientOptions",
    "Credentials",
    "DEFAULT_API_URL",
    "LogLevel",
    "TextContext",
    "StructuredContext",
    "EventKind",
    "MetricsSnapshot",
    # Crash capture
    "CrashCapture",
    "CrashHookRegistrar",
    "FatalDiagnostic",
    "SysCrashHookRegistrar",
    # Logging bridge
    "LoggerSimpleHandler",
    "setup_logging",
    # Errors
    "LoggerSimpleError",
    "ConfigurationError",
    "ValidationError",
    "DeliveryError",
    "TransportError",
    "MalformedResponse",
    "HttpError",
    "ApiRejection",
]

__version__ = VERSION
