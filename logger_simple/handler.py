"""
Bridge from the stdlib ``logging`` module to Logger Simple.

Usage:
    from logger_simple import setup_logging

    client = setup_logging(app_id="my-app", api_key=os.environ["LOGGER_SIMPLE_API_KEY"])

    import logging
    logger = logging.getLogger(__name__)
    logger.warning("Disk almost full", extra={"mount": "/var", "free_pct": 4})
"""

import contextvars
import json
import logging
from typing import Any

from .client import LoggerSimple
from .codec import LogLevel

# Loggers whose records are produced by delivery itself
IGNORED_LOGGERS = ("logger_simple", "httpx", "httpcore")

# True while the current thread (or task) is delivering through a handler
_delivering: contextvars.ContextVar[bool] = contextvars.ContextVar("logger_simple_delivering", default=False)

# Attributes set by LogRecord itself, plus the two Formatter adds
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


def level_for(levelno: int) -> LogLevel:
    """Map a stdlib logging level onto a Logger Simple level."""
    if levelno >= logging.CRITICAL:
        return LogLevel.CRITICAL
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.WARNING:
        return LogLevel.WARNING
    return LogLevel.INFO


def is_ignored(name: str) -> bool:
    return any(name == prefix or name.startswith(prefix + ".") for prefix in IGNORED_LOGGERS)


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Logger name plus every ``extra=`` field that encodes as JSON."""
    context: dict[str, Any] = {"logger": record.name}
    for key, value in vars(record).items():
        if key in _RECORD_ATTRS or key.startswith("_"):
            continue
        try:
            json.dumps(value)
        except (TypeError, ValueError):
            continue
        context[key] = value
    return context


class LoggerSimpleHandler(logging.Handler):
    """
    Ships log records through a ``LoggerSimple`` client.

    Delivery is synchronous. Records emitted on the same thread while a
    delivery is running (HTTP client logs, event subscribers that log) are
    dropped, so the handler can sit on the root logger.
    """

    def __init__(self, client: LoggerSimple, min_level: int = logging.INFO):
        super().__init__(level=min_level)
        self.client = client

    def emit(self, record: logging.LogRecord):
        if is_ignored(record.name) or _delivering.get():
            return

        token = _delivering.set(True)
        try:
            self.client.send_log(level_for(record.levelno), self.format(record), record_context(record))
        except Exception:
            self.handleError(record)
        finally:
            _delivering.reset(token)


def setup_logging(
    app_id: str,
    api_key: str,
    min_level: int = logging.INFO,
    also_console: bool = True,
    **options,
) -> LoggerSimple:
    """
    Create a client and attach a ``LoggerSimpleHandler`` to the root logger.

    Args:
        app_id: Application identifier
        api_key: Application API key
        min_level: Lowest level shipped; the root logger is lowered to it if needed
        also_console: Also attach a stderr ``StreamHandler``
        **options: Client option overrides (see ``ClientOptions``)

    Returns:
        The LoggerSimple client (for metrics, events and heartbeats)
    """
    client = LoggerSimple(app_id=app_id, api_key=api_key, options=options)
    root = logging.getLogger()

    handlers: list[logging.Handler] = [LoggerSimpleHandler(client, min_level=min_level)]
    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        handlers.append(console)
    for handler in handlers:
        root.addHandler(handler)

    if root.level == logging.NOTSET or root.level > min_level:
        root.setLevel(min_level)
    return client
