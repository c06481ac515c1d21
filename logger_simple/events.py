"""
In-process lifecycle notifications.

Subscribers run synchronously on the publishing thread, in subscription
order. A subscriber that raises is logged and skipped; the publisher and the
remaining subscribers are unaffected.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class EventKind(Enum):
    """Lifecycle events published by ``LoggerSimple``."""

    CONNECTED = "connected"  # Health check succeeded
    ERROR = "error"  # Health check failed
    LOG_SENT = "logSent"
    LOG_ERROR = "logError"
    HEARTBEAT = "heartbeat"
    HEARTBEAT_ERROR = "heartbeatError"

    @classmethod
    def parse(cls, value: "EventKind | str") -> "EventKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            names = ", ".join(kind.value for kind in cls)
            raise ValueError(f"Unknown event '{value}' (expected one of: {names})") from None


@dataclass(frozen=True)
class ConnectedEvent:
    result: Any


@dataclass(frozen=True)
class ErrorEvent:
    error: Exception


@dataclass(frozen=True)
class LogSentEvent:
    level: str
    message: str
    result: Any


@dataclass(frozen=True)
class LogErrorEvent:
    level: str
    message: str
    error: Exception


@dataclass(frozen=True)
class HeartbeatEvent:
    result: Any


@dataclass(frozen=True)
class HeartbeatErrorEvent:
    error: Exception


Event = ConnectedEvent | ErrorEvent | LogSentEvent | LogErrorEvent | HeartbeatEvent | HeartbeatErrorEvent

PAYLOAD_TYPES: dict[EventKind, type] = {
    EventKind.CONNECTED: ConnectedEvent,
    EventKind.ERROR: ErrorEvent,
    EventKind.LOG_SENT: LogSentEvent,
    EventKind.LOG_ERROR: LogErrorEvent,
    EventKind.HEARTBEAT: HeartbeatEvent,
    EventKind.HEARTBEAT_ERROR: HeartbeatErrorEvent,
}

Callback = Callable[[Event], None]


class EventBus:
    """Ordered publish/subscribe registry keyed by ``EventKind``."""

    def __init__(self):
        self._subscribers: dict[EventKind, list[Callback]] = {kind: [] for kind in EventKind}
        self._lock = threading.Lock()

    def subscribe(self, event: EventKind | str, callback: Callback) -> Callback:
        """Register ``callback`` for ``event``; returns the callback."""
        if not callable(callback):
            raise TypeError("callback must be callable")
        kind = EventKind.parse(event)
        with self._lock:
            self._subscribers[kind].append(callback)
        return callback

    def unsubscribe(self, event: EventKind | str, callback: Callback) -> bool:
        """Remove the first registration of ``callback``; False if absent."""
        kind = EventKind.parse(event)
        with self._lock:
            try:
                self._subscribers[kind].remove(callback)
            except ValueError:
                return False
        return True

    def publish(self, event: EventKind, payload: Event):
        expected = PAYLOAD_TYPES[event]
        if not isinstance(payload, expected):
            raise TypeError(f"{event.value} expects {expected.__name__}, got {type(payload).__name__}")

        with self._lock:
            callbacks = list(self._subscribers[event])

        for callback in callbacks:
            try:
                callback(payload)
            except Exception as e:
                logger.warning(f"Event subscriber for '{event.value}' failed: {type(e).__name__}: {e}")
