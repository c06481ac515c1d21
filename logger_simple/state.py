"""
Connection health and local delivery metrics.

Both are guarded by their own lock so concurrent ``send_log`` /
``send_heartbeat`` calls never observe a half-applied update.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionSnapshot:
    connected: bool
    last_heartbeat_at: datetime | None


class ConnectionState:
    """Last-known reachability of the service and the last heartbeat time."""

    def __init__(self):
        self._connected = False
        self._last_heartbeat_at: datetime | None = None
        self._lock = threading.Lock()

    def mark_connected(self):
        with self._lock:
            self._transition_to(True)

    def mark_disconnected(self):
        with self._lock:
            self._transition_to(False)

    def record_heartbeat(self, timestamp: datetime):
        """Store the heartbeat time and mark the service reachable."""
        with self._lock:
            self._last_heartbeat_at = timestamp
            self._transition_to(True)

    def _transition_to(self, connected: bool):
        if self._connected != connected:
            logger.info(f"Logger Simple connection: {'connected' if connected else 'disconnected'}")
        self._connected = connected

    def snapshot(self) -> ConnectionSnapshot:
        with self._lock:
            return ConnectionSnapshot(self._connected, self._last_heartbeat_at)

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._connected


@dataclass(frozen=True)
class MetricsSnapshot:
    """Point-in-time view of local delivery metrics."""

    logs_sent: int
    logs_succeeded: int
    logs_failed: int
    logs_in_flight: int  # Started, not yet resolved
    started_at: float  # Unix timestamp
    uptime: float  # Seconds since started_at
    is_connected: bool = False
    last_heartbeat_at: datetime | None = None

    def to_dict(self) -> dict:
        return asdict(self)


class MetricsRegistry:
    """
    Monotonic counters for log deliveries.

    ``logs_sent`` is only ever bumped together with one of the outcome
    counters, so ``logs_sent == logs_succeeded + logs_failed`` always holds.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._started_at = clock()
        self._attempts = 0
        self._sent = 0
        self._succeeded = 0
        self._failed = 0
        self._lock = threading.Lock()

    @property
    def started_at(self) -> float:
        return self._started_at

    def record_attempt(self):
        """Count a delivery that has started (not part of ``logs_sent``)."""
        with self._lock:
            self._attempts += 1

    def record_success(self):
        with self._lock:
            self._sent += 1
            self._succeeded += 1

    def record_failure(self):
        with self._lock:
            self._sent += 1
            self._failed += 1

    def snapshot(self, connection: ConnectionSnapshot | None = None) -> MetricsSnapshot:
        with self._lock:
            sent, succeeded, failed = self._sent, self._succeeded, self._failed
            in_flight = self._attempts - self._sent

        return MetricsSnapshot(
            logs_sent=sent,
            logs_succeeded=succeeded,
            logs_failed=failed,
            logs_in_flight=in_flight,
            started_at=self._started_at,
            uptime=max(0.0, self._clock() - self._started_at),
            is_connected=connection.connected if connection else False,
            last_heartbeat_at=connection.last_heartbeat_at if connection else None,
        )
