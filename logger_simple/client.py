"""
Logger Simple client - ships structured log events to the Logger Simple API.

Usage:
    from logger_simple import LoggerSimple, create_logger

    # Option 1: Factory with keyword options
    log = create_logger("my-app", "sk_xxx", retry_attempts=5, retry_delay=0.5)

    # Option 2: Explicit options
    log = LoggerSimple(
        app_id="my-app",
        api_key="sk_xxx",
        options={"base_url": "https://api.logger-simple.com/", "timeout": 10.0},
    )

    log.log_info("Payment processed", {"user_id": "u123", "amount": 99.99})
    log.on("logError", lambda event: print("delivery failed:", event.error))

    total = log.measure("checkout", lambda: compute_total(cart))

Every send blocks the calling thread for all retry attempts and backoff
sleeps. Use ``asend_log`` from asyncio code.
"""

import asyncio
import logging
import time
import tracemalloc
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

import httpx

from .codec import LogLevel, RequestCodec, exception_context, to_context, truncate_message
from .config import VERSION, ClientOptions, Credentials, credentials_from_env, options_from_env
from .crash import CrashCapture, CrashHookRegistrar, SysCrashHookRegistrar
from .errors import DeliveryError, LoggerSimpleError, ValidationError
from .events import (
    ConnectedEvent,
    ErrorEvent,
    EventBus,
    EventKind,
    HeartbeatErrorEvent,
    HeartbeatEvent,
    LogErrorEvent,
    LogSentEvent,
)
from .resilience import RetryConfig, RetryPolicy
from .state import ConnectionState, MetricsRegistry, MetricsSnapshot
from .transport import HttpTransport

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoggerSimple:
    """
    Client for the Logger Simple API.

    Validates and truncates log events, delivers them with retries, tracks
    connection health and local metrics, and notifies subscribers of
    lifecycle events. Safe to share between threads.
    """

    def __init__(
        self,
        app_id: str,
        api_key: str,
        options: ClientOptions | Mapping[str, Any] | None = None,
        crash_registrar: CrashHookRegistrar | None = None,
        http_transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the client and probe the service once.

        Args:
            app_id: Application identifier
            api_key: Application API key (never logged)
            options: ``ClientOptions`` or a mapping of overrides for the defaults
            crash_registrar: Hook registrar for crash capture; defaults to
                ``SysCrashHookRegistrar`` when crash capture is enabled
            http_transport: Optional httpx transport (e.g. ``httpx.MockTransport``)
            sleep: Backoff sleep function

        Raises:
            ConfigurationError: missing credentials or invalid options
        """
        self.credentials = Credentials(app_id=app_id, api_key=api_key)
        if isinstance(options, ClientOptions):
            self.options = options
        else:
            self.options = ClientOptions.merged(dict(options or {}))

        self._metrics = MetricsRegistry()
        self._connection = ConnectionState()
        self._events = EventBus()
        self._codec = RequestCodec(self.credentials)
        self._transport = HttpTransport(self.options, transport=http_transport)
        self._retry = RetryPolicy(
            RetryConfig(attempts=self.options.retry_attempts, delay=self.options.retry_delay),
            sleep=sleep,
            name=f"logger-simple-{app_id}",
        )

        self._crash_capture: CrashCapture | None = None
        if self.options.crash_capture_enabled:
            self._crash_capture = CrashCapture(
                reporter=self._report_crash,
                registrar=crash_registrar or SysCrashHookRegistrar(),
            )
            self._crash_capture.install()

        logger.info(f"LoggerSimple initialized for app '{app_id}' -> {self._transport.url}")

        self.test_connection()

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def test_connection(self) -> bool:
        """Probe the service once (no retry). Never raises."""
        try:
            result = self._round_trip(self._codec.build_health())
        except Exception as e:
            logger.warning(f"Logger Simple health check failed: {type(e).__name__}: {e}")
            self._connection.mark_disconnected()
            self._events.publish(EventKind.ERROR, ErrorEvent(error=e))
            return False

        self._connection.mark_connected()
        self._events.publish(EventKind.CONNECTED, ConnectedEvent(result=result))
        return True

    def send_heartbeat(self) -> Any:
        """
        Send one heartbeat (no retry).

        Raises:
            DeliveryError: the heartbeat failed
        """
        try:
            result = self._round_trip(self._codec.build_heartbeat())
        except DeliveryError as e:
            self._connection.mark_disconnected()
            self._events.publish(EventKind.HEARTBEAT_ERROR, HeartbeatErrorEvent(error=e))
            raise

        self._connection.record_heartbeat(datetime.now(UTC))
        self._events.publish(EventKind.HEARTBEAT, HeartbeatEvent(result=result))
        return result

    def is_connected(self) -> bool:
        return self._connection.connected

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def send_log(self, level: LogLevel | str, message: str, context: Any = None) -> Any:
        """
        Deliver one log event with retries.

        Args:
            level: One of success, info, warning, error, critical
            message: Non-empty message; truncated to ``max_log_length``
            context: Optional string or JSON-serializable value

        Returns:
            The ``data`` payload of the API response.

        Raises:
            ValidationError: invalid level, empty message or unserializable context
            DeliveryError: the last failure after all retry attempts
        """
        return self._deliver(level, message, context, retry=True)

    def log(self, level: LogLevel | str, message: str, context: Any = None) -> Any:
        return self.send_log(level, message, context)

    def log_success(self, message: str, context: Any = None) -> Any:
        return self.send_log(LogLevel.SUCCESS, message, context)

    def log_info(self, message: str, context: Any = None) -> Any:
        return self.send_log(LogLevel.INFO, message, context)

    def log_warning(self, message: str, context: Any = None) -> Any:
        return self.send_log(LogLevel.WARNING, message, context)

    def log_error(self, message: str, context: Any = None) -> Any:
        return self.send_log(LogLevel.ERROR, message, context)

    def log_critical(self, message: str, context: Any = None) -> Any:
        return self.send_log(LogLevel.CRITICAL, message, context)

    def log_exception(self, fault: BaseException, level: LogLevel | str = LogLevel.ERROR) -> Any:
        """Log ``fault`` as ``"Exception: <message>"`` with its type, origin and trace."""
        return self.send_log(level, f"Exception: {fault}", exception_context(fault))

    def _deliver(self, level: LogLevel | str, message: str, context: Any, retry: bool) -> Any:
        log_level = LogLevel.parse(level)
        if not isinstance(message, str):
            raise ValidationError(f"Message must be a string, got {type(message).__name__}")
        if not message:
            raise ValidationError("Message cannot be empty")

        message = truncate_message(message, self.options.max_log_length)

        try:
            payload = self._codec.build_log(log_level, message, to_context(context))
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Context is not serializable: {e}") from e

        self._metrics.record_attempt()
        try:
            if retry:
                result = self._retry.execute(lambda: self._round_trip(payload))
            else:
                result = self._round_trip(payload)
        except DeliveryError as e:
            self._metrics.record_failure()
            self._connection.mark_disconnected()
            self._events.publish(
                EventKind.LOG_ERROR,
                LogErrorEvent(level=log_level.value, message=message, error=e),
            )
            raise

        self._metrics.record_success()
        self._connection.mark_connected()
        self._events.publish(
            EventKind.LOG_SENT,
            LogSentEvent(level=log_level.value, message=message, result=result),
        )
        return result

    def _round_trip(self, payload: dict[str, Any]) -> Any:
        raw = self._transport.post(self._codec.encode(payload))
        return self._codec.decode(raw.status_code, raw.body)

    def _report_crash(self, level: LogLevel, message: str, context: dict[str, Any]) -> Any:
        # Single attempt: the process may be exiting
        return self._deliver(level, message, context, retry=False)

    # ------------------------------------------------------------------
    # Async variants
    # ------------------------------------------------------------------

    async def asend_log(self, level: LogLevel | str, message: str, context: Any = None) -> Any:
        """``send_log`` in a worker thread so retry sleeps never block the event loop."""
        return await asyncio.to_thread(self.send_log, level, message, context)

    async def asend_heartbeat(self) -> Any:
        return await asyncio.to_thread(self.send_heartbeat)

    # ------------------------------------------------------------------
    # Performance measurement
    # ------------------------------------------------------------------

    def measure(self, operation: str, work: Callable[[], T], context: Mapping[str, Any] | None = None) -> T:
        """
        Run ``work`` and log its duration and memory delta.

        Logs ``Performance: <operation>`` at info on success, or
        ``Performance: <operation> FAILED`` at error and re-raises the original
        exception. Memory delta is only available while ``tracemalloc`` traces.
        """
        extra = dict(context or {})
        start_memory = _traced_memory()
        start = time.perf_counter()

        try:
            result = work()
        except Exception as e:
            self._report_measurement(
                LogLevel.ERROR,
                f"Performance: {operation} FAILED",
                {
                    "execution_time_ms": _elapsed_ms(start),
                    "error": str(e),
                    "status": "error",
                    **extra,
                },
            )
            raise

        end_memory = _traced_memory()
        memory_used = end_memory - start_memory if start_memory is not None and end_memory is not None else None
        self._report_measurement(
            LogLevel.INFO,
            f"Performance: {operation}",
            {
                "execution_time_ms": _elapsed_ms(start),
                "memory_used_bytes": memory_used,
                "status": "success",
                **extra,
            },
        )
        return result

    def _report_measurement(self, level: LogLevel, message: str, context: dict[str, Any]):
        try:
            self.send_log(level, message, context)
        except LoggerSimpleError as e:
            logger.warning(f"Could not deliver measurement '{message}': {type(e).__name__}: {e}")

    # ------------------------------------------------------------------
    # Events, metrics, config
    # ------------------------------------------------------------------

    def on(self, event: EventKind | str, callback: Callable[[Any], None]) -> Callable[[Any], None]:
        """Subscribe ``callback`` to ``event`` (e.g. ``"logSent"``)."""
        return self._events.subscribe(event, callback)

    def off(self, event: EventKind | str, callback: Callable[[Any], None]) -> bool:
        return self._events.unsubscribe(event, callback)

    def get_metrics(self) -> MetricsSnapshot:
        return self._metrics.snapshot(self._connection.snapshot())

    def get_config(self) -> dict[str, Any]:
        """Current configuration, without the API key."""
        return {
            "app_id": self.credentials.app_id,
            "api_url": self.options.base_url,
            "options": self.options.to_dict(),
            "version": VERSION,
        }

    @property
    def crash_capture_installed(self) -> bool:
        return self._crash_capture is not None and self._crash_capture.installed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self):
        """Release crash hooks and the HTTP connection pool."""
        if self._crash_capture is not None:
            self._crash_capture.uninstall()
        self._transport.close()

    def __enter__(self) -> "LoggerSimple":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def _traced_memory() -> int | None:
    if not tracemalloc.is_tracing():
        return None
    current, _peak = tracemalloc.get_traced_memory()
    return current


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def create_logger(app_id: str, api_key: str, **options) -> LoggerSimple:
    """Create a ``LoggerSimple`` with keyword option overrides."""
    return LoggerSimple(app_id=app_id, api_key=api_key, options=ClientOptions.merged(options))


def from_env(**options) -> LoggerSimple:
    """
    Create a ``LoggerSimple`` from environment variables.

    Environment variables:
        LOGGER_SIMPLE_APP_ID: Application identifier (required)
        LOGGER_SIMPLE_API_KEY: API key (required)
        LOGGER_SIMPLE_API_URL: Service root (optional)
    """
    credentials = credentials_from_env()
    return LoggerSimple(
        app_id=credentials.app_id,
        api_key=credentials.api_key,
        options=options_from_env(**options),
    )
