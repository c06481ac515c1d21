"""
Crash capture: turns fatal errors and uncaught exceptions into critical logs.

The hook mechanism is injected through ``CrashHookRegistrar`` so the capture
logic never touches process-global state directly. ``SysCrashHookRegistrar``
is the default registrar and chains ``sys.excepthook`` and
``threading.excepthook``.

Everything submitted from a hook is best-effort: single attempt, failures
discarded, since the process may already be unwinding.
"""

import logging
import sys
import threading
import traceback
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from types import TracebackType
from typing import Any, Protocol

from .codec import LogLevel, exception_context

logger = logging.getLogger(__name__)

# Uncaught exceptions treated as unrecoverable runtime failures
FATAL_ERRORS = (MemoryError, RecursionError, SystemError)

FATAL_MESSAGE = "Fatal Error - Application crashed"


@dataclass(frozen=True)
class FatalDiagnostic:
    """What the runtime reports about an abnormal termination."""

    kind: str
    message: str
    file: str | None = None
    line: int | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "FatalDiagnostic":
        frames = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
        origin = frames[-1] if frames else None
        return cls(
            kind=type(exc).__name__,
            message=str(exc),
            file=origin.filename if origin else None,
            line=origin.lineno if origin else None,
        )


FatalHandler = Callable[[FatalDiagnostic], None]
UncaughtHandler = Callable[[BaseException], None]


class CrashHookRegistrar(Protocol):
    """Host capability for process-level crash notifications."""

    def register_fatal_handler(self, handler: FatalHandler) -> None: ...

    def register_uncaught_handler(self, handler: UncaughtHandler) -> None: ...

    def unregister_handler(self, handler: Callable[[Any], None]) -> None:
        """Remove one registration of ``handler``; other handlers stay active."""
        ...


class SysCrashHookRegistrar:
    """
    Registrar backed by ``sys.excepthook`` and ``threading.excepthook``.

    Uncaught ``FATAL_ERRORS`` go to fatal handlers, any other exception to
    uncaught handlers. ``KeyboardInterrupt`` is left alone. The previously
    installed hooks always run afterwards.
    """

    def __init__(self):
        self._fatal_handlers: list[FatalHandler] = []
        self._uncaught_handlers: list[UncaughtHandler] = []
        self._previous_excepthook = None
        self._previous_threading_excepthook = None
        self._installed = False
        self._lock = threading.Lock()

    def register_fatal_handler(self, handler: FatalHandler) -> None:
        with self._lock:
            self._fatal_handlers.append(handler)
            self._install()

    def register_uncaught_handler(self, handler: UncaughtHandler) -> None:
        with self._lock:
            self._uncaught_handlers.append(handler)
            self._install()

    def _install(self):
        if self._installed:
            return
        self._previous_excepthook = sys.excepthook
        self._previous_threading_excepthook = threading.excepthook
        sys.excepthook = self._excepthook
        threading.excepthook = self._threading_excepthook
        self._installed = True

    def unregister_handler(self, handler: Callable[[Any], None]) -> None:
        """
        Remove one registration of ``handler``.

        The process hooks are restored once no handler of either kind is left,
        so clients sharing this registrar can close independently.
        """
        with self._lock:
            for handlers in (self._fatal_handlers, self._uncaught_handlers):
                if handler in handlers:
                    handlers.remove(handler)
            if not self._fatal_handlers and not self._uncaught_handlers:
                self._restore()

    def uninstall(self) -> None:
        """Drop every handler and restore the hooks active before installation."""
        with self._lock:
            self._fatal_handlers.clear()
            self._uncaught_handlers.clear()
            self._restore()

    def _restore(self):
        if not self._installed:
            return
        # Only restore if nobody chained on top of us since
        if sys.excepthook == self._excepthook:
            sys.excepthook = self._previous_excepthook
        if threading.excepthook == self._threading_excepthook:
            threading.excepthook = self._previous_threading_excepthook
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def dispatch(self, exc: BaseException | None):
        """Route ``exc`` to the matching handlers."""
        if exc is None or isinstance(exc, KeyboardInterrupt | SystemExit):
            return

        with self._lock:
            fatal = list(self._fatal_handlers)
            uncaught = list(self._uncaught_handlers)

        if isinstance(exc, FATAL_ERRORS):
            diagnostic = FatalDiagnostic.from_exception(exc)
            for handler in fatal:
                _call_quietly(handler, diagnostic)
        else:
            for handler in uncaught:
                _call_quietly(handler, exc)

    def _excepthook(
        self,
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ):
        self.dispatch(exc)
        previous = self._previous_excepthook or sys.__excepthook__
        previous(exc_type, exc, tb)

    def _threading_excepthook(self, args: Any):
        self.dispatch(args.exc_value)
        previous = self._previous_threading_excepthook or threading.__excepthook__
        previous(args)


def _call_quietly(handler: Callable[[Any], None], argument: Any):
    try:
        handler(argument)
    except Exception as e:
        logger.debug(f"Crash hook handler failed: {type(e).__name__}: {e}")


# (level, message, context) -> API result; must be a single attempt
Reporter = Callable[[LogLevel, str, dict[str, Any]], Any]


class CrashCapture:
    """Registers crash handlers that report through ``reporter``."""

    def __init__(self, reporter: Reporter, registrar: CrashHookRegistrar | None = None):
        self.reporter = reporter
        self.registrar = registrar
        self._installed = False

    def install(self) -> bool:
        """Register both handlers; False when no registrar is available."""
        if self.registrar is None:
            logger.info("Crash capture requested but no hook registrar is available")
            return False
        if self._installed:
            return True

        self.registrar.register_fatal_handler(self.on_fatal)
        self.registrar.register_uncaught_handler(self.on_uncaught)
        self._installed = True
        return True

    def uninstall(self):
        """Withdraw this capture's handlers; other registrations are untouched."""
        if self._installed and self.registrar is not None:
            self.registrar.unregister_handler(self.on_fatal)
            self.registrar.unregister_handler(self.on_uncaught)
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def on_fatal(self, diagnostic: FatalDiagnostic):
        """Report a fatal termination. Never raises."""
        context = {
            "error_type": diagnostic.kind,
            "message": diagnostic.message,
            "file": diagnostic.file,
            "line": diagnostic.line,
            "timestamp": datetime.now(UTC).isoformat(),
        }
        self._report(LogLevel.CRITICAL, FATAL_MESSAGE, context)

    def on_uncaught(self, exc: BaseException):
        """Report an uncaught exception the way ``log_exception`` does. Never raises."""
        self._report(LogLevel.CRITICAL, f"Exception: {exc}", exception_context(exc))

    def _report(self, level: LogLevel, message: str, context: dict[str, Any]):
        try:
            self.reporter(level, message, context)
        except Exception as e:
            logger.debug(f"Crash report discarded: {type(e).__name__}")
