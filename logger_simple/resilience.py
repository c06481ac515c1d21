"""
Retry policy for Logger Simple deliveries.

Bounded attempts with linear backoff. The backoff sleep blocks the calling
thread: worst-case latency of one delivery is

    sum(retry_delay * i for i in 1..N-1) + N * per-attempt timeout

Usage:
    policy = RetryPolicy(RetryConfig(attempts=3, delay=1.0))
    data = policy.execute(lambda: codec.decode(*transport.post(body)))
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from .errors import DeliveryError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""

    attempts: int = 3  # Total attempts, including the first
    delay: float = 1.0  # Base delay in seconds


class LinearBackoff:
    """Delay grows linearly with the attempt number: ``delay * attempt``."""

    def __init__(self, delay: float):
        self.delay = delay

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after failed attempt number ``attempt`` (1-based)."""
        return max(0.0, self.delay * attempt)


class RetryPolicy:
    """
    Runs a delivery up to ``attempts`` times.

    Only ``DeliveryError`` kinds are retried. After the last attempt the last
    error is re-raised as-is so callers still see its original kind.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
        name: str = "default",
    ):
        self.config = config or RetryConfig()
        if self.config.attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {self.config.attempts}")
        self.name = name
        self._backoff = LinearBackoff(self.config.delay)
        self._sleep = sleep

    def execute(self, operation: Callable[[], T]) -> T:
        attempts = self.config.attempts
        last_error: DeliveryError | None = None

        for attempt in range(1, attempts + 1):
            try:
                return operation()
            except DeliveryError as e:
                last_error = e
                logger.warning(
                    f"Delivery '{self.name}' failed (attempt {attempt}/{attempts}): "
                    f"{type(e).__name__}: {e}"
                )

            if attempt < attempts:
                delay = self._backoff.delay_for(attempt)
                logger.debug(f"Delivery '{self.name}' retrying in {delay:.3f}s")
                self._sleep(delay)

        raise last_error
