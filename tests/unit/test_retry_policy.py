"""Tests for the retry policy (linear backoff, bounded attempts)."""

from unittest.mock import MagicMock

import pytest

from logger_simple.errors import ApiRejection, HttpError, MalformedResponse, TransportError, ValidationError
from logger_simple.resilience import LinearBackoff, RetryConfig, RetryPolicy
from mocks import RecordingSleep


class TestLinearBackoff:
    """Tests for LinearBackoff class."""

    def test_delay_grows_linearly(self):
        backoff = LinearBackoff(delay=0.5)

        assert backoff.delay_for(1) == 0.5
        assert backoff.delay_for(2) == 1.0
        assert backoff.delay_for(3) == 1.5

    def test_zero_delay(self):
        assert LinearBackoff(delay=0).delay_for(5) == 0


class TestRetryPolicy:
    """Tests for RetryPolicy class."""

    def test_first_success_returns_immediately(self):
        sleep = RecordingSleep()
        operation = MagicMock(return_value={"log_id": 1})
        policy = RetryPolicy(RetryConfig(attempts=3, delay=1.0), sleep=sleep)

        assert policy.execute(operation) == {"log_id": 1}
        assert operation.call_count == 1
        assert sleep.delays == []

    def test_fails_twice_then_succeeds(self):
        sleep = RecordingSleep()
        operation = MagicMock(side_effect=[TransportError("refused"), HttpError("HTTP 503: down"), "ok"])
        policy = RetryPolicy(RetryConfig(attempts=3, delay=1.0), sleep=sleep)

        assert policy.execute(operation) == "ok"
        assert operation.call_count == 3
        assert sleep.delays == [1.0, 2.0]

    def test_exhaustion_raises_last_error_unchanged(self):
        sleep = RecordingSleep()
        last = ApiRejection("quota exceeded")
        operation = MagicMock(side_effect=[TransportError("refused"), MalformedResponse("bad"), last])
        policy = RetryPolicy(RetryConfig(attempts=3, delay=0.25), sleep=sleep)

        with pytest.raises(ApiRejection) as exc_info:
            policy.execute(operation)

        assert exc_info.value is last
        assert operation.call_count == 3
        assert sleep.delays == [0.25, 0.5]

    def test_single_attempt_never_sleeps(self):
        sleep = RecordingSleep()
        operation = MagicMock(side_effect=TransportError("refused"))
        policy = RetryPolicy(RetryConfig(attempts=1, delay=5.0), sleep=sleep)

        with pytest.raises(TransportError):
            policy.execute(operation)

        assert operation.call_count == 1
        assert sleep.delays == []

    @pytest.mark.parametrize("attempts", [2, 4, 6])
    def test_always_failing_invokes_exactly_n_times(self, attempts):
        sleep = RecordingSleep()
        operation = MagicMock(side_effect=HttpError("HTTP 500: Request failed"))
        policy = RetryPolicy(RetryConfig(attempts=attempts, delay=1.0), sleep=sleep)

        with pytest.raises(HttpError):
            policy.execute(operation)

        assert operation.call_count == attempts
        assert sleep.delays == [float(i) for i in range(1, attempts)]

    def test_non_delivery_errors_are_not_retried(self):
        sleep = RecordingSleep()
        operation = MagicMock(side_effect=ValidationError("bad"))
        policy = RetryPolicy(RetryConfig(attempts=3), sleep=sleep)

        with pytest.raises(ValidationError):
            policy.execute(operation)

        assert operation.call_count == 1
        assert sleep.delays == []

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(RetryConfig(attempts=0))

    def test_logs_each_failed_attempt(self, caplog):
        operation = MagicMock(side_effect=[TransportError("refused"), "ok"])
        policy = RetryPolicy(RetryConfig(attempts=2, delay=0), sleep=RecordingSleep(), name="unit")

        with caplog.at_level("WARNING", logger="logger_simple.resilience"):
            policy.execute(operation)

        assert "Delivery 'unit' failed (attempt 1/2)" in caplog.text
