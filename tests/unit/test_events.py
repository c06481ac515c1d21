"""Tests for the lifecycle event bus."""

from unittest.mock import MagicMock

import pytest

from logger_simple.events import (
    ConnectedEvent,
    ErrorEvent,
    EventBus,
    EventKind,
    HeartbeatEvent,
    LogSentEvent,
)


class TestEventKind:
    """Tests for event name parsing."""

    @pytest.mark.parametrize(
        "name",
        ["connected", "error", "logSent", "logError", "heartbeat", "heartbeatError"],
    )
    def test_wire_names_parse(self, name):
        assert EventKind.parse(name).value == name

    def test_unknown_name_rejected(self):
        with pytest.raises(ValueError, match="Unknown event 'logsent'"):
            EventKind.parse("logsent")


class TestEventBus:
    """Tests for EventBus class."""

    def test_callbacks_run_in_subscription_order(self):
        bus = EventBus()
        calls = []
        bus.subscribe("logSent", lambda e: calls.append("first"))
        bus.subscribe(EventKind.LOG_SENT, lambda e: calls.append("second"))

        bus.publish(EventKind.LOG_SENT, LogSentEvent(level="info", message="m", result=None))

        assert calls == ["first", "second"]

    def test_only_matching_event_invoked(self):
        bus = EventBus()
        on_connected = MagicMock()
        on_error = MagicMock()
        bus.subscribe("connected", on_connected)
        bus.subscribe("error", on_error)

        payload = ConnectedEvent(result={"status": "ok"})
        bus.publish(EventKind.CONNECTED, payload)

        on_connected.assert_called_once_with(payload)
        on_error.assert_not_called()

    def test_failing_callback_does_not_stop_siblings_or_publisher(self, caplog):
        bus = EventBus()
        second = MagicMock()
        bus.subscribe("error", MagicMock(side_effect=RuntimeError("subscriber bug")))
        bus.subscribe("error", second)

        with caplog.at_level("WARNING", logger="logger_simple.events"):
            bus.publish(EventKind.ERROR, ErrorEvent(error=Exception("down")))

        second.assert_called_once()
        assert "subscriber bug" in caplog.text

    def test_unsubscribe(self):
        bus = EventBus()
        callback = MagicMock()
        bus.subscribe("heartbeat", callback)

        assert bus.unsubscribe("heartbeat", callback) is True
        assert bus.unsubscribe("heartbeat", callback) is False
        bus.publish(EventKind.HEARTBEAT, HeartbeatEvent(result=None))
        callback.assert_not_called()

    def test_unsubscribe_removes_first_registration_only(self):
        bus = EventBus()
        callback = MagicMock()
        bus.subscribe("connected", callback)
        bus.subscribe("connected", callback)

        bus.unsubscribe("connected", callback)
        bus.publish(EventKind.CONNECTED, ConnectedEvent(result=None))

        assert callback.call_count == 1

    def test_payload_shape_enforced(self):
        bus = EventBus()

        with pytest.raises(TypeError, match="logSent expects LogSentEvent"):
            bus.publish(EventKind.LOG_SENT, ConnectedEvent(result=None))

    def test_non_callable_rejected(self):
        with pytest.raises(TypeError):
            EventBus().subscribe("connected", "not callable")

    def test_publish_without_subscribers_is_noop(self):
        EventBus().publish(EventKind.CONNECTED, ConnectedEvent(result=None))
