"""Pytest configuration and shared fixtures for Logger Simple tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from logger_simple import LoggerSimple
from mocks import API_KEY, APP_ID, FakeCrashRegistrar, RecordingSleep, ScriptedService


@pytest.fixture
def service() -> ScriptedService:
    """Fake Logger Simple API; healthy unless scripted otherwise."""
    return ScriptedService()


@pytest.fixture
def sleeps() -> RecordingSleep:
    """Records backoff sleeps instead of blocking."""
    return RecordingSleep()


@pytest.fixture
def registrar() -> FakeCrashRegistrar:
    return FakeCrashRegistrar()


@pytest.fixture
def make_client(service, sleeps, registrar) -> Callable[..., LoggerSimple]:
    """Build clients wired to the fake service; closes them afterwards."""
    created: list[LoggerSimple] = []

    def factory(**options) -> LoggerSimple:
        options.setdefault("retry_delay", 0.5)
        client = LoggerSimple(
            app_id=APP_ID,
            api_key=API_KEY,
            options=options,
            crash_registrar=registrar,
            http_transport=service.transport,
            sleep=sleeps,
        )
        created.append(client)
        return client

    yield factory

    for client in created:
        client.close()


@pytest.fixture
def client(make_client) -> LoggerSimple:
    """A connected client with default options."""
    return make_client()


@pytest.fixture
def sample_context() -> dict:
    return {
        "user_id": "u123",
        "amount": 99.99,
        "items": ["sku-1", "sku-2"],
    }
