"""Shared fixtures for the CEP Weather tests."""

from contextlib import ExitStack
from typing import Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from cepweather.core.config import InputSettings, LoggingSettings, OrchestratorSettings
from tests.stubs import ORCHESTRATOR_URL, ProviderStub


@pytest.fixture()
def logging_settings() -> LoggingSettings:
    return LoggingSettings(LEVEL="WARNING", FORMAT="text")


@pytest.fixture()
def orchestrator_settings(logging_settings: LoggingSettings) -> OrchestratorSettings:
    return OrchestratorSettings(
        WEATHER_SECRET_KEY="test-key",
        PROVIDER_TIMEOUT=1.0,
        logging=logging_settings,
    )


@pytest.fixture()
def input_settings(logging_settings: LoggingSettings) -> InputSettings:
    return InputSettings(
        ORCHESTRATOR_URL=ORCHESTRATOR_URL,
        ORCHESTRATOR_TIMEOUT=2.0,
        logging=logging_settings,
    )


@pytest.fixture()
def providers() -> ProviderStub:
    return ProviderStub()


@pytest.fixture()
def serve() -> Iterator[Callable[[FastAPI], TestClient]]:
    """
    Start apps under a TestClient with their lifespan running.

    Every app started through this fixture is shut down at teardown, which
    closes its outbound HTTP client.
    """
    with ExitStack() as stack:
        def start(app: FastAPI) -> TestClient:
            return stack.enter_context(TestClient(app, raise_server_exceptions=False))

        yield start
