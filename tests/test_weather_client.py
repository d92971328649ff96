"""Tests for the WeatherAPI client."""

import asyncio

import httpx
import pytest

from cepweather.clients.weather import WeatherClient
from cepweather.core.exceptions import (
    DecodeError,
    MissingApiKey,
    MissingCity,
    NilBody,
    TransportError,
)
from cepweather.core.tracing import TraceContext
from tests.stubs import WEATHER_HOST, ProviderStub


def make_client(providers: ProviderStub) -> WeatherClient:
    return WeatherClient(
        httpx.AsyncClient(transport=providers.transport),
        "https://api.weatherapi.com/v1/current.json",
        timeout=1.0,
    )


def test_fetches_reading(providers: ProviderStub) -> None:
    client = make_client(providers)

    reading = asyncio.run(client.fetch("São Paulo", "test-key", TraceContext.new_root()))

    assert reading.temp_c == 25.0
    assert reading.temp_f == 77.0
    assert reading.location_name == "Sao Paulo"
    assert reading.condition == "Sunny"
    assert reading.updated_at == "2024-06-09 11:45"


def test_sends_key_and_encoded_city(providers: ProviderStub) -> None:
    client = make_client(providers)

    asyncio.run(client.fetch("São Paulo", "test-key", TraceContext.new_root()))

    request = providers.requests_to(WEATHER_HOST)[0]
    assert request.url.path == "/v1/current.json"
    assert request.url.params["key"] == "test-key"
    assert request.url.params["q"] == "São Paulo"
    assert b"S%C3%A3o" in request.url.query


def test_propagates_trace_context(providers: ProviderStub) -> None:
    client = make_client(providers)
    context = TraceContext.new_root()

    asyncio.run(client.fetch("São Paulo", "test-key", context))

    remote = TraceContext.from_headers(providers.requests[0].headers)
    assert remote is not None
    assert remote.trace_id == context.trace_id


def test_temperatures_are_not_cross_checked() -> None:
    payload = {"current": {"temp_c": 10.0, "temp_f": 100.0}}
    client = make_client(ProviderStub(weather=payload))

    reading = asyncio.run(client.fetch("Recife", "test-key", TraceContext.new_root()))

    assert (reading.temp_c, reading.temp_f) == (10.0, 100.0)


def test_empty_city_fails_before_network(providers: ProviderStub) -> None:
    client = make_client(providers)

    with pytest.raises(MissingCity):
        asyncio.run(client.fetch("", "test-key", TraceContext.new_root()))

    assert providers.requests == []


def test_empty_api_key_fails_before_network(providers: ProviderStub) -> None:
    client = make_client(providers)

    with pytest.raises(MissingApiKey):
        asyncio.run(client.fetch("São Paulo", "", TraceContext.new_root()))

    assert providers.requests == []


def test_city_is_checked_before_key(providers: ProviderStub) -> None:
    client = make_client(providers)

    with pytest.raises(MissingCity):
        asyncio.run(client.fetch("", "", TraceContext.new_root()))


def test_connection_failure_raises_transport_error() -> None:
    client = make_client(ProviderStub(weather=httpx.ConnectError("connection refused")))

    with pytest.raises(TransportError):
        asyncio.run(client.fetch("São Paulo", "test-key", TraceContext.new_root()))


def test_empty_body_raises_nil_body() -> None:
    client = make_client(ProviderStub(weather=httpx.Response(200, content=b"")))

    with pytest.raises(NilBody):
        asyncio.run(client.fetch("São Paulo", "test-key", TraceContext.new_root()))


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"location": {"name": "Sao Paulo"}}),
        httpx.Response(200, json={"current": {"temp_c": "hot", "temp_f": 77.0}}),
        httpx.Response(400, json={"error": {"code": 1006, "message": "No matching location found."}}),
    ],
)
def test_malformed_body_raises_decode_error(response: httpx.Response) -> None:
    client = make_client(ProviderStub(weather=response))

    with pytest.raises(DecodeError):
        asyncio.run(client.fetch("Atlantis", "test-key", TraceContext.new_root()))
