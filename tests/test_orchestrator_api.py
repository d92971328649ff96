"""Tests for the Orchestrator HTTP surface."""

import asyncio
from typing import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from cepweather.api import dependencies
from cepweather.core.config import OrchestratorSettings
from cepweather.core.tracing import CORRELATION_ID_HEADER, TRACEPARENT_HEADER, TraceContext
from cepweather.orchestrator_main import create_application
from tests.stubs import VIACEP_HOST, VIACEP_SAO_PAULO, WEATHER_HOST, ProviderStub


@pytest.fixture()
def make_client(serve) -> Callable[[OrchestratorSettings, ProviderStub], TestClient]:
    def build(settings: OrchestratorSettings, providers: ProviderStub) -> TestClient:
        return serve(create_application(settings, transport=providers.transport))

    return build


class TestTemperatureEndpoint:
    def test_returns_temperatures(self, make_client, orchestrator_settings, providers) -> None:
        client = make_client(orchestrator_settings, providers)

        response = client.post("/", json={"cep": "01001000"})

        assert response.status_code == 200
        assert response.json() == {"temp_c": 25.0, "temp_f": 77.0, "temp_k": 298.0}

    @pytest.mark.parametrize("cep", ["123", "", "0100100a", "010010001", "01001-000"])
    def test_invalid_cep_is_400_without_lookups(self, make_client, orchestrator_settings, providers, cep) -> None:
        client = make_client(orchestrator_settings, providers)

        response = client.post("/", json={"cep": cep})

        assert response.status_code == 400
        assert response.json() == {"message": "invalid zipcode"}
        assert providers.requests == []

    def test_missing_cep_is_invalid_zipcode(self, make_client, orchestrator_settings, providers) -> None:
        client = make_client(orchestrator_settings, providers)

        response = client.post("/", json={})

        assert response.status_code == 400
        assert response.json() == {"message": "invalid zipcode"}

    @pytest.mark.parametrize(
        "content",
        [b"not json", b'{"cep": 1001000}', b'["01001000"]', b""],
    )
    def test_malformed_body_is_400(self, make_client, orchestrator_settings, providers, content) -> None:
        client = make_client(orchestrator_settings, providers)

        response = client.post("/", content=content, headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json() == {"message": "invalid request body"}
        assert providers.requests == []

    def test_unknown_cep_is_404(self, make_client, orchestrator_settings) -> None:
        providers = ProviderStub(viacep={"erro": True})
        client = make_client(orchestrator_settings, providers)

        response = client.post("/", json={"cep": "99999999"})

        assert response.status_code == 404
        assert response.json() == {"message": "can not find zipcode"}
        assert providers.requests_to(WEATHER_HOST) == []

    def test_unreachable_postal_code_provider_is_500(self, make_client, orchestrator_settings) -> None:
        providers = ProviderStub(viacep=httpx.ConnectError("connection refused"))
        client = make_client(orchestrator_settings, providers)

        response = client.post("/", json={"cep": "01001000"})

        assert response.status_code == 500
        assert "connection refused" not in response.text

    def test_weather_failure_is_500(self, make_client, orchestrator_settings) -> None:
        providers = ProviderStub(weather=httpx.Response(200, text="<html>"))
        client = make_client(orchestrator_settings, providers)

        response = client.post("/", json={"cep": "01001000"})

        assert response.status_code == 500

    def test_missing_api_key_is_500_without_weather_call(self, make_client, logging_settings, providers) -> None:
        settings = OrchestratorSettings(WEATHER_SECRET_KEY="", logging=logging_settings)
        client = make_client(settings, providers)

        response = client.post("/", json={"cep": "01001000"})

        assert response.status_code == 500
        assert providers.requests_to(WEATHER_HOST) == []

    def test_repeated_requests_are_identical(self, make_client, orchestrator_settings, providers) -> None:
        client = make_client(orchestrator_settings, providers)

        first = client.post("/", json={"cep": "01001000"})
        second = client.post("/", json={"cep": "01001000"})

        assert first.content == second.content


class TestTracePropagation:
    def test_continues_inbound_trace_to_providers(self, make_client, orchestrator_settings, providers) -> None:
        client = make_client(orchestrator_settings, providers)
        caller = TraceContext.new_root()

        response = client.post("/", json={"cep": "01001000"}, headers=caller.to_headers())

        assert response.headers[CORRELATION_ID_HEADER] == caller.trace_id
        server = TraceContext.from_headers(response.headers)
        assert server.trace_id == caller.trace_id

        for request in providers.requests:
            outbound = TraceContext.from_headers(request.headers)
            assert outbound.trace_id == caller.trace_id
            assert outbound.span_id not in (caller.span_id, server.span_id)

    def test_starts_trace_when_none_is_given(self, make_client, orchestrator_settings, providers) -> None:
        client = make_client(orchestrator_settings, providers)

        response = client.post("/", json={"cep": "01001000"})

        trace_id = response.headers[CORRELATION_ID_HEADER]
        assert len(trace_id) == 32
        assert response.headers[TRACEPARENT_HEADER].startswith(f"00-{trace_id}-")
        assert {TraceContext.from_headers(r.headers).trace_id for r in providers.requests} == {trace_id}

    def test_error_responses_carry_trace_headers(self, make_client, orchestrator_settings, providers) -> None:
        client = make_client(orchestrator_settings, providers)

        response = client.post("/", json={"cep": "123"})

        assert CORRELATION_ID_HEADER in response.headers


def test_health_returns_plain_text(make_client, orchestrator_settings, providers) -> None:
    client = make_client(orchestrator_settings, providers)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "Orchestrator" in response.text


async def post_then_disconnect(settings: OrchestratorSettings, body: bytes):
    """
    Drive the app at the ASGI level: send the body, then report the caller
    gone once the first provider lookup is in flight.
    """
    lookup_started = asyncio.Event()
    outbound = []
    cancelled = []
    sent = []

    async def slow_providers(request: httpx.Request) -> httpx.Response:
        outbound.append(request)
        lookup_started.set()
        try:
            await asyncio.sleep(5)
        except asyncio.CancelledError:
            cancelled.append(request.url.host)
            raise
        return httpx.Response(200, json=VIACEP_SAO_PAULO)

    pending = [{"type": "http.request", "body": body, "more_body": False}]

    async def receive():
        if pending:
            return pending.pop(0)
        await lookup_started.wait()
        return {"type": "http.disconnect"}

    async def send(message):
        sent.append(message)

    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "POST",
        "scheme": "http",
        "path": "/",
        "raw_path": b"/",
        "root_path": "",
        "query_string": b"",
        "headers": [
            (b"host", b"orchestrator"),
            (b"content-type", b"application/json"),
            (b"content-length", str(len(body)).encode()),
        ],
        "client": ("127.0.0.1", 50000),
        "server": ("orchestrator", 80),
    }

    app = create_application(settings, transport=httpx.MockTransport(slow_providers))
    try:
        await app(scope, receive, send)
    finally:
        await app.state.http_client.aclose()
    return outbound, cancelled, sent


class TestClientDisconnect:
    def test_disconnect_cancels_in_flight_lookup(self, orchestrator_settings, monkeypatch) -> None:
        monkeypatch.setattr(dependencies, "DISCONNECT_POLL_INTERVAL", 0.01)

        outbound, cancelled, sent = asyncio.run(
            post_then_disconnect(orchestrator_settings, b'{"cep": "01001000"}')
        )

        assert [r.url.host for r in outbound] == [VIACEP_HOST]
        assert cancelled == [VIACEP_HOST]
        start = next(m for m in sent if m["type"] == "http.response.start")
        assert start["status"] == 499
        assert CORRELATION_ID_HEADER.lower().encode() in dict(start["headers"])
