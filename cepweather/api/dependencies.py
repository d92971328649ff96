import asyncio
from typing import Awaitable, TypeVar

from fastapi import Request

from cepweather.core.exceptions import ClientDisconnected
from cepweather.core.logging import get_trace_logger
from cepweather.core.tracing import TraceContext
from cepweather.services.input_service import InputService
from cepweather.services.temperature_service import TemperatureService

T = TypeVar("T")

DISCONNECT_POLL_INTERVAL = 0.1  # seconds


def get_trace_context(request: Request) -> TraceContext:
    """
    Trace context of the current request's server span.

    Set by the trace middleware; falls back to a new root for apps mounted
    without it.
    """
    context = getattr(request.state, "trace_context", None)
    if context is None:
        context = TraceContext.new_root()
        request.state.trace_context = context
    return context


def get_input_service(request: Request) -> InputService:
    """Dependency for providing the Input pipeline."""
    return request.app.state.input_service


def get_temperature_service(request: Request) -> TemperatureService:
    """Dependency for providing the Orchestrator pipeline."""
    return request.app.state.temperature_service


async def run_until_disconnected(request: Request, awaitable: Awaitable[T], context: TraceContext) -> T:
    """
    Await ``awaitable`` but cancel it if the caller goes away first.

    Cancelling the task aborts any in-flight outbound call, so a dropped
    inbound connection does not leave downstream hops running unobserved.

    Raises:
        ClientDisconnected: If the caller disconnected first
    """
    task = asyncio.ensure_future(awaitable)
    disconnected = False

    async def watch_disconnect() -> None:
        nonlocal disconnected
        while not task.done():
            if await request.is_disconnected():
                get_trace_logger(__name__, context).warning(
                    "Client disconnected, cancelling in-flight request"
                )
                disconnected = True
                task.cancel()
                return
            await asyncio.sleep(DISCONNECT_POLL_INTERVAL)

    watcher = asyncio.ensure_future(watch_disconnect())
    try:
        return await task
    except asyncio.CancelledError:
        if not disconnected:
            raise
        raise ClientDisconnected(details={"trace_id": context.trace_id}) from None
    finally:
        watcher.cancel()
