import time
from typing import Optional

from fastapi import FastAPI
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from cepweather.core.logging import get_trace_logger
from cepweather.core.tracing import (
    CORRELATION_ID_HEADER,
    TRACEPARENT_HEADER,
    TraceContext,
    start_server_span,
)


class TraceContextMiddleware:
    """
    ASGI middleware that opens a server span for every HTTP request.

    The span continues the caller's ``traceparent``, or starts a new trace
    when the header is missing or malformed. Its context is stored in the
    request state and handed to handlers through ``get_trace_context``.

    Works on raw ASGI messages: ``receive`` reaches the handler untouched, so
    ``Request.is_disconnected()`` sees the caller going away.
    """

    def __init__(self, app: ASGIApp, span_name: str) -> None:
        self.app = app
        self.span_name = span_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        remote = TraceContext.from_headers(Headers(scope=scope))
        span = start_server_span(self.span_name, remote)
        logger = get_trace_logger(__name__, span.context)
        span.logger = logger
        start_time = time.time()
        status_code: Optional[int] = None

        async def send_with_trace_headers(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                headers = MutableHeaders(scope=message)
                headers[CORRELATION_ID_HEADER] = span.context.trace_id
                headers[TRACEPARENT_HEADER] = span.context.traceparent
            await send(message)

        with span:
            span.set_attributes(**{
                "http.method": scope["method"],
                "http.route": scope["path"],
            })
            scope.setdefault("state", {})["trace_context"] = span.context

            try:
                await self.app(scope, receive, send_with_trace_headers)
            except Exception as e:
                logger.error(
                    f"Request failed: {str(e)}",
                    extra={"data": {
                        "request_path": scope["path"],
                        "method": scope["method"],
                        "process_time_ms": round((time.time() - start_time) * 1000, 2),
                    }},
                    exc_info=True
                )
                raise

            if status_code is not None:
                span.set_attribute("http.status_code", status_code)
                if status_code >= 500:
                    span.status = "error"

        logger.info(
            "Request completed",
            extra={"data": {
                "request_path": scope["path"],
                "method": scope["method"],
                "status_code": status_code,
                "process_time_ms": round((time.time() - start_time) * 1000, 2),
            }}
        )


def configure_middleware(app: FastAPI, span_name: str) -> None:
    """
    Configure trace propagation middleware for the application.

    Args:
        app: FastAPI application instance
        span_name: Name of the server span opened for every request
    """
    app.add_middleware(TraceContextMiddleware, span_name=span_name)
