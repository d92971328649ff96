"""
Explicit trace context propagation.

A ``TraceContext`` is created at the first hop, written into outbound request
headers, read back at the next hop and handed down as a plain argument to
every function that does work for the request. Nothing here is stored in
globals or context variables.

Wire format is W3C Trace Context (``traceparent``), with the trace id also
echoed as ``X-Correlation-ID`` for log correlation.
"""

from dataclasses import dataclass, field
import logging
import re
import secrets
import time
from typing import Any, Dict, Mapping, Optional, Union

TRACEPARENT_HEADER = "traceparent"
CORRELATION_ID_HEADER = "X-Correlation-ID"

_TRACEPARENT_RE = re.compile(
    r"^(?P<version>[0-9a-f]{2})-(?P<trace_id>[0-9a-f]{32})-"
    r"(?P<span_id>[0-9a-f]{16})-(?P<flags>[0-9a-f]{2})$"
)
_INVALID_TRACE_ID = "0" * 32
_INVALID_SPAN_ID = "0" * 16

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


def _new_trace_id() -> str:
    return secrets.token_hex(16)


def _new_span_id() -> str:
    return secrets.token_hex(8)


@dataclass(frozen=True)
class TraceContext:
    """
    Causal identity of one unit of work.

    Attributes:
        trace_id: 32 hex chars shared by every span of one end-user request
        span_id: 16 hex chars identifying this unit of work
        parent_span_id: span_id of the unit that caused this one, if any
        sampled: whether downstream hops should record the trace
    """
    trace_id: str
    span_id: str
    parent_span_id: Optional[str] = None
    sampled: bool = True

    @classmethod
    def new_root(cls) -> "TraceContext":
        """Start a brand new trace."""
        return cls(trace_id=_new_trace_id(), span_id=_new_span_id())

    def child(self) -> "TraceContext":
        """Create the context of a unit of work caused by this one."""
        return TraceContext(
            trace_id=self.trace_id,
            span_id=_new_span_id(),
            parent_span_id=self.span_id,
            sampled=self.sampled,
        )

    @property
    def traceparent(self) -> str:
        flags = "01" if self.sampled else "00"
        return f"00-{self.trace_id}-{self.span_id}-{flags}"

    def to_headers(self) -> Dict[str, str]:
        """Serialize into outbound request headers."""
        return {
            TRACEPARENT_HEADER: self.traceparent,
            CORRELATION_ID_HEADER: self.trace_id,
        }

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> Optional["TraceContext"]:
        """
        Read the remote caller's context from inbound headers.

        The returned context identifies the caller's span; use ``child()`` to
        derive the local unit of work from it.

        Args:
            headers: Inbound request headers (any case-insensitive mapping)

        Returns:
            The caller's TraceContext, or None when the header is absent or
            malformed
        """
        raw = headers.get(TRACEPARENT_HEADER)
        if not raw:
            return None

        match = _TRACEPARENT_RE.match(raw.strip().lower())
        if not match:
            return None
        if match.group("version") == "ff":
            return None

        trace_id = match.group("trace_id")
        span_id = match.group("span_id")
        if trace_id == _INVALID_TRACE_ID or span_id == _INVALID_SPAN_ID:
            return None

        sampled = bool(int(match.group("flags"), 16) & 0x01)
        return cls(trace_id=trace_id, span_id=span_id, sampled=sampled)

    def log_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {"trace_id": self.trace_id, "span_id": self.span_id}
        if self.parent_span_id:
            fields["parent_span_id"] = self.parent_span_id
        return fields


@dataclass
class Span:
    """
    A named unit of work under a TraceContext.

    Spans are reported through the application log when they end.
    """
    name: str
    context: TraceContext
    logger: LoggerLike
    attributes: Dict[str, Any] = field(default_factory=dict)
    status: str = "ok"
    error: Optional[str] = None
    start_time: float = field(default_factory=time.perf_counter)
    duration_ms: Optional[float] = None

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def set_attributes(self, **attributes: Any) -> None:
        self.attributes.update(attributes)

    def record_error(self, exc: BaseException) -> None:
        self.status = "error"
        self.error = f"{type(exc).__name__}: {exc}"

    def end(self) -> None:
        if self.duration_ms is not None:
            return
        self.duration_ms = round((time.perf_counter() - self.start_time) * 1000, 2)

        if not self.context.sampled:
            return

        data: Dict[str, Any] = {
            "span": self.name,
            "status": self.status,
            "duration_ms": self.duration_ms,
            "attributes": self.attributes,
        }
        if self.error:
            data["error"] = self.error

        self.logger.info(
            f"Span finished: {self.name}",
            extra={**self.context.log_fields(), "data": data},
        )

    def __enter__(self) -> "Span":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is not None:
            self.record_error(exc)
        self.end()
        return False


def start_span(
    name: str,
    parent: TraceContext,
    logger: Optional[LoggerLike] = None,
    **attributes: Any
) -> Span:
    """
    Open a child span of ``parent``.

    Use as a context manager; an exception leaving the block marks the span as
    errored and is re-raised.

    Example:
        >>> with start_span("postal_code.resolve", parent=context) as span:
        ...     span.set_attribute("cep.value", code)
        ...     headers = span.context.to_headers()
    """
    return Span(
        name=name,
        context=parent.child(),
        logger=logger or logging.getLogger("cepweather.tracing"),
        attributes=dict(attributes),
    )


def start_server_span(
    name: str,
    remote: Optional[TraceContext],
    logger: Optional[LoggerLike] = None,
    **attributes: Any
) -> Span:
    """
    Open the span for an inbound request.

    Continues the caller's trace when ``remote`` is given, otherwise the span
    becomes the root of a new trace.
    """
    return Span(
        name=name,
        context=remote.child() if remote is not None else TraceContext.new_root(),
        logger=logger or logging.getLogger("cepweather.tracing"),
        attributes=dict(attributes),
    )
