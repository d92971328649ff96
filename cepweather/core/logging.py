import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from cepweather.core.config import LoggingSettings
from cepweather.core.tracing import TraceContext

_TRACE_FIELDS = ("trace_id", "span_id", "parent_span_id")


class StructuredLogFormatter(logging.Formatter):
    """
    Custom formatter for structured JSON logs.

    Creates a JSON-formatted log entry with standardized fields like
    timestamp, log level, message, trace and span ids, etc.
    """

    def __init__(self, service_name: str = ""):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if self.service_name:
            log_data["service"] = self.service_name

        for key in _TRACE_FIELDS:
            value = getattr(record, key, None)
            if value:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        # Add extra data if available
        if hasattr(record, "data") and isinstance(record.data, dict):
            log_data.update(record.data)

        return json.dumps(log_data, default=str, ensure_ascii=False)


class TextLogFormatter(logging.Formatter):
    """Human-readable formatter for local development."""

    def __init__(self):
        super().__init__(
            "[%(asctime)s] [%(levelname)s] [%(name)s] [%(trace_id)s] - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "trace_id"):
            record.trace_id = "-"
        return super().format(record)


def configure_logging(settings: LoggingSettings, service_name: str = "") -> None:
    """
    Configure application-wide logging.

    Sets up structured JSON logging or formatted console logging, based on
    the logging settings.

    Args:
        settings: Logging settings of the running service
        service_name: Name stamped on every JSON record
    """
    log_level = getattr(logging, settings.LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    if settings.FORMAT.lower() == "json":
        handler.setFormatter(StructuredLogFormatter(service_name))
    else:
        handler.setFormatter(TextLogFormatter())

    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    # Set levels for third-party loggers to reduce noise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name, typically the module name

    Returns:
        logging.Logger: Logger instance
    """
    return logging.getLogger(name)


class TraceLoggerAdapter(logging.LoggerAdapter):
    """
    Adapter that stamps every record with an explicit trace context.
    """

    def __init__(self, logger: logging.Logger, context: TraceContext, extra: Optional[Dict[str, Any]] = None):
        fields = dict(extra or {})
        fields.update(context.log_fields())
        super().__init__(logger, fields)

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Merge trace fields into the record's extra."""
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_trace_logger(name: str, context: TraceContext, **extra: Any) -> TraceLoggerAdapter:
    """
    Get a logger bound to the given trace context.

    Args:
        name: Logger name
        context: Trace context of the current unit of work
        **extra: Additional fields to include in every record

    Returns:
        TraceLoggerAdapter: Logger adapter carrying trace and span ids
    """
    return TraceLoggerAdapter(get_logger(name), context, extra)
