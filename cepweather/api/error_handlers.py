from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cepweather.core.exceptions import APIException, InvalidBody, UpstreamError
from cepweather.core.logging import get_logger, get_trace_logger
from cepweather.core.tracing import TraceContext

logger = get_logger(__name__)


def _request_logger(request: Request):
    context: Optional[TraceContext] = getattr(request.state, "trace_context", None)
    if context is None:
        return logger
    return get_trace_logger(__name__, context)


def create_error_response(status_code: int, message: str) -> JSONResponse:
    """
    Creates the public error envelope ``{"message": ...}``.
    """
    return JSONResponse(status_code=status_code, content={"message": message})


def setup_exception_handlers(app: FastAPI, message_prefix: str = "") -> None:
    """
    Configure exception handlers for the application.

    Args:
        app: FastAPI application instance
        message_prefix: Prepended to every public error message
    """

    @app.exception_handler(APIException)
    async def handle_api_exception(request: Request, exc: APIException) -> JSONResponse:
        """
        Handles APIException instances.

        Details stay in the log; only the envelope goes to the caller.
        """
        log_data: Dict[str, Any] = {
            "status_code": exc.status_code,
            "error_type": type(exc).__name__,
            "details": exc.details,
        }
        request_logger = _request_logger(request)
        if isinstance(exc, UpstreamError):
            request_logger.error(f"API error: {exc.message}", extra={"data": log_data})
        else:
            request_logger.warning(f"API error: {exc.message}", extra={"data": log_data})

        return create_error_response(exc.status_code, f"{message_prefix}{exc.message}")

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Handles request body validation errors as a malformed body.
        """
        errors = [
            {"loc": list(error.get("loc", ())), "type": error.get("type")}
            for error in exc.errors()
        ]
        return await handle_api_exception(
            request,
            InvalidBody(details={"errors": errors})
        )

    @app.exception_handler(Exception)
    async def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
        """
        Handles all other Exception instances.
        Logs the error and returns a generic error response.
        """
        _request_logger(request).error(f"Unhandled exception: {str(exc)}", exc_info=True)

        return create_error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"{message_prefix}internal server error"
        )
