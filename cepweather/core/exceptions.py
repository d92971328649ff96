from typing import Any, Dict, Optional

from fastapi import status


class APIException(Exception):
    """
    Base exception for errors that cross an HTTP boundary.

    Every subclass maps to exactly one status code and one public message.
    Anything the caller must not see goes into ``details``, which is logged
    but never serialized.
    """

    def __init__(
        self,
        message: str = "internal server error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the public error envelope."""
        return {"message": self.message}


# ==============================================================================
# Caller input
# ==============================================================================


class InvalidInput(APIException):
    """Malformed or rule-violating caller input."""

    def __init__(
        self,
        message: str = "invalid input",
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message=message, status_code=status_code, details=details)


class InvalidBody(InvalidInput):
    """Request body could not be parsed as ``{"cep": str}``."""

    def __init__(
        self,
        message: str = "invalid request body",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class InvalidPostalCode(InvalidInput):
    """CEP is not an 8-digit numeric string."""

    def __init__(
        self,
        message: str = "invalid zipcode",
        status_code: int = 422,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message=message, status_code=status_code, details=details)


# ==============================================================================
# Domain absence
# ==============================================================================


class NotFound(APIException):
    """Upstream reports the referenced resource does not exist."""

    def __init__(
        self,
        message: str = "not found",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details
        )


class PostalCodeNotFound(NotFound):
    """Postal-code provider answered with an empty city."""

    def __init__(self, code: str):
        super().__init__(message="can not find zipcode", details={"cep": code})


class ClientDisconnected(APIException):
    """Caller went away before the response was ready; nothing is delivered."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="client closed request",
            status_code=499,
            details=details
        )


# ==============================================================================
# Upstream failures
# ==============================================================================


class UpstreamError(APIException):
    """A downstream hop failed; always a 500 at the boundary."""

    def __init__(
        self,
        message: str = "internal server error",
        details: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details
        )
        self.original_exception = original_exception

        if original_exception is not None:
            self.details["original_error"] = f"{type(original_exception).__name__}: {original_exception}"


class PostalCodeLookupFailed(UpstreamError):
    """Postal-code provider could not be reached or decoded."""

    def __init__(self, original_exception: Optional[Exception] = None):
        super().__init__(
            message="error fetching zipcode data",
            details={"provider": "postal_code"},
            original_exception=original_exception
        )


class WeatherLookupFailed(UpstreamError):
    """Weather provider could not be reached or decoded."""

    def __init__(self, original_exception: Optional[Exception] = None):
        super().__init__(
            message="error fetching weather data",
            details={"provider": "weather"},
            original_exception=original_exception
        )


class UpstreamUnavailable(UpstreamError):
    """
    Input-side bucket for any Orchestrator failure.

    Collapses what went wrong behind the Orchestrator; the
    public boundary never reveals which internal hop failed.
    """

    def __init__(
        self,
        message: str = "internal server error",
        details: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            details=details,
            original_exception=original_exception
        )


# ==============================================================================
# Provider client errors
# ==============================================================================


class ProviderError(Exception):
    """Base class for failures raised by outbound HTTP clients."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        self.message = message
        super().__init__(f"{provider}: {message}")


class TransportError(ProviderError):
    """Network-level failure reaching a provider (connect, read, timeout)."""


class DecodeError(ProviderError):
    """Provider responded but the body could not be interpreted."""


class NilBody(ProviderError):
    """Provider responded with an empty body where one is required."""


class MissingCity(ProviderError):
    """Weather lookup called with an empty city."""

    def __init__(self, provider: str = "weather"):
        super().__init__(provider, "city is empty")


class MissingApiKey(ProviderError):
    """Weather lookup called with an empty API key."""

    def __init__(self, provider: str = "weather"):
        super().__init__(provider, "API key is empty")
