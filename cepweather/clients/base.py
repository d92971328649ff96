import json
from typing import Any, Dict, Optional

import httpx

from cepweather.core.exceptions import DecodeError, NilBody, TransportError
from cepweather.core.logging import get_logger
from cepweather.core.tracing import LoggerLike

module_logger = get_logger(__name__)


class ProviderClient:
    """
    Base class for outbound HTTP clients.

    Owns the provider name, base URL and per-call timeout, and turns httpx
    failures into provider errors. The underlying ``httpx.AsyncClient`` is
    shared and owned by the application.
    """

    provider_name = "provider"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        timeout: float = 3.0
    ):
        """
        Initialize the client.

        Args:
            http_client: Shared async HTTP client
            base_url: Provider base URL
            timeout: Per-call timeout in seconds
        """
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def _request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        logger: Optional[LoggerLike] = None,
        **kwargs: Any
    ) -> httpx.Response:
        """
        Send one request, bounded by this client's timeout.

        Args:
            method: HTTP method
            url: Absolute request URL
            headers: Request headers, including trace propagation headers
            logger: Trace-bound logger of the calling span
            **kwargs: Passed through to ``httpx.AsyncClient.request``

        Raises:
            TransportError: On connection failure or timeout
        """
        log = logger or module_logger
        try:
            return await self.http_client.request(
                method,
                url,
                headers=headers,
                timeout=self.timeout,
                **kwargs
            )
        except httpx.TimeoutException as e:
            log.error(f"{self.provider_name} request timed out after {self.timeout}s: {e}")
            raise TransportError(self.provider_name, f"timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            log.error(f"{self.provider_name} request failed: {e}")
            raise TransportError(self.provider_name, str(e) or type(e).__name__) from e

    def _decode_object(
        self,
        response: httpx.Response,
        require_body: bool = False,
        logger: Optional[LoggerLike] = None
    ) -> Dict[str, Any]:
        """
        Decode a JSON object body.

        Args:
            response: Provider response
            require_body: Raise NilBody instead of DecodeError for an empty body
            logger: Trace-bound logger of the calling span

        Raises:
            NilBody: If the body is empty and ``require_body`` is set
            DecodeError: If the body is not a JSON object
        """
        if not response.content:
            if require_body:
                raise NilBody(self.provider_name, "response body is empty")
            raise DecodeError(self.provider_name, "response body is empty")

        try:
            data = json.loads(response.content)
        except ValueError as e:
            (logger or module_logger).error(
                f"Error decoding {self.provider_name} response",
                extra={"data": {"status_code": response.status_code}}
            )
            raise DecodeError(self.provider_name, f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise DecodeError(self.provider_name, f"expected a JSON object, got {type(data).__name__}")

        return data
