from cepweather.clients.base import ProviderClient
from cepweather.core.logging import get_trace_logger
from cepweather.core.tracing import TraceContext, start_span
from cepweather.domain.models import PostalCodeRecord


class PostalCodeClient(ProviderClient):
    """
    HTTP client for the ViaCEP postal-code provider.

    ViaCEP answers unknown codes with HTTP 200 and ``{"erro": true}``, so this
    client does not interpret the status code. Callers check
    ``PostalCodeRecord.is_found()`` instead.

    Example:
        >>> client = PostalCodeClient(http_client, "https://viacep.com.br/ws")
        >>> record = await client.resolve("01001000", context)
        >>> record.city
        'São Paulo'
    """

    provider_name = "postal_code"

    async def resolve(self, code: str, context: TraceContext) -> PostalCodeRecord:
        """
        Resolve a CEP into a PostalCodeRecord.

        Args:
            code: Validated 8-digit CEP
            context: Trace context of the calling unit of work

        Returns:
            PostalCodeRecord, possibly with an empty city

        Raises:
            TransportError: If the provider cannot be reached
            DecodeError: If the body is not a JSON object
        """
        logger = get_trace_logger(__name__, context)

        with start_span("postal_code.resolve", parent=context, logger=logger) as span:
            span.set_attribute("cep.value", code)
            url = f"{self.base_url}/{code}/json/"

            response = await self._request(
                "GET",
                url,
                headers={"Accept": "application/json", **span.context.to_headers()},
                logger=logger
            )
            span.set_attribute("http.status_code", response.status_code)

            record = PostalCodeRecord.from_provider(self._decode_object(response, logger=logger))
            span.set_attributes(**{"cep.city": record.city, "cep.state": record.state})

        logger.debug(f"Resolved CEP {code} to '{record.city}'")
        return record
