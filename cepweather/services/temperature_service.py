from fastapi import status

from cepweather.clients.postal_code import PostalCodeClient
from cepweather.clients.weather import WeatherClient
from cepweather.core.exceptions import (
    PostalCodeLookupFailed,
    PostalCodeNotFound,
    ProviderError,
    WeatherLookupFailed,
)
from cepweather.core.logging import get_trace_logger
from cepweather.core.tracing import TraceContext
from cepweather.domain.models import TemperatureResponse
from cepweather.domain.validation import validate_cep


class TemperatureService:
    """
    Orchestrator pipeline: CEP -> city -> current weather -> temperatures.

    The CEP is validated again here even though the Input service already
    did, since the Orchestrator can be reached directly. The two provider
    calls run strictly one after the other; the weather lookup needs the city.
    """

    def __init__(
        self,
        postal_code_client: PostalCodeClient,
        weather_client: WeatherClient,
        weather_api_key: str
    ):
        self.postal_code_client = postal_code_client
        self.weather_client = weather_client
        self.weather_api_key = weather_api_key

    async def get_temperature(self, cep: str, context: TraceContext) -> TemperatureResponse:
        """
        Resolve a CEP and return the current temperature there.

        Args:
            cep: CEP from the request body, not yet validated
            context: Trace context of the Orchestrator request

        Returns:
            TemperatureResponse with temp_k = temp_c + 273

        Raises:
            InvalidPostalCode: 400, CEP is not eight digits
            PostalCodeLookupFailed: 500, postal-code provider failed
            PostalCodeNotFound: 404, provider returned an empty city
            WeatherLookupFailed: 500, weather provider failed
        """
        logger = get_trace_logger(__name__, context)

        cep = validate_cep(cep, status_code=status.HTTP_400_BAD_REQUEST)

        try:
            record = await self.postal_code_client.resolve(cep, context)
        except ProviderError as e:
            logger.error(f"Postal code lookup failed for CEP {cep}: {e}")
            raise PostalCodeLookupFailed(original_exception=e) from e

        if not record.is_found():
            logger.info(f"CEP {cep} not found by postal code provider")
            raise PostalCodeNotFound(cep)

        try:
            reading = await self.weather_client.fetch(record.city, self.weather_api_key, context)
        except ProviderError as e:
            logger.error(f"Weather lookup failed for city '{record.city}': {e}")
            raise WeatherLookupFailed(original_exception=e) from e

        response = TemperatureResponse.from_reading(reading)

        logger.info(
            f"Request processed successfully for CEP: {cep}",
            extra={"data": {"cep": cep, "city": record.city, **response.to_dict()}}
        )
        return response
