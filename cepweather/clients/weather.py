from typing import Any, Dict

from cepweather.clients.base import ProviderClient
from cepweather.core.exceptions import DecodeError, MissingApiKey, MissingCity
from cepweather.core.logging import get_trace_logger
from cepweather.core.tracing import TraceContext, start_span
from cepweather.domain.models import WeatherReading


class WeatherClient(ProviderClient):
    """
    HTTP client for the WeatherAPI current-conditions endpoint.

    Example:
        >>> client = WeatherClient(http_client, "https://api.weatherapi.com/v1/current.json")
        >>> reading = await client.fetch("São Paulo", api_key, context)
        >>> reading.temp_c
        25.0
    """

    provider_name = "weather"

    async def fetch(self, city: str, api_key: str, context: TraceContext) -> WeatherReading:
        """
        Fetch the current weather for a city.

        Preconditions are checked before any network call.

        Args:
            city: Locality name, sent percent-encoded as ``q``
            api_key: Provider key, sent as ``key``
            context: Trace context of the calling unit of work

        Returns:
            WeatherReading with provider-reported temperatures

        Raises:
            MissingCity: If city is empty
            MissingApiKey: If api_key is empty
            TransportError: If the provider cannot be reached
            NilBody: If the provider returns an empty body
            DecodeError: If the body is not valid weather JSON
        """
        logger = get_trace_logger(__name__, context)

        with start_span("weather.fetch", parent=context, logger=logger) as span:
            span.set_attributes(**{
                "weather.city": city,
                "weather.api_key_provided": api_key != "",
            })

            if city == "":
                raise MissingCity(self.provider_name)
            if api_key == "":
                raise MissingApiKey(self.provider_name)

            response = await self._request(
                "GET",
                self.base_url,
                params={"key": api_key, "q": city},
                headers={"Accept": "application/json", **span.context.to_headers()},
                logger=logger
            )
            span.set_attribute("http.status_code", response.status_code)

            data = self._decode_object(response, require_body=True, logger=logger)
            reading = self._map_to_reading(data)

            span.set_attributes(**{
                "weather.temp_c": reading.temp_c,
                "weather.temp_f": reading.temp_f,
                "weather.location_name": reading.location_name,
                "weather.condition": reading.condition,
            })

        return reading

    def _map_to_reading(self, data: Dict[str, Any]) -> WeatherReading:
        """Maps a WeatherAPI payload to a WeatherReading."""
        current = data.get("current")
        if not isinstance(current, dict):
            error = data.get("error")
            if isinstance(error, dict) and error.get("message"):
                raise DecodeError(self.provider_name, f"provider error: {error['message']}")
            raise DecodeError(self.provider_name, "missing 'current' section")

        try:
            temp_c = float(current["temp_c"])
            temp_f = float(current["temp_f"])
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(self.provider_name, f"invalid temperature fields: {e}") from e

        location = data.get("location") if isinstance(data.get("location"), dict) else {}
        condition = current.get("condition") if isinstance(current.get("condition"), dict) else {}

        return WeatherReading(
            location_name=str(location.get("name") or ""),
            temp_c=temp_c,
            temp_f=temp_f,
            updated_at=str(current.get("last_updated") or ""),
            condition=str(condition.get("text") or ""),
        )
