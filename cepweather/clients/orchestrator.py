from pydantic import ValidationError

from cepweather.clients.base import ProviderClient
from cepweather.core.exceptions import ProviderError, UpstreamUnavailable
from cepweather.core.logging import get_trace_logger
from cepweather.core.tracing import TraceContext, start_span
from cepweather.domain.models import TemperatureResponse, celsius_to_kelvin
from cepweather.domain.schemas import OrchestratorTemperatureBody


class OrchestratorClient(ProviderClient):
    """
    HTTP client the Input service uses to reach the Orchestrator.

    Every failure collapses into UpstreamUnavailable; the Orchestrator's own
    status and message are logged but never relayed.
    """

    provider_name = "orchestrator"

    async def get_temperature(self, cep: str, context: TraceContext) -> TemperatureResponse:
        """
        Ask the Orchestrator for the temperature at a CEP.

        Args:
            cep: Validated 8-digit CEP
            context: Trace context of the Input request

        Returns:
            TemperatureResponse as sent by the Orchestrator (temp_k may be
            missing, in which case it is derived from temp_c)

        Raises:
            UpstreamUnavailable: On transport failure, non-200 status or
                malformed body
        """
        logger = get_trace_logger(__name__, context)

        try:
            with start_span("orchestrator.get_temperature", parent=context, logger=logger) as span:
                span.set_attribute("cep.value", cep)

                response = await self._request(
                    "POST",
                    self.base_url,
                    json={"cep": cep},
                    headers={"Accept": "application/json", **span.context.to_headers()},
                    logger=logger
                )
                span.set_attribute("http.status_code", response.status_code)

                if response.status_code != 200:
                    logger.error(
                        f"Orchestrator returned error: {response.status_code}",
                        extra={"data": {"status_code": response.status_code, "response": response.text[:500]}}
                    )
                    raise UpstreamUnavailable(
                        details={"status_code": response.status_code}
                    )

                data = self._decode_object(response, logger=logger)
                body = OrchestratorTemperatureBody.model_validate(data)
        except ProviderError as e:
            raise UpstreamUnavailable(original_exception=e) from e
        except ValidationError as e:
            logger.error(f"Orchestrator response failed validation: {e.error_count()} error(s)")
            raise UpstreamUnavailable(original_exception=e) from e

        temp_k = body.temp_k if body.temp_k is not None else celsius_to_kelvin(body.temp_c)
        return TemperatureResponse(temp_c=body.temp_c, temp_f=body.temp_f, temp_k=temp_k)
