from cepweather.clients.orchestrator import OrchestratorClient
from cepweather.core.logging import get_trace_logger
from cepweather.core.tracing import TraceContext
from cepweather.domain.models import TemperatureResponse
from cepweather.domain.validation import validate_cep


class InputService:
    """Public-boundary pipeline: validate the CEP, forward it, relay the result."""

    def __init__(self, orchestrator_client: OrchestratorClient):
        self.orchestrator_client = orchestrator_client

    async def get_temperature(self, cep: str, context: TraceContext) -> TemperatureResponse:
        """
        Validate the CEP and fetch its temperature from the Orchestrator.

        Exactly one outbound call is made for a valid CEP and none for an
        invalid one.

        Args:
            cep: CEP from the public request body
            context: Trace context of the Input request

        Returns:
            TemperatureResponse with temp_k recomputed from temp_c

        Raises:
            InvalidPostalCode: 422, CEP is not eight digits
            UpstreamUnavailable: 500, the Orchestrator call failed in any way
        """
        logger = get_trace_logger(__name__, context)

        cep = validate_cep(cep)

        response = await self.orchestrator_client.get_temperature(cep, context)

        # temp_k is always derived from temp_c at this boundary.
        response = response.with_recomputed_kelvin()

        logger.info(
            f"Request processed successfully for CEP: {cep}",
            extra={"data": {"cep": cep, **response.to_dict()}}
        )
        return response
