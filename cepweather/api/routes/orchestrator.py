from fastapi import APIRouter, Depends, Request, status

from cepweather.api.dependencies import (
    get_temperature_service,
    get_trace_context,
    run_until_disconnected,
)
from cepweather.core.tracing import TraceContext
from cepweather.domain.schemas import ErrorMessage, PostalCodeRequest, TemperatureBody
from cepweather.services.temperature_service import TemperatureService

router = APIRouter()


@router.post(
    "/",
    response_model=TemperatureBody,
    status_code=status.HTTP_200_OK,
    summary="Resolve a CEP and return the current temperature",
    responses={
        400: {"model": ErrorMessage, "description": "Invalid input"},
        404: {"model": ErrorMessage, "description": "Zipcode not found"},
        500: {"model": ErrorMessage, "description": "Provider failure"},
    }
)
async def get_temperature(
    body: PostalCodeRequest,
    request: Request,
    context: TraceContext = Depends(get_trace_context),
    temperature_service: TemperatureService = Depends(get_temperature_service)
):
    """Runs the postal code and weather lookups for the CEP."""
    response = await run_until_disconnected(
        request,
        temperature_service.get_temperature(body.cep, context),
        context
    )
    return response.to_dict()
