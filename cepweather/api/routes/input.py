from fastapi import APIRouter, Depends, Request, status

from cepweather.api.dependencies import (
    get_input_service,
    get_trace_context,
    run_until_disconnected,
)
from cepweather.core.tracing import TraceContext
from cepweather.domain.schemas import ErrorMessage, PostalCodeRequest, TemperatureBody
from cepweather.services.input_service import InputService

router = APIRouter()


@router.post(
    "/",
    response_model=TemperatureBody,
    status_code=status.HTTP_200_OK,
    summary="Current temperature for a CEP",
    responses={
        400: {"model": ErrorMessage, "description": "Malformed request body"},
        422: {"model": ErrorMessage, "description": "Invalid zipcode"},
        500: {"model": ErrorMessage, "description": "Upstream failure"},
    }
)
async def get_temperature(
    body: PostalCodeRequest,
    request: Request,
    context: TraceContext = Depends(get_trace_context),
    input_service: InputService = Depends(get_input_service)
):
    """Validates the CEP and forwards it to the Orchestrator."""
    response = await run_until_disconnected(
        request,
        input_service.get_temperature(body.cep, context),
        context
    )
    return response.to_dict()
