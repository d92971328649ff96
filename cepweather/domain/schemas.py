from typing import Optional

from pydantic import BaseModel, ConfigDict, StrictStr


class PostalCodeRequest(BaseModel):
    """Request body accepted by both services."""
    cep: StrictStr = ""

    model_config = ConfigDict(extra="ignore")


class TemperatureBody(BaseModel):
    """Success body returned by both services."""
    temp_c: float
    temp_f: float
    temp_k: float


class OrchestratorTemperatureBody(BaseModel):
    """
    Success body as received from the Orchestrator.

    temp_k is optional here; the Input service derives it from temp_c.
    """
    temp_c: float
    temp_f: float
    temp_k: Optional[float] = None

    model_config = ConfigDict(extra="ignore")


class ErrorMessage(BaseModel):
    """Error envelope returned by both services."""
    message: str
