from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from cepweather.api.error_handlers import setup_exception_handlers
from cepweather.api.middleware import configure_middleware
from cepweather.api.routes import orchestrator
from cepweather.api.routes.health import build_health_router
from cepweather.clients.postal_code import PostalCodeClient
from cepweather.clients.weather import WeatherClient
from cepweather.core.config import OrchestratorSettings, get_orchestrator_settings
from cepweather.core.logging import configure_logging, get_logger
from cepweather.services.temperature_service import TemperatureService

logger = get_logger(__name__)

HEALTH_BANNER = (
    "Hello, World! This is the CEP Weather Orchestrator (Service B)!\n"
    " Use POST / to get the weather data for a given CEP.\n"
)


def create_application(
    settings: Optional[OrchestratorSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> FastAPI:
    """
    Create and configure the Orchestrator application.

    Args:
        settings: Service settings; read from the environment when omitted
        transport: Optional httpx transport for the provider clients

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = settings or get_orchestrator_settings()
    configure_logging(settings.logging, settings.SERVICE_NAME)

    if not settings.WEATHER_SECRET_KEY:
        logger.warning("WEATHER_SECRET_KEY is not set; weather lookups will fail")

    http_client = httpx.AsyncClient(transport=transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.SERVICE_NAME} in {settings.ENV} mode")
        yield
        logger.info(f"Shutting down {settings.SERVICE_NAME}")
        await http_client.aclose()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        description="Resolves a CEP to a city and returns its current temperature",
        version=settings.VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.http_client = http_client
    app.state.temperature_service = TemperatureService(
        postal_code_client=PostalCodeClient(
            http_client, settings.VIACEP_URL, timeout=settings.PROVIDER_TIMEOUT
        ),
        weather_client=WeatherClient(
            http_client, settings.WEATHER_API_URL, timeout=settings.PROVIDER_TIMEOUT
        ),
        weather_api_key=settings.WEATHER_SECRET_KEY,
    )

    configure_middleware(app, span_name=f"{settings.SERVICE_NAME} - orchestrator handler")
    setup_exception_handlers(app)

    app.include_router(build_health_router(HEALTH_BANNER), tags=["health"])
    app.include_router(orchestrator.router, tags=["temperature"])

    return app


def run() -> None:
    """Serve the Orchestrator with uvicorn."""
    import uvicorn

    settings = get_orchestrator_settings()
    uvicorn.run(
        create_application(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.logging.LEVEL.lower()
    )


if __name__ == "__main__":
    run()
