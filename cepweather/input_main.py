from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from cepweather.api.error_handlers import setup_exception_handlers
from cepweather.api.middleware import configure_middleware
from cepweather.api.routes import input as input_routes
from cepweather.api.routes.health import build_health_router
from cepweather.clients.orchestrator import OrchestratorClient
from cepweather.core.config import InputSettings, get_input_settings
from cepweather.core.logging import configure_logging, get_logger
from cepweather.services.input_service import InputService

logger = get_logger(__name__)

ERROR_MESSAGE_PREFIX = "Mensagem: "

HEALTH_BANNER = (
    "Hello, World! This is the CEP Weather Input (Service A)!\n"
    " Use POST / to get the weather data for a given CEP.\n"
)


def create_application(
    settings: Optional[InputSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> FastAPI:
    """
    Create and configure the Input application.

    Args:
        settings: Service settings; read from the environment when omitted
        transport: Optional httpx transport for the Orchestrator client

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = settings or get_input_settings()
    configure_logging(settings.logging, settings.SERVICE_NAME)

    http_client = httpx.AsyncClient(transport=transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Starting {settings.SERVICE_NAME} in {settings.ENV} mode, "
            f"forwarding to {settings.ORCHESTRATOR_URL}"
        )
        yield
        logger.info(f"Shutting down {settings.SERVICE_NAME}")
        await http_client.aclose()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        description="Public entry point: validates a CEP and returns its current temperature",
        version=settings.VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.http_client = http_client
    app.state.input_service = InputService(
        OrchestratorClient(
            http_client, settings.ORCHESTRATOR_URL, timeout=settings.ORCHESTRATOR_TIMEOUT
        )
    )

    configure_middleware(app, span_name=f"{settings.SERVICE_NAME} - input handler")
    setup_exception_handlers(app, message_prefix=ERROR_MESSAGE_PREFIX)

    app.include_router(build_health_router(HEALTH_BANNER), tags=["health"])
    app.include_router(input_routes.router, tags=["temperature"])

    return app


def run() -> None:
    """Serve the Input service with uvicorn."""
    import uvicorn

    settings = get_input_settings()
    uvicorn.run(
        create_application(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.logging.LEVEL.lower()
    )


if __name__ == "__main__":
    run()
