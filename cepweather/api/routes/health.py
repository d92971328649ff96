from fastapi import APIRouter, status
from fastapi.responses import PlainTextResponse


def build_health_router(banner: str) -> APIRouter:
    """
    Build the liveness router.

    Args:
        banner: Plain-text body returned by ``GET /health``

    Returns:
        APIRouter: Router with a single health endpoint
    """
    router = APIRouter()

    @router.get(
        "/health",
        response_class=PlainTextResponse,
        status_code=status.HTTP_200_OK,
        summary="Basic health check",
        description="Returns a plain-text liveness banner."
    )
    async def get_health() -> str:
        return banner

    return router
