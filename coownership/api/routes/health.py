"""Health check endpoint for the consensus API."""

from fastapi import APIRouter

from coownership import __version__
from coownership.api.models.health import HealthResponse

router = APIRouter(prefix="/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return health status with 200 OK."""
    return HealthResponse(status="healthy", version=__version__)
