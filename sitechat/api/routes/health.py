"""
Health Check Routes

Liveness endpoint for load balancers and uptime checks.
"""

from fastapi import APIRouter, status

from sitechat import __version__
from sitechat.models.api import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    """
    Basic liveness check.

    Returns 200 OK whenever the process is serving requests.
    """
    return HealthResponse(status="healthy", version=__version__)
