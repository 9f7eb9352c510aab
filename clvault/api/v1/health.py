"""
Health Check Endpoint
"""
from fastapi import APIRouter, Request
from datetime import datetime, timezone

from clvault.api.schemas import HealthCheckResponse

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(request: Request):
    """
    Health check endpoint

    Returns the current health status of the API.
    """
    return HealthCheckResponse(
        status="healthy",
        version=request.app.version,
        timestamp=datetime.now(timezone.utc)
    )
