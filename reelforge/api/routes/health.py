"""
Health check endpoint for ReelForge API
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from reelforge.api.models.common import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic liveness check."""
    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return HealthResponse(status="ok", timestamp=timestamp)
