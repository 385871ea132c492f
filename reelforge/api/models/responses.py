"""
Response models for ReelForge API
"""

from pydantic import BaseModel, Field


class GenerateVideoResponse(BaseModel):
    """Response for a successfully published video."""

    jobId: str = Field(..., description="Caller-supplied job identifier")
    url: str = Field(..., description="Public URL of the rendered MP4")
