"""
Common API models for ReelForge
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field("ok", description="Service status")
    timestamp: str = Field(..., description="ISO-8601 UTC timestamp")


class ErrorResponse(BaseModel):
    """Error payload. Extra keys (field, index, workspace, ...) may appear outside production."""

    model_config = ConfigDict(extra="allow")

    error: str = Field(..., description="Short error summary")
    details: Optional[str] = Field(None, description="Error detail (generic in production)")
