"""
Custom exceptions and handlers for ReelForge API.

Pipeline exceptions are mapped to HTTP here so routes can simply let them
propagate.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
import logging

from reelforge import settings
from reelforge.core.exceptions import JobFailedError, JobValidationError

logger = logging.getLogger(__name__)

TRUNCATED_MARKER = "...[truncated]"


class InvalidJSONError(Exception):
    """Request body could not be decoded as JSON."""

    def __init__(self, message: str, raw_body: str = ""):
        self.message = message
        self.raw_body = raw_body
        super().__init__(message)

    def snippet(self, limit: int) -> str:
        if not self.raw_body:
            return "<unavailable>"
        if len(self.raw_body) > limit:
            return self.raw_body[:limit] + TRUNCATED_MARKER
        return self.raw_body


def _is_production(request: Request) -> bool:
    """Production switch as seen by the app's orchestrator."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        return settings.is_production()
    return orchestrator.is_production()


async def invalid_json_handler(request: Request, exc: InvalidJSONError):
    """400 with a raw-body snippet outside production."""
    snippet = exc.snippet(settings.get_invalid_json_snippet_chars())
    logger.error(f"INVALID JSON in request body: {exc.message}")
    logger.error(f"Raw body snippet:\n{snippet}")

    content = {"error": "Invalid JSON", "message": exc.message}
    if not _is_production(request):
        content["rawBodySnippet"] = snippet
    return JSONResponse(status_code=400, content=content)


async def job_validation_handler(request: Request, exc: JobValidationError):
    return JSONResponse(status_code=400, content=exc.to_response(_is_production(request)))


async def job_failed_handler(request: Request, exc: JobFailedError):
    logger.error(f"Video generation failed: {exc}")
    return JSONResponse(status_code=500, content=exc.to_response(_is_production(request)))
