"""
Video generation endpoint for ReelForge API
"""

import json
import logging

from fastapi import APIRouter, Depends, Request

from reelforge.api.dependencies import get_orchestrator
from reelforge.api.exceptions import InvalidJSONError
from reelforge.api.models.common import ErrorResponse
from reelforge.api.models.responses import GenerateVideoResponse
from reelforge.services.job_orchestrator import JobOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/generate-video",
    response_model=GenerateVideoResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def generate_video(
    request: Request,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
) -> GenerateVideoResponse:
    """
    Render the posted segments into one MP4 and publish it.

    Body: ``{jobId, segments, resolution?, subtitleStyle?, subtitlePreset?}``
    or a one-element array wrapping that object. The body is decoded by hand
    so malformed JSON can be reported with a snippet of what was received.
    """
    raw_body = await request.body()
    logger.info("Incoming /generate-video request")

    if not raw_body.strip():
        body = {}
    else:
        try:
            body = json.loads(raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidJSONError(str(e), raw_body=raw_body.decode("utf-8", errors="replace")) from e

    if isinstance(body, dict):
        logger.debug(f"Request body keys: {list(body.keys())}")

    result = await orchestrator.run(body)
    return GenerateVideoResponse(**result.to_response())
