"""
Segment normalization and validation.

Callers send segments with several spellings of the same field. Each logical
field has a fixed alias list; the first alias present wins. "Present" means
not None for id and duration (so 0 is kept), and truthy for the rest.
"""

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .exceptions import JobValidationError
from .models import DEFAULT_RESOLUTION, DownloadedSegment, JobRequest, Segment

logger = logging.getLogger(__name__)

ID_ALIASES: Tuple[str, ...] = ("id", "ID", "index")
IMAGE_URL_ALIASES: Tuple[str, ...] = ("imageUrl", "image_Url", "image_url", "image")
DURATION_ALIASES: Tuple[str, ...] = ("duration", "length", "time")
IMAGE_PROMPT_ALIASES: Tuple[str, ...] = ("image_prompt", "imagePrompt")
SUBTITLE_TEXT_ALIASES: Tuple[str, ...] = ("subtitleText", "subtitle_text", "subtitle")
WORD_DURATION_ALIASES: Tuple[str, ...] = ("word_duration", "wordDuration", "words")

JOB_ID_REQUIRED = "jobId required in request body"
SEGMENTS_REQUIRED = "segments array required"
DURATION_INVALID = (
    "Payload validation failed: each segment must include a numeric 'duration' "
    "in seconds (missing or invalid at index {index})"
)


def _first_present(raw: Mapping[str, Any], aliases: Sequence[str]) -> Any:
    for alias in aliases:
        value = raw.get(alias)
        if value is not None:
            return value
    return None


def _first_truthy(raw: Mapping[str, Any], aliases: Sequence[str]) -> Any:
    for alias in aliases:
        value = raw.get(alias)
        if value:
            return value
    return None


def normalize_segment(raw: Any, index: int) -> Segment:
    """
    Map one raw segment onto the canonical Segment.

    Raises:
        JobValidationError: If the segment is not an object or has no image URL
    """
    if not isinstance(raw, Mapping):
        raise JobValidationError(
            f"segment at index {index} must be an object", field="segments", index=index
        )

    image_url = _first_truthy(raw, IMAGE_URL_ALIASES)
    if not isinstance(image_url, str) or not image_url.strip():
        raise JobValidationError(
            f"segment at index {index} is missing 'imageUrl'", field="imageUrl", index=index
        )

    return Segment(
        id=_first_present(raw, ID_ALIASES),
        image_url=image_url.strip(),
        duration=_first_present(raw, DURATION_ALIASES),
        image_prompt=_first_truthy(raw, IMAGE_PROMPT_ALIASES),
        subtitle_text=_first_truthy(raw, SUBTITLE_TEXT_ALIASES),
        word_duration=_first_truthy(raw, WORD_DURATION_ALIASES),
    )


def unwrap_body(body: Any) -> Any:
    """Accept ``{...}`` or a one-element ``[{...}]`` wrapper."""
    if isinstance(body, list) and len(body) == 1 and isinstance(body[0], dict):
        return body[0]
    return body


def normalize_job_payload(body: Any) -> JobRequest:
    """
    Validate and normalize an inbound job payload.

    All checks here run before any workspace exists.

    Args:
        body: Decoded JSON body

    Returns:
        JobRequest with canonical segments

    Raises:
        JobValidationError: On a missing job id or an empty/malformed segment list
    """
    body = unwrap_body(body)
    if not isinstance(body, dict):
        body = {}

    job_id = body.get("jobId")
    if not isinstance(job_id, str) or not job_id.strip():
        raise JobValidationError(JOB_ID_REQUIRED, field="jobId")

    raw_segments = body.get("segments")
    if not isinstance(raw_segments, list) or not raw_segments:
        raise JobValidationError(SEGMENTS_REQUIRED, field="segments")

    segments = [normalize_segment(raw, i) for i, raw in enumerate(raw_segments)]

    resolution = body.get("resolution") or DEFAULT_RESOLUTION
    if not isinstance(resolution, str):
        raise JobValidationError("resolution must be a string like '1280x720'", field="resolution")

    subtitle_style = body.get("subtitleStyle")
    subtitle_preset = body.get("subtitlePreset")

    logger.info(f"Received {len(segments)} segments for job {job_id}")
    for i, segment in enumerate(segments):
        logger.debug(f"segment[{i}] imageUrl={segment.image_url} duration={segment.duration}")

    return JobRequest(
        job_id=job_id,
        segments=segments,
        resolution=resolution,
        subtitle_style=subtitle_style if isinstance(subtitle_style, str) and subtitle_style else None,
        subtitle_preset=subtitle_preset if isinstance(subtitle_preset, str) and subtitle_preset else None,
    )


def coerce_duration(value: Any) -> Optional[float]:
    """Return a finite positive float, or None if the value cannot be one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(seconds) or seconds <= 0:
        return None
    return seconds


def validate_durations(segments: List[DownloadedSegment]) -> List[DownloadedSegment]:
    """
    Ensure every segment carries a usable duration, coercing it to float.

    Raises:
        JobValidationError: Naming the first offending index
    """
    for i, segment in enumerate(segments):
        seconds = coerce_duration(segment.duration)
        if seconds is None:
            raise JobValidationError(DURATION_INVALID.format(index=i), field="duration", index=i)
        segment.duration = seconds
    return segments


def describe_segments(segments: List[DownloadedSegment]) -> List[Dict[str, Any]]:
    """Compact summary used in debug logs."""
    return [
        {"index": s.index, "image": s.image_path.name, "duration": s.duration, "srt": bool(s.srt_path)}
        for s in segments
    ]
