"""
FFmpeg utilities for ReelForge

Goals
- Build every ffmpeg command line with ffmpeg-python so filters stay readable
- Run ffmpeg/ffprobe as asyncio subprocesses; never block the event loop
- Always reap a killed process after a timeout or cancellation
- Keep geometry math (letterboxing, scale factors) pure and testable

All output uses a single profile: H.264, yuv420p, constant frame rate,
+faststart, no audio.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import ffmpeg

from reelforge import settings
from reelforge.core.exceptions import FFmpegError, FFmpegTimeoutError

logger = logging.getLogger(__name__)

FALLBACK_WIDTH = 1280
FALLBACK_HEIGHT = 720

# Keep ffmpeg's stderr limited to real errors so communicate() stays small
QUIET_ARGS = ("-hide_banner", "-loglevel", "error")


# --------------------------- Data models ---------------------------

@dataclass
class EncodeProfile:
    """Output encoding settings shared by the fast and fallback paths."""
    encoder: str = "libx264"
    preset: str = "ultrafast"
    tune: Optional[str] = "stillimage"
    pix_fmt: str = "yuv420p"
    fps: int = 24
    threads: int = 1

    @classmethod
    def from_settings(cls, threads: Optional[int] = None) -> "EncodeProfile":
        return cls(
            encoder=settings.get_video_encoder(),
            preset=settings.get_encoder_preset(),
            tune=settings.get_encoder_tune(),
            pix_fmt=settings.get_pixel_format(),
            fps=settings.get_frame_rate(),
            threads=threads if threads is not None else settings.get_max_concurrency(),
        )

    def output_kwargs(self) -> dict:
        kwargs = {
            "vcodec": self.encoder,
            "pix_fmt": self.pix_fmt,
            "movflags": "+faststart",
            "r": self.fps,
            "threads": self.threads,
        }
        # preset/tune values are x264-specific
        if self.encoder == "libx264":
            kwargs["preset"] = self.preset
            if self.tune:
                kwargs["tune"] = self.tune
        return kwargs


@dataclass
class FrameInput:
    """One still image held on screen for ``duration`` seconds."""
    image_path: Path
    duration: float
    native_size: Optional[Tuple[int, int]] = None


# --------------------------- Geometry ---------------------------

def parse_resolution(resolution: Optional[str]) -> Tuple[int, int]:
    """
    Parse ``"WxH"`` into integers.

    Each axis falls back independently (1280 / 720) when missing, non-numeric
    or not positive.
    """
    parts = (resolution or "").lower().split("x")

    def _axis(index: int, fallback: int) -> int:
        try:
            value = float(parts[index])
        except (IndexError, ValueError):
            return fallback
        if not math.isfinite(value) or value <= 0:
            return fallback
        return int(value)

    return _axis(0, FALLBACK_WIDTH), _axis(1, FALLBACK_HEIGHT)


def compute_scaled_dimensions(
    native_width: int,
    native_height: int,
    target_width: int,
    target_height: int,
) -> Tuple[int, int]:
    """
    Fit an image inside the target frame without upscaling.

    factor = min(W/w, H/h, 1); dimensions are floored with a 1px minimum.
    """
    if native_width <= 0 or native_height <= 0:
        raise ValueError(f"Invalid native size {native_width}x{native_height}")

    factor = min(target_width / native_width, target_height / native_height, 1.0)
    scaled_width = max(1, math.floor(native_width * factor))
    scaled_height = max(1, math.floor(native_height * factor))
    return scaled_width, scaled_height


def letterbox(stream, target_width: int, target_height: int, native_size: Optional[Tuple[int, int]] = None):
    """
    Scale a video stream into the target frame and pad it centered.

    With a known native size the scale is explicit and never upscales;
    otherwise ffmpeg decides via force_original_aspect_ratio=decrease.
    """
    if native_size:
        scaled_width, scaled_height = compute_scaled_dimensions(
            native_size[0], native_size[1], target_width, target_height
        )
        stream = stream.filter("scale", scaled_width, scaled_height)
    else:
        stream = stream.filter(
            "scale", target_width, target_height, force_original_aspect_ratio="decrease"
        )
    stream = stream.filter("pad", target_width, target_height, "(ow-iw)/2", "(oh-ih)/2")
    return stream.filter("setsar", 1)


# --------------------------- Command builders ---------------------------

def build_multi_segment_command(
    frames: Sequence[FrameInput],
    out_path: Path | str,
    resolution: str,
    profile: EncodeProfile,
    ffmpeg_path: Optional[str] = None,
) -> List[str]:
    """
    Build the single-pass command: one looped image input per segment,
    letterboxed and concatenated in input order.
    """
    if not frames:
        raise ValueError("At least one segment is required")

    width, height = parse_resolution(resolution)
    streams = []
    for frame in frames:
        image_in = ffmpeg.input(
            str(frame.image_path), loop=1, framerate=profile.fps, t=frame.duration
        )
        streams.append(letterbox(image_in.video, width, height, frame.native_size))

    joined = ffmpeg.concat(*streams, v=1, a=0)
    return (
        ffmpeg
        .output(joined, str(out_path), **profile.output_kwargs())
        .global_args(*QUIET_ARGS)
        .overwrite_output()
        .compile(cmd=ffmpeg_path or settings.get_ffmpeg_path())
    )


def build_single_segment_command(
    frame: FrameInput,
    out_path: Path | str,
    resolution: str,
    profile: EncodeProfile,
    ffmpeg_path: Optional[str] = None,
) -> List[str]:
    """Build the command that renders one image into its own clip."""
    width, height = parse_resolution(resolution)
    image_in = ffmpeg.input(str(frame.image_path), loop=1, framerate=profile.fps)
    video = letterbox(image_in.video, width, height)
    return (
        ffmpeg
        .output(video, str(out_path), t=frame.duration, **profile.output_kwargs())
        .global_args(*QUIET_ARGS)
        .overwrite_output()
        .compile(cmd=ffmpeg_path or settings.get_ffmpeg_path())
    )


def write_concat_list(clip_paths: Sequence[Path | str], list_file: Path | str) -> Path:
    """Write a concat-demuxer list file, escaping single quotes in paths."""
    lines = []
    for clip in clip_paths:
        escaped = str(Path(clip).resolve()).replace("'", "'\\''")
        lines.append(f"file '{escaped}'")
    list_path = Path(list_file)
    list_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return list_path


def build_concat_copy_command(
    list_file: Path | str,
    out_path: Path | str,
    ffmpeg_path: Optional[str] = None,
) -> List[str]:
    """Build a lossless concat of uniform clips via the concat demuxer."""
    return (
        ffmpeg
        .input(str(list_file), format="concat", safe=0)
        .output(str(out_path), c="copy", movflags="+faststart")
        .global_args(*QUIET_ARGS)
        .overwrite_output()
        .compile(cmd=ffmpeg_path or settings.get_ffmpeg_path())
    )


# --------------------------- Process helpers ---------------------------

async def _kill_and_reap(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()


async def run_ffmpeg(
    args: Sequence[str],
    timeout: Optional[float] = None,
    segment_index: Optional[int] = None,
) -> str:
    """
    Run an ffmpeg command line as a child process.

    Args:
        args: Full argv, program first
        timeout: Wall-clock budget in seconds (None = unbounded)
        segment_index: Included in errors for per-segment renders

    Returns:
        Decoded stderr output

    Raises:
        FFmpegTimeoutError: Process exceeded timeout and was killed
        FFmpegError: Process could not start or exited non-zero
    """
    logger.debug(f"FFmpeg command: {' '.join(args)}")
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise FFmpegError(f"Failed to start {args[0]}: {e}", segment_index=segment_index) from e

    try:
        _, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        await _kill_and_reap(process)
        logger.error(f"FFmpeg process timed out after {timeout} seconds")
        raise FFmpegTimeoutError(
            f"FFmpeg process timed out after {timeout} seconds",
            timeout=timeout,
            segment_index=segment_index,
        )
    except asyncio.CancelledError:
        await _kill_and_reap(process)
        raise

    stderr_text = stderr.decode("utf-8", errors="replace") if stderr else ""
    if process.returncode != 0:
        raise FFmpegError(
            f"ffmpeg exited with code {process.returncode}: {stderr_text[:500]}",
            returncode=process.returncode,
            stderr=stderr_text,
            segment_index=segment_index,
        )
    return stderr_text


async def probe_image_dimensions(
    path: Path | str,
    ffprobe_path: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Optional[Tuple[int, int]]:
    """
    Read an image's native pixel size with ffprobe.

    Returns:
        (width, height), or None when the probe fails for any reason
    """
    effective_timeout = timeout if timeout is not None else settings.get_ffprobe_timeout_seconds()
    cmd = [
        ffprobe_path or settings.get_ffprobe_path(),
        "-v", "error",
        "-show_entries", "stream=width,height",
        "-of", "json",
        str(path),
    ]
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.warning(f"FFprobe could not start for {Path(path).name}: {e}")
        return None

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=effective_timeout)
    except asyncio.TimeoutError:
        await _kill_and_reap(process)
        logger.warning(f"FFprobe timeout for {Path(path).name} after {effective_timeout}s")
        return None
    except asyncio.CancelledError:
        await _kill_and_reap(process)
        raise

    if process.returncode != 0:
        logger.warning(
            f"FFprobe failed for {Path(path).name}: returncode={process.returncode}, "
            f"stderr={stderr.decode('utf-8', errors='replace')[:200]}"
        )
        return None

    try:
        probe = json.loads(stdout or b"{}")
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse FFprobe JSON output for {Path(path).name}: {e}")
        return None

    for stream in probe.get("streams", []):
        width, height = stream.get("width"), stream.get("height")
        if width and height:
            return int(width), int(height)
    return None


async def probe_duration_seconds(path: Path | str, ffprobe_path: Optional[str] = None) -> float:
    """Return a media file's container duration in seconds (0.0 if unknown)."""
    cmd = [
        ffprobe_path or settings.get_ffprobe_path(),
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "json",
        str(path),
    ]
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, _ = await process.communicate()
    if process.returncode != 0:
        return 0.0
    try:
        return float(json.loads(stdout or b"{}").get("format", {}).get("duration", 0.0))
    except (json.JSONDecodeError, TypeError, ValueError):
        return 0.0
