"""
Video composition engine for ReelForge.

Two strategies render the same ordered list of (image, duration) pairs:

- fast: one ffmpeg process, one filter graph, all segments at once
- fallback: one ffmpeg process per segment (each with a timeout), then a
  stream-copy concat of the clips

The fast path reports failure as a value so the caller can decide to fall
back; the fallback path raises.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from reelforge import settings
from reelforge.core.concurrency import ConcurrencyLimiter
from reelforge.core.exceptions import CompositionError, FFmpegError
from reelforge.core.models import CompositionOutcome, CompositionStrategy, DownloadedSegment
from . import ffmpeg_utils
from .ffmpeg_utils import EncodeProfile, FrameInput

logger = logging.getLogger(__name__)

FINAL_FILENAME = "final.mp4"
CONCAT_LIST_FILENAME = "filelist.txt"


class VideoComposer:
    """Render downloaded segments into one MP4 file."""

    def __init__(
        self,
        limiter: Optional[ConcurrencyLimiter] = None,
        profile: Optional[EncodeProfile] = None,
        segment_timeout: Optional[float] = None,
        ffmpeg_path: Optional[str] = None,
        ffprobe_path: Optional[str] = None,
    ):
        """
        Initialize composer

        Args:
            limiter: Shared limiter used to bound image probes
            profile: Encoding profile (default: from settings, threads = pool size)
            segment_timeout: Per-clip budget for fallback renders in seconds
            ffmpeg_path: ffmpeg executable
            ffprobe_path: ffprobe executable
        """
        self.limiter = limiter or ConcurrencyLimiter()
        self.profile = profile or EncodeProfile.from_settings(threads=self.limiter.max_concurrency)
        self.segment_timeout = segment_timeout or settings.get_segment_timeout_seconds()
        self.ffmpeg_path = ffmpeg_path or settings.get_ffmpeg_path()
        self.ffprobe_path = ffprobe_path or settings.get_ffprobe_path()

    async def _probe_all(self, segments: Sequence[DownloadedSegment]) -> List[Optional[tuple]]:
        thunks = [
            (lambda seg=seg: ffmpeg_utils.probe_image_dimensions(seg.image_path, self.ffprobe_path))
            for seg in segments
        ]
        results = await self.limiter.gather(thunks)
        sizes = []
        for seg, result in zip(segments, results):
            if isinstance(result, BaseException):
                logger.warning(f"Probe failed for segment {seg.index}: {result}")
                sizes.append(None)
            else:
                sizes.append(result)
        return sizes

    def _log_subtitles(
        self,
        segments: Sequence[DownloadedSegment],
        subtitle_paths: Optional[Sequence[Optional[Path]]],
        subtitle_styles: Optional[Sequence[Optional[str]]],
    ) -> None:
        # Subtitle files are accepted and kept aligned by index; frames are not modified.
        if not subtitle_paths:
            return
        attached = [i for i, p in enumerate(subtitle_paths) if p]
        if attached:
            styles = {subtitle_styles[i] for i in attached if subtitle_styles and subtitle_styles[i]}
            logger.info(
                f"Subtitle files present for segments {attached} "
                f"(styles: {sorted(styles) or ['none']}); not rendered into frames"
            )

    async def compose_fast(
        self,
        segments: Sequence[DownloadedSegment],
        out_path: Path,
        resolution: str,
        subtitle_paths: Optional[Sequence[Optional[Path]]] = None,
        subtitle_styles: Optional[Sequence[Optional[str]]] = None,
    ) -> CompositionOutcome:
        """
        Render every segment in a single ffmpeg invocation.

        Returns:
            CompositionOutcome; on failure ``success`` is False and ``error`` is set
        """
        if not segments:
            return CompositionOutcome.failed(
                CompositionError("segments array required"), CompositionStrategy.FAST
            )

        self._log_subtitles(segments, subtitle_paths, subtitle_styles)

        try:
            sizes = await self._probe_all(segments)
            frames = [
                FrameInput(image_path=seg.image_path, duration=float(seg.duration), native_size=size)
                for seg, size in zip(segments, sizes)
            ]
            args = ffmpeg_utils.build_multi_segment_command(
                frames, out_path, resolution, self.profile, ffmpeg_path=self.ffmpeg_path
            )
            logger.info(f"🎬 Fast path: rendering {len(frames)} segments in one pass -> {out_path.name}")
            await ffmpeg_utils.run_ffmpeg(args)
            self._verify_output(out_path)
        except Exception as e:
            logger.warning(f"Fast path failed: {e}")
            return CompositionOutcome.failed(e, CompositionStrategy.FAST)

        logger.info(f"✅ Fast path succeeded: {out_path}")
        return CompositionOutcome.ok(out_path, CompositionStrategy.FAST)

    async def render_segment(self, segment: DownloadedSegment, out_path: Path, resolution: str) -> Path:
        """
        Render one segment to its own clip within the per-segment timeout.

        Raises:
            FFmpegTimeoutError: Clip exceeded its budget
            FFmpegError: ffmpeg failed
        """
        frame = FrameInput(image_path=segment.image_path, duration=float(segment.duration))
        args = ffmpeg_utils.build_single_segment_command(
            frame, out_path, resolution, self.profile, ffmpeg_path=self.ffmpeg_path
        )
        await ffmpeg_utils.run_ffmpeg(args, timeout=self.segment_timeout, segment_index=segment.index)
        self._verify_output(out_path, segment_index=segment.index)
        return out_path

    async def compose_fallback(
        self,
        segments: Sequence[DownloadedSegment],
        out_path: Path,
        resolution: str,
    ) -> CompositionOutcome:
        """
        Render each segment separately, then concat the clips with stream copy.

        Clips render one after another; any failure fails the whole composition.

        Raises:
            CompositionError: On the first failing segment or on concat failure
        """
        work_dir = out_path.parent
        clips: List[Path] = []
        for position, segment in enumerate(segments):
            clip_path = work_dir / f"seg_{position}.mp4"
            logger.info(f"Fallback: rendering segment {position + 1}/{len(segments)} ({segment.duration}s)")
            try:
                await self.render_segment(segment, clip_path, resolution)
            except FFmpegError as e:
                logger.error(f"❌ Segment {position} failed: {e}")
                raise
            clips.append(clip_path)

        list_file = ffmpeg_utils.write_concat_list(clips, work_dir / CONCAT_LIST_FILENAME)
        args = ffmpeg_utils.build_concat_copy_command(list_file, out_path, ffmpeg_path=self.ffmpeg_path)
        logger.info(f"Fallback: concatenating {len(clips)} clips -> {out_path.name}")
        await ffmpeg_utils.run_ffmpeg(args)
        self._verify_output(out_path)

        logger.info(f"✅ Fallback path succeeded: {out_path}")
        return CompositionOutcome.ok(out_path, CompositionStrategy.FALLBACK)

    @staticmethod
    def _verify_output(path: Path, segment_index: Optional[int] = None) -> None:
        if not path.exists() or path.stat().st_size == 0:
            raise CompositionError(f"Output file not created or empty: {path}", segment_index=segment_index)


def final_output_path(session_dir: Path) -> Path:
    return Path(session_dir) / FINAL_FILENAME
