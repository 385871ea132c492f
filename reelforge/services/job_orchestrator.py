"""
Job Orchestrator
Runs one video job end to end: normalize, fetch, subtitles, validate,
compose (fast, else fallback), publish, clean up.

Shared collaborators (HTTP client, limiter, storage) are built once by
build_orchestrator() and reused by every job in the process.
"""
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

import httpx

from reelforge import settings
from reelforge.core.concurrency import ConcurrencyLimiter
from reelforge.core.exceptions import JobFailedError, JobValidationError
from reelforge.core.models import (
    DownloadedSegment,
    JobRequest,
    JobResult,
    JobRun,
    JobState,
)
from reelforge.core.segment_normalizer import (
    describe_segments,
    normalize_job_payload,
    validate_durations,
)
from reelforge.media.asset_fetcher import AssetFetcher, create_http_client, safe_extension
from reelforge.media.video_composer import VideoComposer, final_output_path
from reelforge.storage.factory import create_storage_backend
from reelforge.storage.publisher import ArtifactPublisher
from reelforge.subtitles.subtitle_generator import (
    SrtSubtitleGenerator,
    SubtitleGenerator,
    resolve_subtitle_style,
)
from reelforge.utils.workspace_manager import WorkspaceManager

logger = logging.getLogger(__name__)

ProductionFlag = Union[bool, Callable[[], bool], None]


class JobOrchestrator:
    """
    Sequences the pipeline for each job and owns the cleanup policy.

    On success the workspace is always deleted. On failure it is deleted in
    production and kept for inspection everywhere else.
    """

    def __init__(
        self,
        fetcher: AssetFetcher,
        limiter: ConcurrencyLimiter,
        workspace: WorkspaceManager,
        composer: VideoComposer,
        publisher: ArtifactPublisher,
        subtitle_generator: Optional[SubtitleGenerator] = None,
        production: ProductionFlag = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the orchestrator

        Args:
            fetcher: Asset fetcher sharing one keep-alive client
            limiter: Process-wide concurrency limiter
            workspace: Workspace manager
            composer: Video composition engine
            publisher: Artifact publisher
            subtitle_generator: Optional subtitle collaborator
            production: Bool or callable; None reads the environment on each failure
            http_client: Client to close in aclose() (owned by the orchestrator)
        """
        self.fetcher = fetcher
        self.limiter = limiter
        self.workspace = workspace
        self.composer = composer
        self.publisher = publisher
        self.subtitle_generator = subtitle_generator
        self._production = production
        self._http_client = http_client

    def is_production(self) -> bool:
        if self._production is None:
            return settings.is_production()
        if callable(self._production):
            return bool(self._production())
        return bool(self._production)

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    async def _fetch_all(self, request: JobRequest, session_dir: Path) -> List[DownloadedSegment]:
        """Download every image through the limiter; results keep input order."""

        def _make_thunk(index: int):
            segment = request.segments[index]
            dest = session_dir / f"img_{index}{safe_extension(segment.image_url)}"

            async def _download() -> DownloadedSegment:
                await self.fetcher.fetch(segment.image_url, dest)
                return DownloadedSegment(
                    index=index,
                    image_path=dest,
                    duration=segment.duration,
                    subtitle_text=segment.subtitle_text,
                    word_duration=segment.word_duration,
                )

            return _download

        results = await self.limiter.gather(_make_thunk(i) for i in range(len(request.segments)))

        first_error: Optional[BaseException] = None
        for i, result in enumerate(results):
            if isinstance(result, BaseException):
                logger.error(f"Failed to download image for segment {i}: {result}")
                if first_error is None:
                    first_error = result
        if first_error is not None:
            raise first_error

        logger.info(f"Successfully downloaded {len(results)} segments")
        return list(results)

    def _apply_subtitles(
        self,
        downloaded: List[DownloadedSegment],
        session_dir: Path,
        style: Optional[str],
    ) -> None:
        if self.subtitle_generator is None:
            return

        for i, segment in enumerate(downloaded):
            if not segment.has_subtitles:
                continue
            result = self.subtitle_generator.generate(segment, session_dir, i, segment.duration, style)
            segment.srt_path = result.srt_path
            segment.subtitle_style = result.subtitle_style
            if result.calculated_duration:
                segment.duration = result.calculated_duration
                logger.info(f"Updated segment {i} duration to {segment.duration}s from word timing")

    def _cleanup_after_failure(self, job_run: JobRun) -> Optional[Path]:
        """Apply the retention policy; returns the retained path, if any."""
        if job_run.session_dir is None:
            return None
        if self.is_production():
            self.workspace.release(job_run.session_dir)
            return None
        logger.warning(f"Retaining workspace for debugging: {job_run.session_dir}")
        return job_run.session_dir

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def run(self, payload: Union[JobRequest, Any]) -> JobResult:
        """
        Execute one job.

        Args:
            payload: A JobRequest, or a decoded request body to normalize

        Returns:
            JobResult with the published URL

        Raises:
            JobValidationError: Bad input (raised before a workspace exists for
                request-level problems; after fetching for bad durations)
            JobFailedError: Any other job-fatal failure
        """
        job_id = payload.job_id if isinstance(payload, JobRequest) else "<unknown>"
        job_run = JobRun(job_id=job_id)

        try:
            job_run.advance(JobState.NORMALIZING)
            request = payload if isinstance(payload, JobRequest) else normalize_job_payload(payload)
            job_run.job_id = request.job_id
        except JobValidationError as e:
            job_run.fail(e)
            logger.warning(f"Rejected job: {e.message}")
            raise

        style = resolve_subtitle_style(request.subtitle_preset, request.subtitle_style)

        try:
            job_run.session_dir = self.workspace.allocate(request.job_id)

            job_run.advance(JobState.FETCHING)
            downloaded = await self._fetch_all(request, job_run.session_dir)

            job_run.advance(JobState.SUBTITLE_PROCESSING)
            self._apply_subtitles(downloaded, job_run.session_dir, style)

            job_run.advance(JobState.VALIDATING)
            validate_durations(downloaded)
            logger.debug(f"Job {request.job_id} segments: {describe_segments(downloaded)}")

            out_path = final_output_path(job_run.session_dir)
            job_run.advance(JobState.COMPOSING_FAST)
            outcome = await self.composer.compose_fast(
                downloaded,
                out_path,
                request.resolution,
                subtitle_paths=[s.srt_path for s in downloaded],
                subtitle_styles=[s.subtitle_style for s in downloaded],
            )
            if not outcome.success:
                logger.warning(f"Single-run concat failed, falling back to per-segment encode: {outcome.error}")
                job_run.advance(JobState.COMPOSING_FALLBACK)
                outcome = await self.composer.compose_fallback(downloaded, out_path, request.resolution)
            job_run.strategy = outcome.strategy

            job_run.advance(JobState.PUBLISHING)
            artifact = await self.publisher.publish(outcome.output_path, request.job_id)

            job_run.advance(JobState.CLEANUP)
            self.workspace.release(job_run.session_dir)
            job_run.advance(JobState.DONE)

        except JobValidationError as e:
            job_run.fail(e)
            retained = self._cleanup_after_failure(job_run)
            if retained is not None:
                e.workspace = str(retained)
            logger.error(f"❌ Job {request.job_id} rejected: {e.message} ({job_run.state_path})")
            raise

        except Exception as e:
            failed_in = job_run.fail(e)
            retained = self._cleanup_after_failure(job_run)
            logger.error(
                f"❌ Job {request.job_id} failed during {failed_in.value}: {e} ({job_run.state_path})",
                exc_info=True,
            )
            raise JobFailedError(request.job_id, e, workspace=retained, state=failed_in.value) from e

        logger.info(
            f"✅ Job {request.job_id} done in {job_run.elapsed_seconds:.2f}s "
            f"via {job_run.strategy.value} path ({job_run.state_path})"
        )
        return JobResult(
            job_id=request.job_id,
            url=artifact.url,
            strategy=job_run.strategy,
            history=list(job_run.history),
        )

    async def aclose(self) -> None:
        """Release shared clients at shutdown."""
        if self._http_client is not None:
            await self._http_client.aclose()
        await self.fetcher.aclose()
        self.publisher.close()


def build_orchestrator(
    http_client: Optional[httpx.AsyncClient] = None,
    production: ProductionFlag = None,
) -> JobOrchestrator:
    """
    Build the orchestrator and its shared collaborators from settings.

    Called once at application startup.
    """
    storage = create_storage_backend()
    limiter = ConcurrencyLimiter()
    owned_client = None
    if http_client is None:
        owned_client = http_client = create_http_client()

    return JobOrchestrator(
        fetcher=AssetFetcher(client=http_client),
        limiter=limiter,
        workspace=WorkspaceManager(),
        composer=VideoComposer(limiter=limiter),
        publisher=ArtifactPublisher(storage),
        subtitle_generator=SrtSubtitleGenerator(),
        production=production,
        http_client=owned_client,
    )
