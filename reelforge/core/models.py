"""
Data models and enums for the job execution pipeline.

These are plain dataclasses shared by the normalizer, fetcher, composer,
publisher and orchestrator. The HTTP layer has its own pydantic models in
reelforge.api.models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_RESOLUTION = "1280x720"


class JobState(Enum):
    """States a job passes through, in order."""
    RECEIVED = "received"
    NORMALIZING = "normalizing"
    FETCHING = "fetching"
    SUBTITLE_PROCESSING = "subtitle-processing"
    VALIDATING = "validating"
    COMPOSING_FAST = "composing-fast"
    COMPOSING_FALLBACK = "composing-fallback"
    PUBLISHING = "publishing"
    CLEANUP = "cleanup"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.DONE, JobState.FAILED)


# Forward order; FAILED is reachable from any non-terminal state.
_STATE_ORDER = [
    JobState.RECEIVED,
    JobState.NORMALIZING,
    JobState.FETCHING,
    JobState.SUBTITLE_PROCESSING,
    JobState.VALIDATING,
    JobState.COMPOSING_FAST,
    JobState.COMPOSING_FALLBACK,
    JobState.PUBLISHING,
    JobState.CLEANUP,
    JobState.DONE,
]


class CompositionStrategy(Enum):
    FAST = "fast"
    FALLBACK = "fallback"


@dataclass
class Segment:
    """Canonical segment record produced by the normalizer."""
    image_url: str
    duration: Any = None
    id: Any = None
    image_prompt: Optional[str] = None
    subtitle_text: Optional[str] = None
    word_duration: Any = None


@dataclass
class DownloadedSegment:
    """A segment whose image has been written into the job workspace."""
    index: int
    image_path: Path
    duration: Any
    subtitle_text: Optional[str] = None
    word_duration: Any = None
    srt_path: Optional[Path] = None
    subtitle_style: Optional[str] = None

    @property
    def has_subtitles(self) -> bool:
        return bool(self.subtitle_text) or bool(self.word_duration)


@dataclass
class JobRequest:
    """Normalized inbound job."""
    job_id: str
    segments: List[Segment]
    resolution: str = DEFAULT_RESOLUTION
    subtitle_style: Optional[str] = None
    subtitle_preset: Optional[str] = None


@dataclass
class JobRun:
    """Mutable per-job execution record."""
    job_id: str
    session_dir: Optional[Path] = None
    state: JobState = JobState.RECEIVED
    history: List[JobState] = field(default_factory=lambda: [JobState.RECEIVED])
    strategy: Optional[CompositionStrategy] = None
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    error: Optional[str] = None

    def advance(self, new_state: JobState) -> None:
        """
        Move to a new state.

        Raises:
            ValueError: If the transition is backwards or leaves a terminal state
        """
        if self.state.is_terminal:
            raise ValueError(f"Job {self.job_id} already {self.state.value}")

        if new_state is not JobState.FAILED:
            if _STATE_ORDER.index(new_state) <= _STATE_ORDER.index(self.state):
                raise ValueError(
                    f"Invalid transition {self.state.value} -> {new_state.value} for job {self.job_id}"
                )

        self.state = new_state
        self.history.append(new_state)
        if new_state.is_terminal:
            self.finished_at = datetime.now()

    def fail(self, error: BaseException) -> JobState:
        """Record the failure and return the state the job failed in."""
        failed_in = self.state
        self.error = str(error) or error.__class__.__name__
        if not self.state.is_terminal:
            self.advance(JobState.FAILED)
        return failed_in

    @property
    def state_path(self) -> str:
        return " -> ".join(state.value for state in self.history)

    @property
    def elapsed_seconds(self) -> float:
        end = self.finished_at or datetime.now()
        return (end - self.started_at).total_seconds()


@dataclass
class CompositionOutcome:
    """Either a rendered file or an explicit failure."""
    success: bool
    strategy: CompositionStrategy
    output_path: Optional[Path] = None
    error: Optional[BaseException] = None

    @classmethod
    def ok(cls, output_path: Path, strategy: CompositionStrategy) -> "CompositionOutcome":
        return cls(success=True, strategy=strategy, output_path=output_path)

    @classmethod
    def failed(cls, error: BaseException, strategy: CompositionStrategy) -> "CompositionOutcome":
        return cls(success=False, strategy=strategy, error=error)


@dataclass
class PublishedArtifact:
    url: str
    storage_key: str


@dataclass
class JobResult:
    job_id: str
    url: str
    strategy: Optional[CompositionStrategy] = None
    history: List[JobState] = field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        return {"jobId": self.job_id, "url": self.url}
