"""
Pipeline exceptions for ReelForge.

Every component raises one of these; the job orchestrator wraps job-fatal
failures in JobFailedError, which knows how to shape the outbound payload.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union


class ReelForgeError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class JobValidationError(ReelForgeError):
    """Raised when a job request or segment fails validation"""

    def __init__(self, message: str, field: Optional[str] = None, index: Optional[int] = None):
        self.field = field
        self.index = index
        self.workspace: Optional[str] = None
        super().__init__(message)

    def to_response(self, production: bool = True) -> Dict[str, Any]:
        """
        Build the 400 payload.

        Args:
            production: When True, a retained workspace path is withheld
        """
        payload: Dict[str, Any] = {"error": self.message}
        if self.field is not None:
            payload["field"] = self.field
        if self.index is not None:
            payload["index"] = self.index
        if self.workspace and not production:
            payload["workspace"] = self.workspace
        return payload


class AssetFetchError(ReelForgeError):
    """Raised when a remote asset cannot be downloaded"""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None):
        self.url = url
        self.status = status
        super().__init__(message)


class WorkspaceError(ReelForgeError):
    """Raised when a job workspace cannot be allocated"""


class CompositionError(ReelForgeError):
    """Raised when a video cannot be composed"""

    def __init__(self, message: str, segment_index: Optional[int] = None):
        self.segment_index = segment_index
        super().__init__(message)


class FFmpegError(CompositionError):
    """Raised when an ffmpeg/ffprobe process exits unsuccessfully"""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = "",
                 segment_index: Optional[int] = None):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message, segment_index=segment_index)


class FFmpegTimeoutError(FFmpegError):
    """Raised when an ffmpeg process exceeds its wall-clock budget and is killed"""

    def __init__(self, message: str, timeout: float, segment_index: Optional[int] = None):
        self.timeout = timeout
        super().__init__(message, segment_index=segment_index)


class PublishError(ReelForgeError):
    """Raised when a rendered artifact cannot be published"""

    def __init__(self, message: str, storage_key: Optional[str] = None):
        self.storage_key = storage_key
        super().__init__(message)


class JobFailedError(ReelForgeError):
    """Raised by the orchestrator when a job cannot produce its artifact"""

    GENERIC_MESSAGE = "Video generation failed"
    PRODUCTION_DETAILS = "Internal server error"

    def __init__(
        self,
        job_id: str,
        cause: BaseException,
        workspace: Optional[Union[str, Path]] = None,
        state: Optional[str] = None,
    ):
        self.job_id = job_id
        self.cause = cause
        self.workspace = str(workspace) if workspace is not None else None
        self.state = state
        super().__init__(f"Job {job_id} failed: {cause}")

    def to_response(self, production: bool) -> Dict[str, Any]:
        """
        Build the error payload returned to the caller.

        Args:
            production: When True, internal error text and paths are withheld
        """
        if production:
            return {"error": self.GENERIC_MESSAGE, "details": self.PRODUCTION_DETAILS}

        payload: Dict[str, Any] = {
            "error": self.GENERIC_MESSAGE,
            "details": str(self.cause) or self.cause.__class__.__name__,
        }
        if self.state:
            payload["failedState"] = self.state
        if self.workspace:
            payload["workspace"] = self.workspace
        return payload
