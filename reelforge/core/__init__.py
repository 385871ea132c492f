"""
ReelForge Core Module

This module contains the job data model, input normalization, the shared
concurrency limiter and the pipeline exception hierarchy.
"""

from .concurrency import ConcurrencyLimiter
from .exceptions import (
    ReelForgeError,
    JobValidationError,
    AssetFetchError,
    WorkspaceError,
    CompositionError,
    FFmpegError,
    FFmpegTimeoutError,
    PublishError,
    JobFailedError,
)
from .segment_normalizer import normalize_job_payload, validate_durations

__all__ = [
    'ConcurrencyLimiter',
    'ReelForgeError',
    'JobValidationError',
    'AssetFetchError',
    'WorkspaceError',
    'CompositionError',
    'FFmpegError',
    'FFmpegTimeoutError',
    'PublishError',
    'JobFailedError',
    'normalize_job_payload',
    'validate_durations',
]
