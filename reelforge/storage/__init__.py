"""
Storage module for ReelForge.

This module provides storage abstraction for publishing rendered videos,
supporting multiple backends (local filesystem, Supabase, Google Cloud
Storage and AWS S3).
"""

from .base import StorageBackend
from .local import LocalStorage
from .supabase import SupabaseStorage
from .gcs import GoogleCloudStorage
from .s3 import S3Storage
from .factory import create_storage_backend, create_storage_backend_with_config
from .publisher import ArtifactPublisher
from .exceptions import (
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageBackendError
)

__all__ = [
    'StorageBackend',
    'LocalStorage',
    'SupabaseStorage',
    'GoogleCloudStorage',
    'S3Storage',
    'create_storage_backend',
    'create_storage_backend_with_config',
    'ArtifactPublisher',
    'StorageError',
    'StorageNotFoundError',
    'StoragePermissionError',
    'StorageBackendError'
]
