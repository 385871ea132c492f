"""
Storage backend factory for ReelForge.

This module provides factory functions for creating storage backends
based on configuration or explicit parameters.
"""

from pathlib import Path

from reelforge import settings
from .base import StorageBackend
from .exceptions import StorageBackendError
from .gcs import GoogleCloudStorage
from .local import LocalStorage
from .s3 import S3Storage
from .supabase import SupabaseStorage


def create_storage_backend() -> StorageBackend:
    """
    Create storage backend based on configuration.

    Returns:
        Configured storage backend instance

    Raises:
        StorageBackendError: If backend type is unknown or configuration is invalid
    """
    backend_type = settings.get_storage_backend()

    if backend_type == "supabase":
        return SupabaseStorage(
            url=settings.get_storage_supabase_url(),
            key=settings.get_storage_supabase_key(),
            bucket=settings.get_storage_supabase_bucket(),
            key_type=settings.get_storage_supabase_key_type(),
            timeout=settings.get_storage_supabase_timeout(),
        )

    return create_storage_backend_with_config(
        backend_type,
        base_path=settings.get_storage_local_path(),
        bucket_name=settings.get_storage_gcs_bucket(),
        credentials_path=settings.get_storage_gcs_credentials(),
        bucket=settings.get_storage_s3_bucket(),
        region=settings.get_storage_s3_region(),
    )


def create_storage_backend_with_config(backend_type: str, **kwargs) -> StorageBackend:
    """
    Create storage backend with explicit configuration.

    Args:
        backend_type: Type of storage backend ("local", "supabase", "gcs" or "s3")
        **kwargs: Backend-specific configuration parameters

    Returns:
        Configured storage backend instance

    Raises:
        StorageBackendError: If backend type is unknown or configuration is invalid
    """
    if backend_type == "local":
        base_path = kwargs.get('base_path', 'output')
        return LocalStorage(Path(base_path))

    elif backend_type == "supabase":
        return SupabaseStorage(
            url=kwargs.get('url'),
            key=kwargs.get('key'),
            bucket=kwargs.get('bucket', 'videos'),
            key_type=kwargs.get('key_type', 'service-role'),
            timeout=kwargs.get('timeout', 120.0),
        )

    elif backend_type == "gcs":
        bucket_name = kwargs.get('bucket_name')
        if not bucket_name:
            raise StorageBackendError("GCS bucket name not configured")
        return GoogleCloudStorage(bucket_name, kwargs.get('credentials_path'))

    elif backend_type == "s3":
        bucket = kwargs.get('bucket')
        if not bucket:
            raise StorageBackendError("S3 bucket not configured")
        return S3Storage(bucket, kwargs.get('region') or 'us-east-1')

    else:
        raise StorageBackendError(f"Unknown storage backend: {backend_type}")


def describe_storage_config() -> list:
    """
    List problems with the configured backend without connecting to it.

    Returns:
        Human-readable problems (empty when configuration looks complete)
    """
    backend_type = settings.get_storage_backend()
    problems = []
    if backend_type == "supabase":
        if not settings.get_storage_supabase_url():
            problems.append("SUPABASE_URL is not set")
        if not settings.get_storage_supabase_key():
            problems.append("SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY) is not set")
    elif backend_type == "gcs":
        if not settings.get_storage_gcs_bucket():
            problems.append("storage.gcs.bucket_name is not set")
    elif backend_type == "s3":
        if not settings.get_storage_s3_bucket():
            problems.append("storage.s3.bucket is not set")
    elif backend_type != "local":
        problems.append(f"Unknown storage backend: {backend_type}")
    return problems
