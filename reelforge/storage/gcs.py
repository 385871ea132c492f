"""
Google Cloud Storage backend for ReelForge.

This module implements the GoogleCloudStorage backend that publishes
rendered videos to a GCS bucket.
"""

import logging
from pathlib import Path
from typing import Optional

from google.api_core import exceptions as gcs_exceptions
from google.cloud import storage

from .base import StorageBackend
from .exceptions import StorageError, StorageNotFoundError, StoragePermissionError

logger = logging.getLogger(__name__)


class GoogleCloudStorage(StorageBackend):
    """Google Cloud Storage backend."""

    backend_type = "gcs"

    def __init__(self, bucket_name: str, credentials_path: Optional[str] = None):
        """
        Initialize GoogleCloudStorage backend.

        Args:
            bucket_name: Name of the GCS bucket
            credentials_path: Path to service account JSON file
        """
        self.bucket_name = bucket_name
        try:
            self.client = storage.Client.from_service_account_json(
                credentials_path
            ) if credentials_path else storage.Client()
            self.bucket = self.client.bucket(bucket_name)
        except Exception as e:
            raise StorageError(f"Failed to initialize GCS client: {e}") from e

    def save_file(self, local_path: Path, remote_path: str, content_type: Optional[str] = None) -> str:
        """
        Upload file to GCS bucket.

        Returns:
            Public URL of uploaded file
        """
        try:
            blob = self.bucket.blob(remote_path)
            blob.upload_from_filename(str(local_path), content_type=content_type)
            return blob.public_url
        except gcs_exceptions.Forbidden as e:
            raise StoragePermissionError(f"Permission denied uploading {remote_path}: {e}") from e
        except gcs_exceptions.NotFound as e:
            raise StorageNotFoundError(f"Bucket {self.bucket_name} not found: {e}") from e
        except (gcs_exceptions.GoogleAPIError, OSError) as e:
            raise StorageError(f"Failed to upload file {local_path} to {remote_path}: {e}") from e

    def delete_file(self, remote_path: str) -> bool:
        try:
            self.bucket.blob(remote_path).delete()
            return True
        except gcs_exceptions.NotFound:
            return False
        except gcs_exceptions.GoogleAPIError as e:
            raise StorageError(f"Failed to delete file {remote_path}: {e}") from e

    def file_exists(self, remote_path: str) -> bool:
        try:
            return self.bucket.blob(remote_path).exists()
        except gcs_exceptions.GoogleAPIError:
            return False

    def get_file_url(self, remote_path: str) -> str:
        return self.bucket.blob(remote_path).public_url
