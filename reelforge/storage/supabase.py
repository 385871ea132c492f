"""
Supabase Storage backend for ReelForge.

Talks to the Supabase Storage REST API directly with httpx. Uploads use
``x-upsert: true`` so a re-submitted job id overwrites its previous video.
"""

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import httpx

from .base import StorageBackend
from .exceptions import (
    StorageBackendError,
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
)

logger = logging.getLogger(__name__)


class SupabaseStorage(StorageBackend):
    """Supabase Storage (bucket) backend."""

    backend_type = "supabase"

    def __init__(
        self,
        url: str,
        key: str,
        bucket: str = "videos",
        key_type: str = "service-role",
        timeout: float = 120.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize SupabaseStorage backend.

        Args:
            url: Project URL, e.g. https://xyz.supabase.co
            key: Service-role key (or anon key)
            bucket: Storage bucket name
            key_type: "service-role" or "anon", used in error messages
            timeout: Upload timeout in seconds
            client: Optional preconfigured httpx.Client (tests)
        """
        if not url or not key:
            raise StorageBackendError(
                "Missing Supabase configuration: require SUPABASE_URL and "
                "SUPABASE_SERVICE_ROLE_KEY (or fallback SUPABASE_ANON_KEY)."
            )

        self.base_url = url.rstrip("/")
        self.bucket = bucket
        self.key_type = key_type
        self.client = client or httpx.Client(
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {key}",
                "apikey": key,
            },
        )
        logger.info(f"Initialized Supabase storage backend for bucket: {bucket} ({key_type} key)")

    def _object_url(self, remote_path: str) -> str:
        return f"{self.base_url}/storage/v1/object/{self.bucket}/{quote(remote_path)}"

    def _raise_for_status(self, response: httpx.Response, action: str, remote_path: str) -> None:
        if response.is_success:
            return
        try:
            detail = response.json().get("message") or response.text
        except ValueError:
            detail = response.text
        message = (
            f"Supabase {action} failed ({self.key_type} key) to bucket '{self.bucket}', "
            f"path '{remote_path}': HTTP {response.status_code} {detail}"
        )
        if response.status_code in (401, 403):
            raise StoragePermissionError(message)
        if response.status_code == 404:
            raise StorageNotFoundError(message)
        raise StorageBackendError(message)

    def save_file(self, local_path: Path, remote_path: str, content_type: Optional[str] = None) -> str:
        """
        Upload file to the bucket (upsert).

        Returns:
            Public URL of the uploaded object
        """
        headers = {
            "Content-Type": content_type or "application/octet-stream",
            "x-upsert": "true",
        }
        try:
            with open(local_path, "rb") as f:
                response = self.client.post(self._object_url(remote_path), content=f.read(), headers=headers)
        except (OSError, httpx.HTTPError) as e:
            raise StorageError(f"Failed to upload file {local_path} to {remote_path}: {e}") from e

        self._raise_for_status(response, "upload", remote_path)
        logger.info(f"Uploaded {Path(local_path).name} to supabase://{self.bucket}/{remote_path}")
        return self.get_file_url(remote_path)

    def delete_file(self, remote_path: str) -> bool:
        try:
            response = self.client.request(
                "DELETE",
                f"{self.base_url}/storage/v1/object/{self.bucket}",
                json={"prefixes": [remote_path]},
            )
        except httpx.HTTPError as e:
            logger.error(f"Error deleting from Supabase: {e}")
            return False

        if not response.is_success:
            logger.error(f"Error deleting from Supabase: HTTP {response.status_code} {response.text}")
            return False
        try:
            removed = response.json()
        except ValueError:
            return True
        return bool(removed) if isinstance(removed, list) else True

    def file_exists(self, remote_path: str) -> bool:
        try:
            response = self.client.head(self._object_url(remote_path))
        except httpx.HTTPError as e:
            logger.debug(f"Supabase existence check failed for {remote_path}: {e}")
            return False
        return response.status_code == 200

    def get_file_url(self, remote_path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{quote(remote_path)}"

    def close(self) -> None:
        self.client.close()
