"""
Artifact publishing for ReelForge.

ArtifactPublisher is the one place that knows a finished job video is stored
as ``<job_id>.mp4``. Storage SDKs are blocking, so every backend call runs in
the default thread pool executor.
"""

import asyncio
import logging
from functools import partial
from pathlib import Path
from typing import Optional

from reelforge import settings
from reelforge.core.exceptions import PublishError
from reelforge.core.models import PublishedArtifact
from .base import StorageBackend
from .exceptions import StorageError

logger = logging.getLogger(__name__)


def storage_key_for(job_id: str) -> str:
    return f"{job_id}.mp4"


class ArtifactPublisher:
    """Publish rendered videos to a storage backend under their job id."""

    def __init__(self, storage: StorageBackend, content_type: Optional[str] = None):
        self.storage = storage
        self.content_type = content_type or settings.get_storage_content_type()

    async def _call(self, func, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    async def publish(self, local_path: Path, job_id: str) -> PublishedArtifact:
        """
        Store a finished video as ``<job_id>.mp4``, overwriting any previous one.

        Raises:
            PublishError: If the file is missing or the backend rejects it
        """
        storage_key = storage_key_for(job_id)
        local_path = Path(local_path)
        if not local_path.exists():
            raise PublishError(f"Rendered file not found: {local_path}", storage_key=storage_key)

        size_mb = local_path.stat().st_size / (1024 * 1024)
        try:
            if await self._call(self.storage.file_exists, storage_key):
                logger.info(f"Artifact {storage_key} already exists; overwriting")
            logger.info(f"📤 Publishing {local_path.name} ({size_mb:.2f} MB) as {storage_key} via {self.storage.backend_type}")
            url = await self._call(self.storage.save_file, local_path, storage_key, self.content_type)
        except StorageError as e:
            raise PublishError(f"Upload failed for {storage_key}: {e}", storage_key=storage_key) from e

        logger.info(f"✅ Published {storage_key}: {url}")
        return PublishedArtifact(url=url, storage_key=storage_key)

    async def retract(self, job_id: str) -> bool:
        """Delete a previously published artifact. Returns False if nothing was removed."""
        storage_key = storage_key_for(job_id)
        try:
            removed = await self._call(self.storage.delete_file, storage_key)
        except StorageError as e:
            logger.error(f"Failed to delete {storage_key}: {e}")
            return False
        if removed:
            logger.info(f"Deleted artifact {storage_key}")
        return bool(removed)

    def close(self) -> None:
        self.storage.close()
