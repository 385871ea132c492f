"""
Local filesystem storage backend for ReelForge.

Useful for development and the ``render`` CLI: published videos are copied
under a base directory and the returned "URL" is the file's absolute path.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from .base import StorageBackend
from .exceptions import StorageError, StoragePermissionError

logger = logging.getLogger(__name__)


class LocalStorage(StorageBackend):
    """Local filesystem storage backend."""

    backend_type = "local"

    def __init__(self, base_path: Path):
        """
        Initialize LocalStorage backend.

        Args:
            base_path: Base directory for storage operations
        """
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _resolve(self, remote_path: str) -> Path:
        """
        Map a storage key to a path inside base_path.

        Raises:
            StoragePermissionError: If the key points outside base_path
        """
        base = self.base_path.resolve()
        path = (base / remote_path).resolve()
        if path == base or base not in path.parents:
            raise StoragePermissionError(f"Storage key escapes {base}: {remote_path}")
        return path

    def save_file(self, local_path: Path, remote_path: str, content_type: Optional[str] = None) -> str:
        """
        Copy file to local storage directory.

        Returns:
            Absolute path where file was saved
        """
        dest_path = self._resolve(remote_path)
        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(local_path, dest_path)
            logger.debug(f"Stored {local_path} at {dest_path}")
            return str(dest_path)
        except OSError as e:
            raise StorageError(f"Failed to save file {local_path} to {remote_path}: {e}") from e

    def delete_file(self, remote_path: str) -> bool:
        file_path = self._resolve(remote_path)
        try:
            if file_path.exists():
                file_path.unlink()
                return True
            return False
        except OSError as e:
            logger.warning(f"Failed to delete {remote_path}: {e}")
            return False

    def file_exists(self, remote_path: str) -> bool:
        return self._resolve(remote_path).exists()

    def get_file_url(self, remote_path: str) -> str:
        return str(self._resolve(remote_path))
