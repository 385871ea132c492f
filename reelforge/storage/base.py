"""
Abstract storage backend interface for ReelForge.

This module defines the abstract base class for storage backends,
providing a unified interface for publishing rendered videos across
different storage systems.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional


class StorageBackend(ABC):
    """Abstract base class for storage backends."""

    backend_type: str = "abstract"

    @abstractmethod
    def save_file(self, local_path: Path, remote_path: str, content_type: Optional[str] = None) -> str:
        """
        Save file to storage, overwriting any existing object at the same path.

        Args:
            local_path: Path to local file
            remote_path: Destination path in storage
            content_type: MIME type to record with the object

        Returns:
            Public URL or path to stored file
        """
        pass

    @abstractmethod
    def delete_file(self, remote_path: str) -> bool:
        """
        Delete file from storage.

        Args:
            remote_path: Path in storage

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    def file_exists(self, remote_path: str) -> bool:
        """
        Check if file exists in storage.

        Args:
            remote_path: Path in storage

        Returns:
            True if file exists, False otherwise
        """
        pass

    @abstractmethod
    def get_file_url(self, remote_path: str) -> str:
        """
        Get public URL for file (if applicable).

        Args:
            remote_path: Path in storage

        Returns:
            Public URL or local path
        """
        pass

    def close(self) -> None:
        """Release network clients held by the backend."""
