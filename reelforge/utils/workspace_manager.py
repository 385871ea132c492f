"""
Per-job workspace management.

Every job gets its own directory under the configured workspace root. The
directory name is a fresh uuid4 token, never the caller's job id, so that two
requests reusing the same job id cannot step on each other's files.

Usage:
    from reelforge.utils.workspace_manager import WorkspaceManager

    manager = WorkspaceManager()
    session_dir = manager.allocate("job-123")
    try:
        (session_dir / "img_0.png").write_bytes(b"...")
    finally:
        manager.release(session_dir)
"""
from pathlib import Path
from typing import Optional, Union
import logging
import shutil
import uuid

from reelforge import settings
from reelforge.core.exceptions import WorkspaceError

logger = logging.getLogger(__name__)


class WorkspaceManager:
    """Allocates and destroys isolated job directories."""

    def __init__(self, root: Optional[Union[str, Path]] = None):
        """
        Initialize workspace manager.

        Args:
            root: Directory holding all job workspaces (default: workspace.root setting)
        """
        self.root = Path(root) if root else Path(settings.get_workspace_root())
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WorkspaceError(f"Cannot create workspace root {self.root}: {e}") from e
        logger.debug(f"WorkspaceManager root: {self.root.resolve()}")

    def allocate(self, job_id: str) -> Path:
        """
        Create a fresh directory for one job.

        Args:
            job_id: Caller's job id, used for logging only

        Returns:
            Path to the new, empty session directory

        Raises:
            WorkspaceError: If the directory cannot be created
        """
        session_dir = self.root / uuid.uuid4().hex
        try:
            session_dir.mkdir(parents=True, exist_ok=False)
        except OSError as e:
            raise WorkspaceError(f"Failed to allocate workspace for job {job_id}: {e}") from e

        logger.info(f"Allocated workspace for job {job_id}: {session_dir}")
        return session_dir

    def release(self, session_dir: Optional[Union[str, Path]]) -> bool:
        """
        Remove a session directory and everything in it.

        Safe to call more than once. Errors are logged, never raised.

        Returns:
            True if the directory is gone afterwards
        """
        if session_dir is None:
            return True

        path = Path(session_dir)
        if not path.exists():
            logger.debug(f"Workspace already removed: {path}")
            return True

        try:
            shutil.rmtree(path)
            logger.info(f"Cleaned up workspace: {path}")
            return True
        except OSError as e:
            logger.warning(f"Failed to cleanup workspace {path}: {e}")
            return False
