"""
ReelForge Utilities Module

Filesystem helpers shared by the pipeline.
"""

from reelforge.utils.workspace_manager import WorkspaceManager

__all__ = [
    "WorkspaceManager",
]
