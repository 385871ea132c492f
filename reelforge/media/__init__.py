"""
Media package for ReelForge.

This package handles asset download and ffmpeg-based video composition.
"""

from .asset_fetcher import AssetFetcher, create_http_client, safe_extension
from .video_composer import VideoComposer

__all__ = [
    'AssetFetcher',
    'create_http_client',
    'safe_extension',
    'VideoComposer',
]
