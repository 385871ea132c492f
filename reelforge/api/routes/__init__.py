"""
ReelForge API Routes

This module contains all API route definitions.
"""

from . import health, videos

__all__ = ['health', 'videos']
