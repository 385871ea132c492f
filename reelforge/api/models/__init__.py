"""
API models for ReelForge
"""

from .responses import GenerateVideoResponse
from .common import HealthResponse, ErrorResponse

__all__ = [
    'GenerateVideoResponse',
    'HealthResponse',
    'ErrorResponse'
]
