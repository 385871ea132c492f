"""
Subtitle package for ReelForge.
"""

from .subtitle_generator import (
    SubtitleGenerator,
    SrtSubtitleGenerator,
    SubtitleResult,
    get_subtitle_style_presets,
    resolve_subtitle_style,
)

__all__ = [
    'SubtitleGenerator',
    'SrtSubtitleGenerator',
    'SubtitleResult',
    'get_subtitle_style_presets',
    'resolve_subtitle_style',
]
