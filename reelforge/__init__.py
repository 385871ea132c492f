"""
ReelForge - renders image+duration segments into one MP4 and publishes it.
"""

__version__ = "1.0.0"
