"""
Integration Tests

Full render pipeline against real ffmpeg/ffprobe binaries.
"""
