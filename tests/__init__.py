"""
ReelForge Test Suite

- unit/: Tests for individual components
- api/: HTTP endpoint tests with FastAPI's TestClient
- integration/: End-to-end rendering with real ffmpeg (skipped when absent)
"""
