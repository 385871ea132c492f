"""
Start-up checks for ReelForge.
"""

from .preflight import HealthCheck, HealthStatus, preflight_ok, run_preflight_checks

__all__ = ['HealthCheck', 'HealthStatus', 'preflight_ok', 'run_preflight_checks']
