"""
ReelForge Services Module

This module contains the service layer that sequences the pipeline.
"""

from .job_orchestrator import JobOrchestrator, build_orchestrator

__all__ = [
    'JobOrchestrator',
    'build_orchestrator',
]
