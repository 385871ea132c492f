"""
Dependency injection for ReelForge API
"""

from fastapi import HTTPException, Request

from reelforge.services.job_orchestrator import JobOrchestrator


def get_orchestrator(request: Request) -> JobOrchestrator:
    """
    FastAPI dependency for the process-wide job orchestrator.

    The orchestrator is built once in the application lifespan and stored on
    ``app.state``.
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return orchestrator
