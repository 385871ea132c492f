from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional
import logging

from reelforge import __version__, settings
from reelforge.core.exceptions import JobFailedError, JobValidationError
from reelforge.services.job_orchestrator import JobOrchestrator, build_orchestrator
from .routes import health, videos
from .exceptions import (
    InvalidJSONError,
    invalid_json_handler,
    job_failed_handler,
    job_validation_handler,
)
from .middleware import LoggingMiddleware

logger = logging.getLogger(__name__)


def _configure_cors(app: FastAPI) -> None:
    """
    CORS from CORS_ORIGINS / CORS_CREDENTIALS.

    With no configured origins every origin is reflected and credentials are off.
    """
    origins = settings.get_cors_origins()
    common = {
        "allow_methods": ["GET", "POST", "OPTIONS"],
        "allow_headers": ["Content-Type", "Authorization"],
    }
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=settings.get_cors_credentials(),
            **common,
        )
        logger.info(f"CORS restricted to: {', '.join(origins)}")
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origin_regex=".*",
            allow_credentials=False,
            **common,
        )
        logger.info("CORS: reflecting any origin (set CORS_ORIGINS in production)")


def create_app(orchestrator: Optional[JobOrchestrator] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        orchestrator: Prebuilt orchestrator; built from settings at startup when None
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("ReelForge API starting up...")
        owned = orchestrator is None
        app.state.orchestrator = orchestrator or build_orchestrator()
        logger.info(
            f"✅ Orchestrator ready (environment={settings.get_environment()}, "
            f"storage={settings.get_storage_backend()}, "
            f"max_concurrency={app.state.orchestrator.limiter.max_concurrency})"
        )

        yield

        logger.info("ReelForge API shutting down...")
        if owned:
            await app.state.orchestrator.aclose()
            logger.info("✅ Shared clients closed")
        logger.info("ReelForge API shutdown complete")

    app = FastAPI(
        title="ReelForge API",
        description="Renders image+duration segments into one MP4 and publishes it",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    if orchestrator is not None:
        app.state.orchestrator = orchestrator

    _configure_cors(app)
    app.add_middleware(LoggingMiddleware)

    app.include_router(health.router, tags=["health"])
    app.include_router(videos.router, tags=["videos"])

    app.add_exception_handler(InvalidJSONError, invalid_json_handler)
    app.add_exception_handler(JobValidationError, job_validation_handler)
    app.add_exception_handler(JobFailedError, job_failed_handler)

    return app


# Allow running with: python -m reelforge.api.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "reelforge.api.main:create_app",
        factory=True,
        host=settings.get_api_host(),
        port=settings.get_api_port(),
    )
