"""
Shared fixtures for ReelForge tests.
"""

import io
from pathlib import Path
from typing import Callable, Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from PIL import Image

from reelforge.core.concurrency import ConcurrencyLimiter
from reelforge.core.models import CompositionOutcome, CompositionStrategy
from reelforge.media.asset_fetcher import AssetFetcher
from reelforge.services.job_orchestrator import JobOrchestrator
from reelforge.storage.local import LocalStorage
from reelforge.storage.publisher import ArtifactPublisher
from reelforge.utils.workspace_manager import WorkspaceManager

DEPLOYMENT_ENV_VARS = (
    "APP_ENV",
    "NODE_ENV",
    "PORT",
    "CORS_ORIGINS",
    "CORS_CREDENTIALS",
    "STORAGE_BACKEND",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_ANON_KEY",
    "SUPABASE_BUCKET_NAME",
    "FFMPEG_PATH",
    "FFPROBE_PATH",
)


@pytest.fixture(autouse=True)
def clean_deployment_env(monkeypatch):
    """Keep developer .env values from leaking into tests."""
    for name in DEPLOYMENT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def make_png(width: int = 64, height: int = 48, color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


def image_transport(
    images: Optional[Dict[str, bytes]] = None,
    statuses: Optional[Dict[str, int]] = None,
    default: Optional[bytes] = None,
) -> httpx.MockTransport:
    """
    Serve images by URL. Unknown URLs get ``default`` (or 404 when None).
    """
    images = images or {}
    statuses = statuses or {}

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url in statuses:
            return httpx.Response(statuses[url])
        body = images.get(url, default)
        if body is None:
            return httpx.Response(404)
        return httpx.Response(200, content=body, headers={"Content-Type": "image/png"})

    return httpx.MockTransport(handler)


@pytest.fixture
def workspace_root(tmp_path) -> Path:
    return tmp_path / "temp"


@pytest.fixture
def storage_root(tmp_path) -> Path:
    return tmp_path / "published"


def _write_output(out_path: Path) -> None:
    Path(out_path).write_bytes(b"\x00\x00\x00\x18ftypmp42")


@pytest.fixture
def fake_composer():
    """
    Composer double whose fast path writes a placeholder file and succeeds.

    Tests override ``compose_fast`` / ``compose_fallback`` side effects as needed.
    """
    composer = MagicMock()
    composer.calls = []

    async def _fast(segments, out_path, resolution, subtitle_paths=None, subtitle_styles=None):
        composer.calls.append(("fast", list(segments)))
        _write_output(out_path)
        return CompositionOutcome.ok(out_path, CompositionStrategy.FAST)

    async def _fallback(segments, out_path, resolution):
        composer.calls.append(("fallback", list(segments)))
        _write_output(out_path)
        return CompositionOutcome.ok(out_path, CompositionStrategy.FALLBACK)

    composer.compose_fast = AsyncMock(side_effect=_fast)
    composer.compose_fallback = AsyncMock(side_effect=_fallback)
    return composer


@pytest.fixture
def build_test_orchestrator(workspace_root, storage_root, fake_composer, png_bytes) -> Callable[..., JobOrchestrator]:
    """
    Factory for a real orchestrator wired to an in-memory image server,
    a temp workspace root and local storage.
    """

    def _build(transport: Optional[httpx.MockTransport] = None, production=False, composer=None,
               subtitle_generator=None, max_concurrency: int = 2) -> JobOrchestrator:
        client = httpx.AsyncClient(transport=transport or image_transport(default=png_bytes))
        limiter = ConcurrencyLimiter(max_concurrency=max_concurrency)
        return JobOrchestrator(
            fetcher=AssetFetcher(client=client, retries=0, retry_delay=0),
            limiter=limiter,
            workspace=WorkspaceManager(workspace_root),
            composer=composer or fake_composer,
            publisher=ArtifactPublisher(LocalStorage(storage_root)),
            subtitle_generator=subtitle_generator,
            production=production,
            http_client=client,
        )

    return _build
