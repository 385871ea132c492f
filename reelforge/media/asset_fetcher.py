"""
Remote asset download for ReelForge.

One httpx.AsyncClient is shared by every job so TCP/TLS connections are kept
alive between segment downloads. Responses are streamed straight to disk.
"""

import asyncio
import logging
import posixpath
from pathlib import Path
from typing import Dict, Optional, Union
from urllib.parse import urlparse

import aiofiles
import httpx

from reelforge import settings
from reelforge.core.exceptions import AssetFetchError

logger = logging.getLogger(__name__)

# Client errors that will not change on retry
NON_RETRYABLE_STATUSES = frozenset({400, 401, 403, 404})

CHUNK_SIZE = 64 * 1024


def create_http_client(
    timeout: Optional[float] = None,
    user_agent: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Build the process-wide keep-alive client.

    Args:
        timeout: Request timeout in seconds (default: fetch.timeout_seconds)
        user_agent: User-Agent header (default: fetch.user_agent)
        transport: Optional transport override, used by tests
    """
    return httpx.AsyncClient(
        timeout=timeout if timeout is not None else settings.get_fetch_timeout(),
        follow_redirects=True,
        headers={
            "User-Agent": user_agent or settings.get_fetch_user_agent(),
            "Accept": "*/*",
        },
        transport=transport,
    )


def safe_extension(url: str, fallback: Optional[str] = None) -> str:
    """
    Extract the file extension from a URL path.

    Query strings and fragments are ignored. Anything unparseable or without
    an extension yields the fallback.
    """
    fallback = fallback or settings.get_default_image_extension()
    try:
        path = urlparse(url).path
    except ValueError:
        return fallback
    ext = posixpath.splitext(path)[1]
    if not ext or len(ext) > 6 or not ext[1:].isalnum():
        return fallback
    return ext.lower()


class AssetFetcher:
    """Download remote resources to local files with retry and backoff."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        """
        Initialize fetcher

        Args:
            client: Shared AsyncClient (created from settings if None)
            retries: Default extra attempts after the first
            retry_delay: Default base delay in seconds for linear backoff
        """
        self._owns_client = client is None
        self.client = client or create_http_client()
        self.retries = settings.get_fetch_retries() if retries is None else retries
        self.retry_delay = settings.get_fetch_retry_delay() if retry_delay is None else retry_delay

    async def fetch(
        self,
        url: str,
        dest_path: Union[str, Path],
        headers: Optional[Dict[str, str]] = None,
        retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ) -> Path:
        """
        Download ``url`` to ``dest_path``.

        Args:
            url: Resource URL
            dest_path: Local file to write; parent directories are created
            headers: Extra request headers
            retries: Extra attempts after the first (default 2)
            retry_delay: Backoff base; attempt N waits retry_delay * N seconds

        Returns:
            Path of the written file

        Raises:
            AssetFetchError: On a non-retryable status or once retries run out
        """
        retries = self.retries if retries is None else retries
        retry_delay = self.retry_delay if retry_delay is None else retry_delay
        dest = Path(dest_path)

        attempt = 0
        while True:
            attempt += 1
            status: Optional[int] = None
            try:
                async with self.client.stream("GET", url, headers=headers) as response:
                    status = response.status_code
                    if not 200 <= status < 300:
                        raise AssetFetchError(
                            f"Request failed with status code {status} for {url}",
                            url=url,
                            status=status,
                        )

                    dest.parent.mkdir(parents=True, exist_ok=True)
                    async with aiofiles.open(dest, "wb") as f:
                        async for chunk in response.aiter_bytes(CHUNK_SIZE):
                            await f.write(chunk)

                logger.debug(f"Downloaded {url} -> {dest} (attempt {attempt})")
                return dest

            except (AssetFetchError, httpx.HTTPError, OSError) as e:
                if isinstance(e, AssetFetchError):
                    message = e.message
                else:
                    message = f"Request error for {url}: {e}"

                if status in NON_RETRYABLE_STATUSES:
                    logger.error(f"❌ {message} (not retrying)")
                    raise AssetFetchError(message, url=url, status=status) from e

                if attempt > retries:
                    logger.error(f"❌ Download failed after {attempt} attempts: {message}")
                    raise AssetFetchError(message, url=url, status=status) from e

                delay = retry_delay * attempt
                logger.warning(
                    f"Attempt {attempt}/{retries + 1} failed for {url} (status={status}): "
                    f"{message}; retrying in {delay:.2f}s"
                )
                await asyncio.sleep(delay)

    async def aclose(self) -> None:
        """Close the underlying client if this fetcher created it."""
        if self._owns_client:
            await self.client.aclose()
