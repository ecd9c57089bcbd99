"""Async HTTP download of CV documents referenced by URL."""

import asyncio
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote, urlparse

import httpx

from resort_cv_ai.config import HTTP_MAX_RETRIES, HTTP_TIMEOUT_SECONDS
from resort_cv_ai.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class FetchedFile:
    content: bytes
    filename: str
    content_type: Optional[str]


def filename_from_url(url: str) -> str:
    """Last path segment of the URL, or a generic name."""
    path = urlparse(url).path
    name = unquote(path.rsplit("/", 1)[-1]) if path else ""
    return name or "downloaded-cv"


async def fetch_file(url: str) -> Optional[FetchedFile]:
    """
    Download a document. Retries on timeouts and connection errors with linear
    backoff; client errors (4xx) are not retried. Returns None on failure.
    """
    last_error: Optional[Exception] = None
    for attempt in range(HTTP_MAX_RETRIES):
        try:
            async with httpx.AsyncClient(follow_redirects=True, timeout=HTTP_TIMEOUT_SECONDS) as client:
                response = await client.get(url)
                response.raise_for_status()
                content_type = response.headers.get("content-type")
                if content_type:
                    content_type = content_type.split(";", 1)[0].strip() or None
                logger.info("Downloaded %s (%s bytes, %s)", url, len(response.content), content_type)
                return FetchedFile(
                    content=response.content,
                    filename=filename_from_url(str(response.url)),
                    content_type=content_type,
                )
        except httpx.HTTPStatusError as e:
            last_error = e
            logger.warning("HTTP error %s for %s", e.response.status_code, url)
            if 400 <= e.response.status_code < 500:
                break  # Don't retry client errors
        except (httpx.TimeoutException, httpx.ConnectError) as e:
            last_error = e
            logger.warning("Download failed for %s (attempt %s): %s", url, attempt + 1, e)
        except Exception as e:
            last_error = e
            logger.exception("Unexpected error downloading %s", url)
            break
        await asyncio.sleep(1.0 * (attempt + 1))

    if last_error:
        logger.error("Failed to download %s after %s attempts: %s", url, HTTP_MAX_RETRIES, last_error)
    return None
