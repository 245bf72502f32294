"""
File operation utilities

This module handles playlist download, temporary file reading and cleanup,
with retry logic for transient network errors.
"""
import logging
import tempfile
from pathlib import Path
import asyncio

import aiofiles
import httpx


logger = logging.getLogger(__name__)


async def download_file(
    url: str,
    filename: str,
    timeout: float = 120.0,
    max_retries: int = 3,
    backoff_factor: float = 2.0
) -> Path:
    """
    Download a file from URL with exponential backoff retry logic

    Retries on transient network errors (timeouts, connection errors) and 5xx
    responses. Does NOT retry on 4xx HTTP errors (client errors).

    Args:
        url: URL to download from
        filename: Name for the temporary file
        timeout: HTTP timeout in seconds
        max_retries: Maximum number of attempts
        backoff_factor: Exponential backoff multiplier (wait = backoff_factor ^ attempt)

    Returns:
        Path to downloaded temporary file

    Raises:
        httpx.HTTPError: If download fails after all retries
    """
    logger.info("Downloading playlist from %s...", sanitize_url(url))

    last_error: Exception | None = None

    for attempt in range(max_retries):
        try:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()

                temp_file = Path(tempfile.gettempdir()) / filename

                async with aiofiles.open(temp_file, 'wb') as f:
                    await f.write(response.content)

                file_size = len(response.content) / (1024 * 1024)
                logger.info("Downloaded %.2f MB to %s", file_size, temp_file)

                return temp_file

        except (httpx.TimeoutException, httpx.ConnectError) as e:
            last_error = e
            if attempt < max_retries - 1:
                wait_time = backoff_factor ** attempt
                logger.warning(
                    "Download attempt %s/%s failed (transient error): %s. Retrying in %.1fs...",
                    attempt + 1,
                    max_retries,
                    type(e).__name__,
                    wait_time,
                )
                await asyncio.sleep(wait_time)
            else:
                logger.error("Download failed after %s attempts (transient error)", max_retries)

        except httpx.HTTPStatusError as e:
            if 400 <= e.response.status_code < 500:
                logger.error("HTTP %s (client error) for %s", e.response.status_code, sanitize_url(url))
                raise

            last_error = e
            if attempt < max_retries - 1:
                wait_time = backoff_factor ** attempt
                logger.warning(
                    "Download attempt %s/%s failed (HTTP %s server error). Retrying in %.1fs...",
                    attempt + 1,
                    max_retries,
                    e.response.status_code,
                    wait_time,
                )
                await asyncio.sleep(wait_time)
            else:
                logger.error(
                    "Download failed after %s attempts (HTTP %s)",
                    max_retries,
                    e.response.status_code,
                )

    if last_error:
        raise last_error

    raise RuntimeError(f"Failed to download {sanitize_url(url)} after {max_retries} attempts")


async def read_text_file(file_path: Path, encoding: str = "utf-8") -> str:
    """
    Read a downloaded playlist as text.

    Undecodable bytes are replaced so a single bad byte does not fail the import.
    """
    async with aiofiles.open(file_path, 'r', encoding=encoding, errors='replace', newline='') as f:
        return await f.read()


def cleanup_temp_file(file_path: Path) -> bool:
    """
    Safely delete a temporary file

    Args:
        file_path: Path to file to delete

    Returns:
        True if deleted successfully, False otherwise
    """
    if not file_path or not file_path.exists():
        return False

    try:
        file_path.unlink()
        logger.debug("Cleaned up temporary file: %s", file_path)
        return True
    except (OSError, PermissionError) as e:
        logger.warning("Failed to delete temporary file %s: %s", file_path, e)
        return False


def sanitize_url(url: str) -> str:
    """Remove credentials from URL for safe logging."""
    if "://" not in url:
        return url
    try:
        protocol, rest = url.split("://", 1)
        if "@" in rest.split("/", 1)[0]:
            rest = rest.split("@", 1)[1]
            return f"{protocol}://***:***@{rest}"
        return url
    except (ValueError, IndexError):
        return url
