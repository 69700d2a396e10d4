"""
Handles the low-level downloading of engine and template archives over HTTP.
"""

import asyncio
import logging
import os
from pathlib import Path

import aiofiles
import aiohttp

from godot_export.exceptions import AcquisitionError
from godot_export.utils.formatting import format_size

log = logging.getLogger(__name__)

_connection_pool: aiohttp.ClientSession | None = None
_pool_lock = asyncio.Lock()


async def get_connection_pool() -> aiohttp.ClientSession:
    """
    Gets or creates a shared aiohttp ClientSession for downloads.

    This function ensures that only one connection pool is created for the
    lifetime of the application run.
    """
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            return _connection_pool

        connector = aiohttp.TCPConnector(
            limit=4,
            ttl_dns_cache=600,  # 10 minutes
            enable_cleanup_closed=True,
        )
        # Archives are large; only bound the connect and per-read phases
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=90)
        _connection_pool = aiohttp.ClientSession(connector=connector, timeout=timeout)
        log.debug("Created download pool.")

    return _connection_pool


async def close_connection_pool() -> None:
    """Closes the shared global connection pool."""
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            await _connection_pool.close()
            _connection_pool = None
            log.debug("Shared downloader connection pool closed.")


class Downloader:
    """A streaming file downloader. Each download is attempted exactly once."""

    CHUNK_SIZE = 1048576  # 1 MB

    async def download_file(self, url: str, destination_path: Path) -> int:
        """
        Streams ``url`` into ``destination_path``.

        Returns:
            The number of bytes written.

        Raises:
            AcquisitionError: On any HTTP, network or filesystem failure.
        """
        destination_path.parent.mkdir(parents=True, exist_ok=True)
        bytes_downloaded = 0
        try:
            session = await get_connection_pool()
            async with session.get(url, allow_redirects=True) as response:
                response.raise_for_status()
                async with aiofiles.open(destination_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                        await f.write(chunk)
                        bytes_downloaded += len(chunk)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise AcquisitionError(
                f"Failed to download '{url}' to "
                f"'{os.path.basename(destination_path)}': {e}"
            ) from e

        log.debug(
            f"Downloaded {format_size(bytes_downloaded)} to "
            f"'{os.path.basename(destination_path)}'."
        )
        return bytes_downloaded
