"""
Downloads artifacts through the blob cache, falling back to the network.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Protocol
from urllib.parse import urlparse

from godot_export.acquisition.downloader import Downloader

log = logging.getLogger(__name__)


class CacheBackend(Protocol):
    def is_available(self) -> bool: ...

    def restore(
        self, paths: list[Path], key: str, fallback_keys: list[str]
    ) -> str | None: ...

    def save(self, paths: list[Path], key: str) -> None: ...


def is_ghes() -> bool:
    """True when running against a GitHub Enterprise Server instance."""
    server_url = os.getenv("GITHUB_SERVER_URL") or "https://github.com"
    return (urlparse(server_url).hostname or "").upper() != "GITHUB.COM"


class CachedFetcher:
    """
    Fetches a remote file, consulting the cache before the network.

    Cache problems never fail a fetch: an unavailable cache degrades to a direct
    download and a failed save is only logged.
    """

    def __init__(
        self,
        downloader: Downloader,
        cache: CacheBackend | None = None,
        cache_active: bool = True,
    ):
        self.downloader = downloader
        self.cache = cache
        self.cache_active = cache_active
        self._cache_available: bool | None = None

    def is_cache_feature_available(self) -> bool:
        """Checks (once per fetcher) whether the cache can be used on this runner."""
        if self._cache_available is not None:
            return self._cache_available

        available = self.cache is not None and self.cache.is_available()
        if not available:
            if is_ghes():
                log.warning(
                    "[yellow]Cache is only supported on GHES version >= 3.5. If you "
                    "are on version >= 3.5 please check with your GHES admin whether "
                    "the Actions cache service is enabled.[/yellow]"
                )
            else:
                log.warning(
                    "[yellow]The runner was not able to contact the cache service. "
                    "Caching will be skipped.[/yellow]"
                )
        self._cache_available = available
        return available

    def _use_cache(self) -> bool:
        return self.cache_active and self.is_cache_feature_available()

    async def fetch(
        self,
        target_path: Path,
        source_url: str,
        cache_key: str,
        restore_key_prefix: str,
    ) -> str | None:
        """
        Makes ``source_url`` available at ``target_path``.

        Returns:
            The key of the cache entry the file was restored from, which differs
            from ``cache_key`` on a prefix match, or None if it was downloaded.

        Raises:
            AcquisitionError: If the cache misses and the download fails.
        """
        use_cache = self._use_cache()
        if use_cache:
            try:
                cache_hit = await asyncio.to_thread(
                    self.cache.restore, [target_path], cache_key, [restore_key_prefix]
                )
            except OSError as e:
                log.warning(f"[yellow]Cache restore failed for '{cache_key}': {e}[/yellow]")
                cache_hit = None
            if cache_hit:
                log.info(f"Restored cached file from {cache_hit}")
                return cache_hit

        log.info(f"Downloading file from {source_url}")
        await self.downloader.download_file(source_url, target_path)

        if use_cache:
            try:
                await asyncio.to_thread(self.cache.save, [target_path], cache_key)
                log.debug(f"Saved '{target_path.name}' to cache under '{cache_key}'.")
            except OSError as e:
                log.warning(f"[yellow]Cache write failed for '{cache_key}': {e}[/yellow]")
        return None
