"""
A simple, file-based blob store for caching downloaded archives between runs.
Entries are addressed by key, with prefix matching as a restore fallback.
"""

import hashlib
import json
import logging
import os
import shutil
import time
from collections.abc import Sequence
from pathlib import Path

log = logging.getLogger(__name__)

ENTRY_METADATA = "entry.json"


class BlobCache:
    """
    Stores copies of files under a cache key and restores them to their original
    locations.

    The interface mirrors a CI cache service: ``restore`` returns the key that was
    hit (or None), ``save`` stores the given paths under a key, and
    ``is_available`` reports whether the store can be used at all.
    """

    def __init__(self, cache_dir_path: Path):
        """
        Initializes the blob cache.

        Args:
            cache_dir_path: The directory where cache entries will be stored.
        """
        self.cache_dir = cache_dir_path / "blobs"

    def _get_entry_path(self, key: str) -> Path:
        """Generates a safe directory name for a given cache key."""
        hashed_key = hashlib.md5(key.encode("utf-8")).hexdigest()  # noqa: S324
        return self.cache_dir / hashed_key

    def is_available(self) -> bool:
        """Returns True if the cache directory exists (or can be created) and is writable."""
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.debug(f"Cache directory '{self.cache_dir}' cannot be created: {e}")
            return False
        return os.access(self.cache_dir, os.W_OK)

    def _read_metadata(self, entry_path: Path) -> dict | None:
        try:
            with open(entry_path / ENTRY_METADATA, encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            log.debug(f"Ignoring unreadable cache entry '{entry_path.name}': {e}")
            return None

    def _find_by_prefix(self, prefixes: Sequence[str]) -> Path | None:
        """Finds the most recently saved entry whose key starts with a prefix."""
        if not self.cache_dir.is_dir():
            return None
        for prefix in prefixes:
            candidates = []
            for entry_path in self.cache_dir.iterdir():
                if entry_path.suffix == ".tmp":
                    continue
                metadata = self._read_metadata(entry_path)
                if metadata and metadata.get("key", "").startswith(prefix):
                    candidates.append((metadata.get("timestamp", 0), entry_path))
            if candidates:
                return max(candidates)[1]
        return None

    def restore(
        self, paths: Sequence[Path], key: str, fallback_keys: Sequence[str] = ()
    ) -> str | None:
        """
        Restores cached files to ``paths``.

        Args:
            paths: The destinations, in the order they were saved.
            key: The exact key to look up first.
            fallback_keys: Key prefixes tried in order when the exact key misses.

        Returns:
            The key of the restored entry, or None on a miss.
        """
        entry_path = self._get_entry_path(key)
        if self._read_metadata(entry_path) is None:
            entry_path = self._find_by_prefix(fallback_keys)
            if entry_path is None:
                return None

        metadata = self._read_metadata(entry_path)
        files = metadata.get("files", [])
        if len(files) != len(paths):
            log.debug(
                f"Cache entry '{metadata.get('key')}' holds {len(files)} files, "
                f"expected {len(paths)}."
            )
            return None

        for blob_name, destination in zip(files, paths):
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(entry_path / blob_name, destination)
        return metadata.get("key")

    def save(self, paths: Sequence[Path], key: str) -> None:
        """
        Saves copies of ``paths`` under ``key``, replacing any previous entry.

        Raises:
            OSError: If the files cannot be copied into the cache.
        """
        entry_path = self._get_entry_path(key)
        staging_path = entry_path.with_name(f"{entry_path.name}.tmp")
        shutil.rmtree(staging_path, ignore_errors=True)
        staging_path.mkdir(parents=True)

        files = []
        for index, source in enumerate(paths):
            blob_name = f"{index}.blob"
            shutil.copyfile(source, staging_path / blob_name)
            files.append(blob_name)

        payload = {"key": key, "timestamp": time.time(), "files": files}
        with open(staging_path / ENTRY_METADATA, "w", encoding="utf-8") as f:
            json.dump(payload, f)

        shutil.rmtree(entry_path, ignore_errors=True)
        staging_path.rename(entry_path)

    def clear(self) -> bool:
        """Removes all entries from the cache."""
        log.info("Clearing all cache entries...")
        try:
            shutil.rmtree(self.cache_dir, ignore_errors=False)
            return True
        except FileNotFoundError:
            return True
        except OSError as e:
            log.error(f"Failed to clear cache: {e}")
            return False
