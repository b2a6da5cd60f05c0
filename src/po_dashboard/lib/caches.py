"""
Disk-backed key/value storage.

Provides a DiskCache class that stores values in a directory on disk using
the diskcache library. Writes to a single key are atomic and visible to
other processes opening the same directory, which makes it suitable as a
durable client-side slot that survives restarts.
"""

from pathlib import Path
from typing import Any

import diskcache


class DiskCache:
    """
    Thin wrapper around diskcache.Cache.

    Thread-safe and process-safe.

    Attributes:
        cache_dir: Path to the cache directory.
    """

    def __init__(self, cache_dir: str | Path) -> None:
        """
        Open (or create) the cache directory.

        Args:
            cache_dir: Directory path for storing cache files.
                       Created if it doesn't exist.
        """
        self.cache_dir = Path(cache_dir)
        self._cache = diskcache.Cache(str(self.cache_dir))

    def get(self, key: str) -> Any | None:
        """
        Return the stored value for key, or None when absent.

        Args:
            key: Cache key string.
        """
        return self._cache.get(key, default=None)

    def set(self, key: str, value: Any, expire: int | None = None) -> None:
        """
        Store a value, replacing any previous value for the key.

        Args:
            key: Cache key string.
            value: Value to store.
            expire: TTL in seconds. None means no expiration.
        """
        self._cache.set(key, value, expire=expire)

    def delete(self, key: str) -> None:
        """Delete a key. Deleting a missing key is a no-op."""
        self._cache.delete(key)

    def close(self) -> None:
        """Close the cache and release resources."""
        self._cache.close()
