"""
Services - Cache Service

TTL-based cache for rule resolutions.
"""

from typing import Any, Optional
from cachetools import TTLCache
import threading

from catalog_search.config import get_settings


class CacheService:
    """TTL-based cache shared by concurrent requests."""

    def __init__(self, settings=None):
        self.settings = settings or get_settings()
        self._lock = threading.Lock()
        self._cache = TTLCache(
            maxsize=self.settings.cache.max_entries,
            ttl=self.settings.cache.ttl_rules,
        )

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        if not self.settings.cache.enabled:
            return None

        with self._lock:
            return self._cache.get(key)

    def set(self, key: str, value: Any) -> None:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
        """
        if not self.settings.cache.enabled:
            return

        with self._lock:
            self._cache[key] = value

    def delete(self, key: str) -> None:
        """Delete a key from cache."""
        with self._lock:
            self._cache.pop(key, None)

    def get_stats(self) -> dict:
        """Get cache statistics."""
        return {
            "size": len(self._cache),
            "maxsize": self._cache.maxsize,
            "ttl": self._cache.ttl,
            "enabled": self.settings.cache.enabled,
        }
