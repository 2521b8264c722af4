"""
Simple in-memory cache for file-existence probe results.
"""
from typing import Optional
from dataclasses import dataclass
from datetime import datetime, timedelta

# Probe results rarely change within a batch run
DEFAULT_PROBE_TTL_SECONDS = 600


@dataclass
class CacheEntry:
    """A single probe result with expiration."""
    exists: bool
    expires_at: datetime


class ProbeCache:
    """
    Caches whether a URL answered 200, keyed by the probed URL.

    A batch often contains several pages of the same site; their origin-level
    probes (robots.txt, favicon.ico, ...) are then fetched once.
    """

    def __init__(self, default_ttl_seconds: int = DEFAULT_PROBE_TTL_SECONDS):
        self._entries: dict[str, CacheEntry] = {}
        self.default_ttl = default_ttl_seconds

    def get(self, url: str) -> Optional[bool]:
        """
        Get a cached probe result.

        Returns:
            True/False for a fresh entry, None if unknown or expired
        """
        entry = self._entries.get(url)
        if entry is None:
            return None
        if datetime.now() > entry.expires_at:
            del self._entries[url]
            return None
        return entry.exists

    def set(self, url: str, exists: bool, ttl_seconds: Optional[int] = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl
        self._entries[url] = CacheEntry(exists=exists, expires_at=datetime.now() + timedelta(seconds=ttl))

    def clear(self) -> None:
        """Clear all cache entries."""
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)


# Global cache instance
_global_cache = ProbeCache()


def get_cache() -> ProbeCache:
    """Get the global probe cache instance."""
    return _global_cache
