"""In-memory cache provider using cachetools.TTLCache.

Entries expire ``ttl`` seconds after they were written and the least
recently used entry is evicted once ``max_size`` is reached.
"""

from __future__ import annotations

from typing import Any

import structlog
from cachetools import TTLCache

from src.interfaces.cache_provider import ICacheProvider

logger = structlog.get_logger(logger_name=__name__)


class MemoryCacheProvider(ICacheProvider):
    """In-memory TTL cache backed by ``cachetools.TTLCache``.

    Parameters
    ----------
    max_size:
        Maximum number of entries before eviction.
    ttl:
        Time-to-live in seconds for every entry.  ``TTLCache`` applies one
        TTL to the whole cache, so the per-call ``ttl`` argument of
        :meth:`set` is ignored.
    """

    def __init__(self, max_size: int = 10000, ttl: int = 1800) -> None:
        self._cache: TTLCache[str, Any] = TTLCache(maxsize=max_size, ttl=ttl)
        self._hits = 0
        self._misses = 0

    async def get(self, key: str) -> Any | None:
        value = self._cache.get(key)
        if value is None:
            self._misses += 1
        else:
            self._hits += 1
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        self._cache[key] = value

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    async def exists(self, key: str) -> bool:
        return key in self._cache

    def stats(self) -> dict[str, int]:
        """Return hit/miss counters and the current entry count."""
        return {"hits": self._hits, "misses": self._misses, "size": len(self._cache)}
