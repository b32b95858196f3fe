"""Cache providers.

In-memory TTL cache placed in front of the embedding provider so that a
repeated query (or a re-embedded chunk) does not hit the embedding
endpoint twice within the cache window.

MemoryCacheProvider is process-local. For multi-worker deployments, swap
in a Redis adapter implementing ICacheProvider without changing any
business logic.
"""

from src.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
