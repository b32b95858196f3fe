"""Caching decorator for embedding providers.

Wraps another :class:`IEmbeddingProvider` and stores vectors in an
:class:`ICacheProvider`, keyed on the embedding mode and a SHA-256 digest
of the text.  Query embeddings benefit most: the same question asked
twice in the chat loop costs one embedding request.
"""

from __future__ import annotations

import hashlib

import structlog

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.embedding_provider import EmbeddingMode, IEmbeddingProvider

logger = structlog.get_logger(logger_name=__name__)


class CachingEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider that consults a cache before the wrapped provider.

    Parameters
    ----------
    inner:
        The provider that actually computes embeddings.
    cache:
        Cache backend, typically :class:`MemoryCacheProvider`.
    """

    def __init__(self, inner: IEmbeddingProvider, cache: ICacheProvider) -> None:
        self._inner = inner
        self._cache = cache

    async def embed(self, text: str, mode: EmbeddingMode) -> list[float]:
        key = self.cache_key(text, mode)
        cached = await self._cache.get(key)
        if cached is not None:
            logger.debug("embedding_cache_hit", mode=mode.value)
            return list(cached)

        vector = await self._inner.embed(text, mode)
        await self._cache.set(key, tuple(vector))
        return vector

    @staticmethod
    def cache_key(text: str, mode: EmbeddingMode) -> str:
        digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
        return f"embedding_{mode.value}_{digest}"

    def get_dimension(self) -> int:
        return self._inner.get_dimension()

    def get_provider_name(self) -> str:
        return f"cached_{self._inner.get_provider_name()}"

    def is_available(self) -> bool:
        return self._inner.is_available()
