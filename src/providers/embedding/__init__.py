"""Embedding provider implementations.

Embeddings convert text into numeric vectors that capture semantic
meaning.  Stored chunks and queries are embedded with different
instruction prefixes (see EmbeddingMode).

Two implementations of IEmbeddingProvider:
    1. OpenAICompatibleEmbeddingProvider -- any /v1/embeddings endpoint
       (LM Studio, Ollama, OpenRouter). 768 dims for nomic-embed-text.
    2. CachingEmbeddingProvider -- wraps another provider with a TTL cache.
"""

from src.providers.embedding.caching_embedding_provider import CachingEmbeddingProvider
from src.providers.embedding.openai_compatible_embedding_provider import (
    OpenAICompatibleEmbeddingProvider,
)

__all__ = ["CachingEmbeddingProvider", "OpenAICompatibleEmbeddingProvider"]
