"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into a fixed-length vector.
Embedding models used here follow an asymmetric convention: stored
documents and search queries are embedded with different instruction
prefixes, so every call states which side it is on via
:class:`EmbeddingMode`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum


class EmbeddingMode(str, Enum):
    """Which side of the asymmetric embedding a text belongs to."""

    DOCUMENT = "document"
    QUERY = "query"


# Concrete implementations:
#   OpenAICompatibleEmbeddingProvider -- any /v1/embeddings endpoint (LM Studio, Ollama, OpenRouter)
#   CachingEmbeddingProvider          -- decorator adding a TTL cache in front of another provider
# Located in: src/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the RAG pipeline."""

    @abstractmethod
    async def embed(self, text: str, mode: EmbeddingMode) -> list[float]:
        """Generate an embedding vector for *text*.

        Parameters
        ----------
        text:
            The text to embed, without any instruction prefix.
        mode:
            ``DOCUMENT`` for chunks being stored, ``QUERY`` for searches.
            Implementations apply the matching instruction prefix.

        Returns
        -------
        list[float]
            The embedding vector with length equal to :meth:`get_dimension`.

        Raises
        ------
        src.utils.errors.EmbeddingError
            If the request fails or the vector has the wrong dimension.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Must match the vector size of the collection the vectors go into.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this embedding provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and reachable."""
