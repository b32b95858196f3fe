"""Abstract base class for vector-store service providers.

Defines the minimal collection/point contract the knowledge base needs.
Point IDs are assigned by the caller; payloads are plain JSON objects
(``text``, ``source``, ``type``, ``page_info``, ``page_estimated``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from src.models.rag import ScoredPoint, VectorPoint


# Concrete implementation: QdrantVectorStoreProvider (src/providers/vector_store/)
class IVectorStoreProvider(ABC):
    """Contract for vector-store services.

    All methods are async; every failure is raised as
    :class:`~src.utils.errors.VectorStoreError` and never swallowed.
    """

    @abstractmethod
    async def collection_exists(self, name: str) -> bool:
        """Return ``True`` if the collection *name* exists."""

    @abstractmethod
    async def create_collection(self, name: str, vector_size: int, distance: str) -> None:
        """Create collection *name* for vectors of *vector_size* using *distance*.

        Parameters
        ----------
        name:
            Collection name.
        vector_size:
            Dimension of every vector stored in the collection.
        distance:
            Distance metric name as the store understands it (``"Cosine"``).
        """

    @abstractmethod
    async def upsert_points(self, collection_name: str, points: Sequence[VectorPoint]) -> None:
        """Insert or replace *points* in *collection_name*.

        Callers are responsible for keeping request sizes bounded.
        """

    @abstractmethod
    async def query(
        self, collection_name: str, vector: list[float], limit: int
    ) -> list[ScoredPoint]:
        """Return up to *limit* nearest neighbours of *vector*, best first."""

    @abstractmethod
    async def delete_by_filter(self, collection_name: str, key: str, value: str) -> None:
        """Delete every point whose payload field *key* equals *value*."""

    @abstractmethod
    async def delete_points(self, collection_name: str, point_ids: Sequence[int | str]) -> None:
        """Delete the points with the given IDs; unknown IDs are ignored."""

    @abstractmethod
    async def count_points(self, collection_name: str) -> int:
        """Return the exact number of points stored in *collection_name*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this vector store."""

    async def close(self) -> None:
        """Release network resources held by the provider."""
