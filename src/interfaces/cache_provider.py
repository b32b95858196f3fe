"""Abstract base class for cache service providers.

Defines the key-value caching contract used in front of the embedding
provider so repeated queries do not hit the embedding endpoint twice.
Implementations may use an in-memory TTL cache, Redis, or anything else.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Contract for key-value cache services.

    All operations are async so network-backed stores fit without
    blocking the event loop.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value stored under *key*, or ``None`` if missing or expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key*.

        Parameters
        ----------
        key:
            The cache key.
        value:
            The value to store.
        ttl:
            Time-to-live in seconds; ``None`` uses the provider default.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove *key*; a no-op if the key does not exist."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired."""
