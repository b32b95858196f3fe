"""Abstract base class for the ledger's durable key-value store.

The processing ledger stores a handful of JSON documents (processed file
list, per-file metadata, last-run snapshot, point-ID sequence).  Keeping
them behind this interface lets the flat-file store be swapped for an
embedded or networked database without touching orchestration logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


# Concrete implementation: JsonFileStore (src/providers/storage/)
class IKeyValueStore(ABC):
    """Contract for a small durable store of JSON-serialisable values."""

    @abstractmethod
    def read(self, key: str) -> Any | None:
        """Return the value stored under *key*.

        Returns ``None`` when the key is missing **or** its stored value is
        unreadable; corrupt entries are treated as absent, never raised.
        """

    @abstractmethod
    def write(self, key: str, value: Any) -> None:
        """Persist *value* under *key*, replacing any previous value.

        Raises
        ------
        src.utils.errors.LedgerError
            If the value cannot be written.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key*; a no-op if absent."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable description of where values are stored."""

    @property
    @abstractmethod
    def is_persistent(self) -> bool:
        """``False`` when the store fell back to ephemeral storage."""
