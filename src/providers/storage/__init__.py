"""Durable storage providers for the processing ledger.

JsonFileStore keeps one JSON document per key under the metadata
directory (``METADATA_PATH``, default ``data/metadata``) and falls back
to the system temp dir, loudly, when that directory is not writable.
"""

from src.providers.storage.json_file_store import JsonFileStore

__all__ = ["JsonFileStore"]
