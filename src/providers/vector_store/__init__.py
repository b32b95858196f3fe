"""Vector store provider implementations.

Qdrant is the sole vector store implementation, reached over its REST API
with httpx.  Points carry the chunk text and its origin in the payload
(``text``, ``source``, ``type``, ``page_info``, ``page_estimated``).

To swap Qdrant for another vector database, create a new class
implementing IVectorStoreProvider and wire it in main.py.
"""

from src.providers.vector_store.qdrant_provider import QdrantVectorStoreProvider

__all__ = ["QdrantVectorStoreProvider"]
