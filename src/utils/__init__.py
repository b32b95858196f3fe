"""Shared utilities for the knowledge assistant.

- **errors** -- exception hierarchy rooted at KnowledgeAssistantError; each
  boundary (extraction, embedding, ledger, vector store, LLM) raises its
  own subclass.
- **concurrency** -- semaphore-throttled gather for embedding fan-out.
- **logging** -- structlog setup with console/JSON renderers.
- **text_normalizer** -- typography and whitespace cleanup applied to every
  extractor's output.
"""

from src.utils.concurrency import first_exception, throttled_gather
from src.utils.errors import (
    ConfigurationError,
    EmbeddingError,
    ExtractionError,
    KnowledgeAssistantError,
    LedgerError,
    LLMError,
    RetrievalError,
    VectorStoreError,
)
from src.utils.logging import configure_logging, get_logger
from src.utils.text_normalizer import clean_extracted_text, collapse_whitespace

__all__ = [
    "ConfigurationError",
    "EmbeddingError",
    "ExtractionError",
    "KnowledgeAssistantError",
    "LLMError",
    "LedgerError",
    "RetrievalError",
    "VectorStoreError",
    "clean_extracted_text",
    "collapse_whitespace",
    "configure_logging",
    "first_exception",
    "get_logger",
    "throttled_gather",
]
