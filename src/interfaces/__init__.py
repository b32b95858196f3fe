"""Abstract interfaces for every external service and storage backend.

Services depend only on these ABCs; concrete adapters live in
``src/providers/`` (and ``src/services/ingestion/source_processors/`` for
extractors) and are wired together in ``src/main.py`` and the CLI.

CONCRETE PROVIDER MAP:
    Interface               ->  Concrete implementations
    ----------------------------------------------------------------
    IEmbeddingProvider      ->  OpenAICompatibleEmbeddingProvider,
                                CachingEmbeddingProvider (decorator)
    IVectorStoreProvider    ->  QdrantVectorStoreProvider
    ILLMProvider            ->  OpenAILLMProvider
    ICacheProvider          ->  MemoryCacheProvider
    IKeyValueStore          ->  JsonFileStore
    IDocumentExtractor      ->  TextProcessor, PDFProcessor, MarkdownProcessor,
                                ImageProcessor, EmailProcessor, HTMLProcessor,
                                EPUBProcessor
"""

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.document_extractor import IDocumentExtractor
from src.interfaces.embedding_provider import EmbeddingMode, IEmbeddingProvider
from src.interfaces.key_value_store import IKeyValueStore
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "EmbeddingMode",
    "ICacheProvider",
    "IDocumentExtractor",
    "IEmbeddingProvider",
    "IKeyValueStore",
    "ILLMProvider",
    "IVectorStoreProvider",
]
