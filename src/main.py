"""Knowledge-assistant FastAPI application entry point.

Wires providers and services together, stores them on ``app.state`` and
mounts the REST routes.  :func:`build_components` is shared with the CLI
so both surfaces talk to the same collection with the same embedding
model.

Run with ``python -m src.main`` or ``uvicorn src.main:app``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_document_sources
from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.embedding import (
    CachingEmbeddingProvider,
    OpenAICompatibleEmbeddingProvider,
)
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.storage.json_file_store import JsonFileStore
from src.providers.vector_store.qdrant_provider import QdrantVectorStoreProvider
from src.services.answer_service import AnswerService
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.processing_ledger import ProcessingLedger
from src.services.ingestion.source_processors import build_extractors
from src.services.retrieval_service import RetrievalService
from src.utils.logging import configure_logging, get_logger

APP_VERSION = "0.1.0"

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Dependency assembly
# ---------------------------------------------------------------------------


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    provider: IEmbeddingProvider = OpenAICompatibleEmbeddingProvider(settings=app_settings)
    if app_settings.embedding_cache_enabled:
        cache = MemoryCacheProvider(
            max_size=app_settings.embedding_cache_size,
            ttl=app_settings.embedding_cache_ttl,
        )
        provider = CachingEmbeddingProvider(inner=provider, cache=cache)
    return provider


def build_components(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service for the app and the CLI.

    Returns a flat dict of named components; the API copies it onto
    ``app.state``.  Nothing here talks to the network.
    """
    embedding_provider = _build_embedding_provider(app_settings)
    vector_store = QdrantVectorStoreProvider(
        base_url=app_settings.qdrant_base_url,
        api_key=app_settings.qdrant_api_key,
        timeout=app_settings.request_timeout,
    )
    llm = OpenAILLMProvider(settings=app_settings)
    ledger = ProcessingLedger(JsonFileStore(app_settings.metadata_path))

    retrieval_service = RetrievalService(
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        collection_name=app_settings.qdrant_collection,
        vector_size=app_settings.embedding_dimension,
        distance=app_settings.vector_distance,
        upsert_batch_size=app_settings.upsert_batch_size,
    )
    ingestion_service = IngestionService(
        sources=load_document_sources(app_settings),
        extractors=build_extractors(),
        chunker=TextChunker(),
        embedding_provider=embedding_provider,
        ledger=ledger,
        retrieval=retrieval_service,
        overlap_chars=app_settings.chunk_overlap,
        embedding_concurrency=app_settings.embedding_concurrency,
    )
    answer_service = AnswerService(
        retrieval=retrieval_service,
        llm=llm,
        temperature=app_settings.llm_temperature,
        max_tokens=app_settings.llm_max_tokens,
        context_results=app_settings.search_limit,
    )

    return {
        "settings": app_settings,
        "embedding_provider": embedding_provider,
        "vector_store": vector_store,
        "llm_provider": llm,
        "ledger": ledger,
        "retrieval_service": retrieval_service,
        "ingestion_service": ingestion_service,
        "answer_service": answer_service,
    }


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(
    app_settings: Settings | None = None,
    components: dict[str, Any] | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Parameters
    ----------
    app_settings:
        Settings to build components from at startup.  Read from the
        environment when omitted.
    components:
        Prebuilt components (tests inject fakes here).  When given, no
        providers are constructed and nothing is closed on shutdown.
    """

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        owned = components is None
        if owned:
            resolved = app_settings or Settings()
            configure_logging(
                log_level=resolved.log_level,
                json_output=(resolved.app_env == "production"),
            )
            state = build_components(resolved)
        else:
            state = components

        for key, value in state.items():
            setattr(application.state, key, value)

        ledger: ProcessingLedger = state["ledger"]
        _logger.info(
            "app_startup",
            version=APP_VERSION,
            collection=state["retrieval_service"].collection_name,
            ledger_location=ledger.storage_location,
            ledger_persistent=ledger.is_persistent,
        )

        yield

        if owned:
            await state["vector_store"].close()
        _logger.info("app_shutdown")

    application = FastAPI(
        title="Knowledge Assistant API",
        version=APP_VERSION,
        description=(
            "Ingest local documents into a vector store and answer questions "
            "grounded on the stored knowledge."
        ),
        lifespan=_lifespan,
    )

    # Last added runs first: RequestLogging wraps ErrorHandling.
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


app = create_app()


def main() -> None:
    settings = Settings()
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )


if __name__ == "__main__":
    main()
