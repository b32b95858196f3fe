"""Batch orchestrator for the document ingestion pipeline.

Pipeline stages per file: **extract -> chunk -> attribute -> embed**,
followed once per run by **store -> commit**.

The :class:`IngestionService` implements the **Orchestrator pattern**: it
coordinates the source processors, the chunker, the embedding provider,
the processing ledger and the retrieval façade without any of them
knowing about each other.

For every enabled document source (in source-table order):

    1. list files matching the type's extensions (recursively if configured)
    2. skip files the ledger has already processed
    3. extract text in a worker thread (extractors are blocking)
    4. pack the text into chunks and attribute pages for paginated types
    5. embed the chunks in document mode with bounded concurrency
    6. mark the file processed, so a broken file is not retried forever

Per-file ProcessingMetadata (success or failure) is written together with
the processed-files set when the run commits.  A run whose store step
fails deletes the points it already wrote and commits nothing.

A failure inside steps 3-5 is caught, logged and recorded for that file
only; the loop moves on.  Vector-store failures are not per-file and are
allowed to stop the run.

All dependencies are injected via constructor, so providers can be
swapped without changing this class.
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

import structlog

from src.interfaces.embedding_provider import EmbeddingMode
from src.models.ledger import IngestionReport, ProcessingMetadata
from src.models.rag import DocumentChunk, ExtractedDocument
from src.models.sources import DocumentSourceConfig
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.page_attribution import PageAttributor
from src.services.ingestion.processing_ledger import ProcessingLedger
from src.utils.concurrency import first_exception, throttled_gather
from src.utils.errors import ConfigurationError, VectorStoreError

if TYPE_CHECKING:
    from src.interfaces.document_extractor import IDocumentExtractor
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.services.retrieval_service import RetrievalService

logger = structlog.get_logger(logger_name=__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class IngestionService:
    """Drives every configured document source through extraction and embedding.

    Parameters
    ----------
    sources:
        Document-source table, processed in order.
    extractors:
        One extractor per document type, keyed by type tag.
    chunker:
        Sentence-aware chunk packer.
    embedding_provider:
        Provider used for document-mode embeddings.
    ledger:
        Processing ledger; this service is its only writer.
    retrieval:
        Storage boundary used by :meth:`ingest` and :meth:`forget_document`.
        Not needed for :meth:`process_all`.
    overlap_chars:
        Characters carried from one chunk into the next.
    embedding_concurrency:
        Maximum embedding requests in flight for one file.
    """

    def __init__(
        self,
        sources: Sequence[DocumentSourceConfig],
        extractors: dict[str, IDocumentExtractor],
        chunker: TextChunker,
        embedding_provider: IEmbeddingProvider,
        ledger: ProcessingLedger,
        retrieval: RetrievalService | None = None,
        overlap_chars: int = 0,
        embedding_concurrency: int = 4,
    ) -> None:
        self._sources = list(sources)
        self._extractors = extractors
        self._chunker = chunker
        self._embedding_provider = embedding_provider
        self._ledger = ledger
        self._retrieval = retrieval
        self._overlap_chars = overlap_chars
        self._embedding_concurrency = max(1, embedding_concurrency)
        self._run_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process_all(self) -> list[DocumentChunk]:
        """Process every new file and persist the ledger.

        Returns
        -------
        list[DocumentChunk]
            Embedded chunks for all files touched in this run, in
            processing order.  Empty when nothing new was found.
        """
        async with self._run_lock:
            start = time.monotonic()
            chunks, touched = await self._process_sources()
            self._commit(touched, _elapsed_ms(start))
            return chunks

    async def ingest(self) -> IngestionReport:
        """Process new files, store their chunks, then commit the ledger.

        The collection is created (or confirmed) first, so an unreachable
        vector store fails the run before any file is touched.  If storing
        fails, the points already written by this run are deleted again and
        the ledger is left as it was, so the files are picked up cleanly on
        the next run.  Concurrent calls are serialized.

        Raises
        ------
        ConfigurationError
            If the service was built without a retrieval façade.
        VectorStoreError
            If the collection cannot be set up or a batch cannot be stored.
        """
        if self._retrieval is None:
            raise ConfigurationError(
                message="ingest() needs a RetrievalService to store chunks",
                provider_name="ingestion",
            )

        async with self._run_lock:
            start = time.monotonic()
            collection_created = await self._retrieval.ensure_collection()
            chunks, touched = await self._process_sources()

            stored = 0
            if chunks:
                point_ids = self._ledger.allocate_point_ids(len(chunks))
                try:
                    stored = await self._retrieval.store_documents(chunks, point_ids)
                except VectorStoreError as exc:
                    logger.error(
                        "batch_store_failed",
                        chunks=len(chunks),
                        files=len(touched),
                        error=str(exc),
                    )
                    await self._purge_partial_store(self._retrieval, point_ids)
                    self._ledger.discard_pending()
                    raise

            duration_ms = _elapsed_ms(start)
            self._commit(touched, duration_ms)
            return IngestionReport(
                documents_processed=len(touched),
                successful_documents=sum(1 for m in touched if m.success),
                failed_documents=sum(1 for m in touched if not m.success),
                chunks_created=len(chunks),
                points_stored=stored,
                collection_created=collection_created,
                total_duration_ms=duration_ms,
                documents=touched,
            )

    async def forget_document(self, file_name: str, purge_vectors: bool = True) -> bool:
        """Drop *file_name*'s points from the store and the file from the ledger.

        Points are purged first; if that fails the ledger keeps the file,
        so it is not re-ingested next to its old points.  The next batch
        run will process the file again.

        Returns
        -------
        bool
            ``True`` if the ledger knew about the file.
        """
        async with self._run_lock:
            if purge_vectors and self._retrieval is not None:
                await self._retrieval.delete_document(Path(file_name).stem)
            return self._ledger.delete_file_metadata(file_name)

    @staticmethod
    async def _purge_partial_store(
        retrieval: RetrievalService, point_ids: Sequence[int]
    ) -> None:
        """Delete whatever part of *point_ids* reached the store before a failure."""
        try:
            await retrieval.delete_points(point_ids)
        except VectorStoreError as exc:
            logger.error(
                "partial_store_purge_failed",
                first_point_id=point_ids[0] if point_ids else None,
                points=len(point_ids),
                error=str(exc),
            )
        else:
            logger.info("partial_store_purged", points=len(point_ids))

    # ------------------------------------------------------------------
    # Batch loop
    # ------------------------------------------------------------------

    async def _process_sources(self) -> tuple[list[DocumentChunk], list[ProcessingMetadata]]:
        chunks: list[DocumentChunk] = []
        touched: list[ProcessingMetadata] = []

        for source in self._sources:
            if not source.enabled:
                logger.debug("source_disabled", document_type=source.document_type)
                continue
            extractor = self._extractors.get(source.document_type)
            if extractor is None:
                logger.warning("no_extractor_for_type", document_type=source.document_type)
                continue
            directory = Path(source.path)
            if not directory.is_dir():
                logger.info(
                    "source_directory_missing",
                    document_type=source.document_type,
                    path=source.path,
                )
                continue

            for file_path in self._list_files(directory, source):
                file_name = file_path.name
                if self._ledger.is_processed(file_name):
                    logger.info("skip_already_processed", file_name=file_name)
                    continue

                file_chunks, metadata = await self._process_file(file_path, source, extractor)
                self._ledger.mark_processed(file_name)
                touched.append(metadata)
                chunks.extend(file_chunks)

        return chunks, touched

    async def _process_file(
        self,
        file_path: Path,
        source: DocumentSourceConfig,
        extractor: IDocumentExtractor,
    ) -> tuple[list[DocumentChunk], ProcessingMetadata]:
        start = time.monotonic()
        document_label = source.display_name or source.document_type
        try:
            extracted = await asyncio.to_thread(extractor.extract, str(file_path))
            texts = self._chunker.pack(extracted.text, source.max_chunk_chars, self._overlap_chars)
            chunks = await self._embed_chunks(file_path.stem, texts, extracted, source)
        except Exception as exc:
            duration_ms = _elapsed_ms(start)
            logger.error(
                "file_processing_failed",
                file_name=file_path.name,
                document_type=source.document_type,
                error=str(exc),
            )
            return [], ProcessingMetadata(
                file_name=file_path.name,
                document_type=document_label,
                chunks_processed=0,
                processing_duration_ms=duration_ms,
                success=False,
                error_message=str(exc) or type(exc).__name__,
            )

        duration_ms = _elapsed_ms(start)
        if not chunks:
            logger.warning("file_produced_no_chunks", file_name=file_path.name)
        logger.info(
            "file_processed",
            file_name=file_path.name,
            document_type=source.document_type,
            chunks=len(chunks),
            duration_ms=duration_ms,
        )
        return chunks, ProcessingMetadata(
            file_name=file_path.name,
            document_type=document_label,
            chunks_processed=len(chunks),
            processing_duration_ms=duration_ms,
            success=True,
        )

    async def _embed_chunks(
        self,
        source_name: str,
        texts: list[str],
        extracted: ExtractedDocument,
        source: DocumentSourceConfig,
    ) -> list[DocumentChunk]:
        """Embed *texts* and wrap them as :class:`DocumentChunk` objects."""
        if not texts:
            return []

        # Page attribution scans the whole document; keep it off the event loop.
        tags = await asyncio.to_thread(self._metadata_tags, source, extracted, texts)

        results = await throttled_gather(
            [self._embedding_provider.embed(text, EmbeddingMode.DOCUMENT) for text in texts],
            limit=self._embedding_concurrency,
        )
        error = first_exception(results)
        if error is not None:
            raise error

        chunks = [
            DocumentChunk(
                text=text,
                embedding=vector,  # type: ignore[arg-type]
                source=source_name,
                metadata=metadata,
                page_estimated=page_estimated,
            )
            for text, vector, (metadata, page_estimated) in zip(texts, results, tags)
        ]

        estimated = sum(1 for _, page_estimated in tags if page_estimated)
        if estimated:
            logger.warning(
                "page_attribution_estimated",
                source=source_name,
                estimated_chunks=estimated,
                total_chunks=len(chunks),
            )
        return chunks

    @staticmethod
    def _metadata_tags(
        source: DocumentSourceConfig,
        extracted: ExtractedDocument,
        texts: list[str],
    ) -> list[tuple[str, bool]]:
        """Return ``(metadata tag, page estimated)`` for every chunk text."""
        if source.paginated and extracted.page_breaks:
            attributor = PageAttributor(
                extracted.page_breaks, extracted.text, label_prefix=source.location_prefix
            )
            tags: list[tuple[str, bool]] = []
            for index, text in enumerate(texts):
                attribution = attributor.attribute(text, index, len(texts))
                tags.append((f"{source.document_type}|{attribution.label}", attribution.estimated))
            return tags
        if extracted.location_info:
            return [(f"{source.document_type}|{extracted.location_info}", False)] * len(texts)
        return [(source.document_type, False)] * len(texts)

    @staticmethod
    def _list_files(directory: Path, source: DocumentSourceConfig) -> list[Path]:
        candidates = directory.rglob("*") if source.recursive else directory.glob("*")
        return sorted(p for p in candidates if p.is_file() and source.matches(p.name))

    # ------------------------------------------------------------------
    # Ledger commit
    # ------------------------------------------------------------------

    def _commit(self, touched: list[ProcessingMetadata], duration_ms: int) -> None:
        self._ledger.record_files_metadata(touched)
        self._ledger.save_processed_files()
        run = self._ledger.record_run_snapshot(touched, duration_ms)
        logger.info(
            "batch_run_complete",
            documents=run.documents_processed,
            failed=sum(1 for m in touched if not m.success),
            chunks=run.total_chunks,
            duration_ms=run.total_duration_ms,
        )
