"""Retrieval façade over the embedding provider and the vector store.

Two responsibilities meet here because they share the collection and the
payload layout:

- **Storage boundary** -- :meth:`RetrievalService.store_documents` takes
  the embedded chunks produced by the batch orchestrator and upserts them
  in bounded batches.  Once the call returns, the vector store owns them.
- **Search** -- :meth:`RetrievalService.search` embeds a query in query
  mode, asks the store for the nearest chunks and decorates them with a
  human-readable source label.

A failed search raises :class:`RetrievalError`.  An empty list always
means "nothing relevant stored", never "the store was unreachable".
"""

from __future__ import annotations

from typing import Sequence

import structlog

from src.interfaces.embedding_provider import EmbeddingMode, IEmbeddingProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import DocumentChunk, ScoredPoint, SearchResult, VectorPoint
from src.utils.errors import EmbeddingError, RetrievalError, VectorStoreError

logger = structlog.get_logger(logger_name=__name__)


def format_source_label(
    source: str,
    document_type: str,
    page_info: str = "",
    page_estimated: bool = False,
) -> str:
    """Return the display label for a stored chunk.

    ``"my-talk"`` from a transcript becomes ``"my talk Transcript"``;
    ``"design_notes"`` from a PDF on page 3 becomes
    ``"design notes.pdf (Page 3)"``.  Estimated pages are prefixed with
    ``approx.``.
    """
    location = page_info
    if location and page_estimated:
        location = f"approx. {location}"

    if document_type == "transcript":
        return f"{source.replace('-', ' ')} Transcript"
    if document_type == "pdf":
        label = source.replace("-", " ").replace("_", " ") + ".pdf"
        return f"{label} ({location})" if location else label
    if document_type == "epub":
        label = f"{source}.epub"
        return f"{label} ({location})" if location else label
    if document_type == "markdown":
        return f"{source}.md"
    if document_type == "image":
        return f"{source} (OCR)"
    return source


class RetrievalService:
    """Stores embedded chunks and answers similarity searches.

    Parameters
    ----------
    embedding_provider:
        Provider used for query-mode embeddings.
    vector_store:
        Backend holding the collection.
    collection_name:
        Name of the collection shared by ingestion and search.
    vector_size:
        Dimension of stored vectors; used when creating the collection.
    distance:
        Distance metric for a newly created collection.
    upsert_batch_size:
        Maximum number of points per upsert request.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        collection_name: str = "knowledge",
        vector_size: int = 768,
        distance: str = "Cosine",
        upsert_batch_size: int = 100,
    ) -> None:
        if upsert_batch_size < 1:
            raise ValueError(f"upsert_batch_size must be >= 1, got {upsert_batch_size}")
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._collection_name = collection_name
        self._vector_size = vector_size
        self._distance = distance
        self._batch_size = upsert_batch_size

    @property
    def collection_name(self) -> str:
        return self._collection_name

    # ------------------------------------------------------------------
    # Storage boundary
    # ------------------------------------------------------------------

    async def ensure_collection(self) -> bool:
        """Create the collection if it does not exist yet.

        Returns
        -------
        bool
            ``True`` if the collection was created by this call.

        Raises
        ------
        VectorStoreError
            If the store cannot be reached or refuses the creation.
        """
        if await self._vector_store.collection_exists(self._collection_name):
            return False
        await self._vector_store.create_collection(
            self._collection_name, self._vector_size, self._distance
        )
        return True

    async def store_documents(
        self, chunks: Sequence[DocumentChunk], point_ids: Sequence[int]
    ) -> int:
        """Upsert *chunks* as points with the given IDs.

        Parameters
        ----------
        chunks:
            Embedded chunks from the batch orchestrator.
        point_ids:
            One unique ID per chunk, usually from
            :meth:`ProcessingLedger.allocate_point_ids`.

        Returns
        -------
        int
            Number of points stored.

        Raises
        ------
        VectorStoreError
            On the first failed batch.  Earlier batches stay stored.
        """
        if len(point_ids) != len(chunks):
            raise ValueError(
                f"Got {len(point_ids)} point IDs for {len(chunks)} chunks"
            )
        if not chunks:
            return 0

        await self.ensure_collection()

        points = [self._to_point(chunk, point_id) for chunk, point_id in zip(chunks, point_ids)]
        for start in range(0, len(points), self._batch_size):
            batch = points[start : start + self._batch_size]
            await self._vector_store.upsert_points(self._collection_name, batch)
            logger.debug(
                "points_batch_stored",
                collection=self._collection_name,
                batch_start=start,
                batch_size=len(batch),
            )

        logger.info("documents_stored", collection=self._collection_name, points=len(points))
        return len(points)

    async def delete_document(self, source: str) -> None:
        """Delete every stored chunk whose ``source`` payload equals *source*."""
        await self._vector_store.delete_by_filter(self._collection_name, "source", source)

    async def delete_points(self, point_ids: Sequence[int]) -> None:
        """Delete the points with the given IDs from the collection."""
        await self._vector_store.delete_points(self._collection_name, point_ids)

    async def count_points(self) -> int:
        if not await self._vector_store.collection_exists(self._collection_name):
            return 0
        return await self._vector_store.count_points(self._collection_name)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(self, query: str, limit: int = 5) -> list[SearchResult]:
        """Return the *limit* most relevant chunks for *query*, best first.

        Raises
        ------
        ValueError
            If *query* is blank or *limit* is below 1.
        RetrievalError
            If the query cannot be embedded or the store query fails.
        """
        if not query or not query.strip():
            raise ValueError("query must not be empty")
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")

        try:
            vector = await self._embedding_provider.embed(query, EmbeddingMode.QUERY)
            hits = await self._vector_store.query(self._collection_name, vector, limit)
        except (EmbeddingError, VectorStoreError) as exc:
            logger.error("search_failed", query_chars=len(query), error=str(exc))
            raise RetrievalError(
                message=f"Search failed: {exc}",
                provider_name=exc.provider_name,
            ) from exc

        results = [self._to_result(hit) for hit in hits]
        results.sort(key=lambda r: r.score, reverse=True)
        logger.info("search_complete", results=len(results), limit=limit)
        return results

    # ------------------------------------------------------------------
    # Mapping helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _to_point(chunk: DocumentChunk, point_id: int) -> VectorPoint:
        return VectorPoint(
            id=point_id,
            vector=chunk.embedding,
            payload={
                "text": chunk.text,
                "source": chunk.source,
                "type": chunk.document_type,
                "page_info": chunk.page_info,
                "page_estimated": chunk.page_estimated,
            },
        )

    @staticmethod
    def _to_result(hit: ScoredPoint) -> SearchResult:
        payload = hit.payload
        source = str(payload.get("source") or "")
        document_type = str(payload.get("type") or "")
        page_info = str(payload.get("page_info") or "")
        page_estimated = bool(payload.get("page_estimated", False))
        return SearchResult(
            content=str(payload.get("text") or ""),
            source=format_source_label(source, document_type, page_info, page_estimated),
            raw_source=source,
            score=hit.score,
            type=document_type,
            page_info=page_info,
            page_estimated=page_estimated,
        )
