"""FastAPI routes for the knowledge assistant.

Services are resolved from ``app.state`` (populated at startup by
``main.py``) through ``Depends`` helpers and ``Annotated`` aliases.

# Endpoint                               Method  Description
# ----------------------------------------------------------------------
# /api/v1/health                         GET     Health + ledger storage
# /api/v1/documents/process              POST    Ingest new files
# /api/v1/documents/summary              GET     Ledger summary
# /api/v1/documents/processed            GET     Processed file names
# /api/v1/documents/{file_name}          DELETE  Forget a file
# /api/v1/search                         POST    Similarity search
# /api/v1/ask                            POST    Grounded answer
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from src.api.schemas import (
    AskRequest,
    AskResponse,
    ForgetDocumentResponse,
    HealthResponse,
    ProcessedFilesResponse,
    ProcessResponse,
    SearchRequest,
    SearchResponse,
)
from src.models.ledger import ProcessingSummary
from src.services.answer_service import AnswerService
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.processing_ledger import ProcessingLedger
from src.services.retrieval_service import RetrievalService

logger = structlog.get_logger(logger_name=__name__)

router = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def _get_retrieval_service(request: Request) -> RetrievalService:
    return request.app.state.retrieval_service


def _get_answer_service(request: Request) -> AnswerService:
    return request.app.state.answer_service


def _get_ledger(request: Request) -> ProcessingLedger:
    return request.app.state.ledger


IngestionDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
RetrievalDep = Annotated[RetrievalService, Depends(_get_retrieval_service)]
AnswerDep = Annotated[AnswerService, Depends(_get_answer_service)]
LedgerDep = Annotated[ProcessingLedger, Depends(_get_ledger)]


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def health(request: Request, ledger: LedgerDep, retrieval: RetrievalDep) -> HealthResponse:
    """Report configuration and ledger storage; does not call upstream services."""
    state = request.app.state
    providers = {
        "embedding": state.embedding_provider.get_provider_name(),
        "vector_store": state.vector_store.get_provider_name(),
        "llm": state.llm_provider.get_provider_name(),
    }
    return HealthResponse(
        status="ok" if ledger.is_persistent else "degraded",
        version=request.app.version,
        collection=retrieval.collection_name,
        ledger_location=ledger.storage_location,
        ledger_persistent=ledger.is_persistent,
        providers=providers,
    )


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post("/documents/process", response_model=ProcessResponse)
async def process_documents(service: IngestionDep) -> ProcessResponse:
    """Extract, embed and store every file not yet in the ledger.

    Overlapping requests are queued behind the service's run lock.
    """
    report = await service.ingest()
    return ProcessResponse(**report.model_dump())


@router.get("/documents/summary", response_model=ProcessingSummary)
async def documents_summary(ledger: LedgerDep) -> ProcessingSummary:
    return ledger.summary()


@router.get("/documents/processed", response_model=ProcessedFilesResponse)
async def processed_documents(ledger: LedgerDep) -> ProcessedFilesResponse:
    files = ledger.processed_files()
    return ProcessedFilesResponse(files=files, total=len(files))


@router.delete("/documents/{file_name}", response_model=ForgetDocumentResponse)
async def forget_document(
    file_name: str,
    service: IngestionDep,
    purge_vectors: Annotated[bool, Query()] = True,
) -> ForgetDocumentResponse:
    """Forget *file_name* so the next run processes it again."""
    was_known = await service.forget_document(file_name, purge_vectors=purge_vectors)
    if not was_known and not purge_vectors:
        raise HTTPException(status_code=404, detail=f"Unknown document: {file_name}")
    logger.info("document_forgotten", file_name=file_name, was_known=was_known)
    return ForgetDocumentResponse(
        file_name=file_name,
        was_known=was_known,
        vectors_purged=purge_vectors,
    )


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------


@router.post("/search", response_model=SearchResponse)
async def search(body: SearchRequest, retrieval: RetrievalDep) -> SearchResponse:
    try:
        results = await retrieval.search(body.query, body.limit)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return SearchResponse(query=body.query, results=results)


@router.post("/ask", response_model=AskResponse)
async def ask(body: AskRequest, answers: AnswerDep) -> AskResponse:
    try:
        answer = await answers.ask(body.question, body.limit)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return AskResponse(question=answer.query, answer=answer.answer, sources=answer.sources)
