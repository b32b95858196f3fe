"""Pydantic request/response schemas for the knowledge-assistant API.

Request schemas end with ``Request``, response schemas with ``Response``.
Ledger and search models are reused directly where their shape is already
the public contract.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from src.models.ledger import ProcessingMetadata
from src.models.rag import SearchResult


class HealthResponse(BaseModel):
    """Application health check response.

    ``status`` is ``"degraded"`` when the ledger fell back to temporary
    storage and will not survive a restart.
    """

    status: str
    version: str
    collection: str
    ledger_location: str
    ledger_persistent: bool
    providers: dict[str, str] = Field(default_factory=dict)


class ProcessResponse(BaseModel):
    """Outcome of one ingestion run."""

    documents_processed: int
    successful_documents: int
    failed_documents: int
    chunks_created: int
    points_stored: int
    collection_created: bool
    total_duration_ms: int
    documents: list[ProcessingMetadata] = Field(default_factory=list)


class ProcessedFilesResponse(BaseModel):
    """Base names of every file the ledger has marked processed."""

    files: list[str] = Field(default_factory=list)
    total: int = 0


class ForgetDocumentResponse(BaseModel):
    file_name: str
    was_known: bool
    vectors_purged: bool


class SearchRequest(BaseModel):
    """Free-text similarity search over stored chunks."""

    query: str = Field(..., min_length=1, max_length=1000)
    limit: int = Field(default=5, ge=1, le=50)


class SearchResponse(BaseModel):
    query: str
    results: list[SearchResult] = Field(default_factory=list)


class AskRequest(BaseModel):
    """Question answered from stored knowledge."""

    question: str = Field(..., min_length=1, max_length=1000)
    limit: int = Field(default=5, ge=1, le=20)


class AskResponse(BaseModel):
    question: str
    answer: str
    sources: list[SearchResult] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
