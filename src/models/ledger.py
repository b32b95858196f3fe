"""Processing-ledger data models.

The ledger remembers which files have been ingested and what happened to
each of them.  These models are what gets written to the ledger's JSON
files, so field names double as the persisted format.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProcessingMetadata(BaseModel):
    """Audit record for one file-processing attempt.

    At most one entry per ``file_name`` is retained by the ledger; a new
    attempt replaces the previous record.
    """

    model_config = ConfigDict(frozen=True)

    file_name: str = Field(description="Base name of the processed file.")
    document_type: str = Field(
        description="Display name of the document source, e.g. 'Transcript' or 'PDF'."
    )
    chunks_processed: int = Field(default=0, ge=0)
    processing_duration_ms: int = Field(default=0, ge=0)
    processed_at: datetime = Field(default_factory=_utc_now)
    success: bool = True
    error_message: str | None = None


class LastProcessingRun(BaseModel):
    """Snapshot of the most recent batch invocation; overwritten every run."""

    model_config = ConfigDict(frozen=True)

    processed_at: datetime = Field(default_factory=_utc_now)
    total_duration_ms: int = Field(default=0, ge=0)
    documents_processed: int = Field(default=0, ge=0)
    total_chunks: int = Field(default=0, ge=0)
    documents: list[ProcessingMetadata] = Field(default_factory=list)


class ProcessingSummary(BaseModel):
    """Aggregate view over every stored metadata record plus the last run."""

    model_config = ConfigDict(frozen=True)

    total_documents: int = 0
    total_chunks: int = 0
    successful_documents: int = 0
    failed_documents: int = 0
    last_run_at: datetime | None = None
    last_run_duration_ms: int = 0
    last_run_documents: int = 0
    last_run_chunks: int = 0
    all_documents: list[ProcessingMetadata] = Field(default_factory=list)
    last_run_details: list[ProcessingMetadata] = Field(default_factory=list)
    storage_location: str = ""
    storage_persistent: bool = True


class IngestionReport(BaseModel):
    """Outcome of a full ingest: process new files, store their chunks, commit."""

    model_config = ConfigDict(frozen=True)

    documents_processed: int = 0
    successful_documents: int = 0
    failed_documents: int = 0
    chunks_created: int = 0
    points_stored: int = 0
    collection_created: bool = False
    total_duration_ms: int = 0
    documents: list[ProcessingMetadata] = Field(default_factory=list)
