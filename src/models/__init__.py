"""Knowledge-assistant domain models -- re-exports all public model classes.

Other parts of the codebase can import directly from ``src.models``
(e.g. ``from src.models import DocumentChunk``) instead of the individual
submodules.

The models are organized across three submodules by domain concern:
    - rag.py      -- extracted documents, chunks, vector points, search results
    - ledger.py   -- processing metadata, run snapshots and summaries
    - sources.py  -- per-document-type source configuration

If you add a new model class, remember to add it to ``__all__`` too.
"""

from __future__ import annotations

# --- Ledger models: what was ingested, when, and with what outcome. ---
from src.models.ledger import (
    IngestionReport,
    LastProcessingRun,
    ProcessingMetadata,
    ProcessingSummary,
)
# --- RAG models: extraction output, chunks, vector-store points and the
# results handed back to search callers. ---
from src.models.rag import (
    Answer,
    DocumentChunk,
    ExtractedDocument,
    PageAttribution,
    PageBreak,
    ScoredPoint,
    SearchResult,
    VectorPoint,
)
# --- Source configuration: where each document type lives and how it is chunked. ---
from src.models.sources import DocumentSourceConfig

__all__ = [
    # ledger
    "IngestionReport",
    "LastProcessingRun",
    "ProcessingMetadata",
    "ProcessingSummary",
    # rag
    "Answer",
    "DocumentChunk",
    "ExtractedDocument",
    "PageAttribution",
    "PageBreak",
    "ScoredPoint",
    "SearchResult",
    "VectorPoint",
    # sources
    "DocumentSourceConfig",
]
