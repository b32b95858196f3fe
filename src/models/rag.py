"""RAG pipeline data models for the knowledge assistant.

Defines Pydantic v2 models for extracted documents, document chunks,
vector-store points and retrieval results.  All models use frozen config
to enforce immutability.

RAG (Retrieval-Augmented Generation) overview:
    1. EXTRACTION: source files (transcripts, PDFs, EPUBs, ...) are turned
       into plain text, with page breakpoints for paginated formats.
    2. CHUNKING: the text is packed into bounded, sentence-aligned chunks.
    3. EMBEDDING: each chunk is converted into a fixed-length vector.
    4. STORAGE: chunks + vectors become points in a Qdrant collection.
    5. RETRIEVAL: a query vector is matched against the collection and the
       closest chunks ground the LLM answer.

    See src/services/ingestion/ for steps 1-3 and
    src/services/retrieval_service.py for steps 4-5.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Extraction output
# ---------------------------------------------------------------------------
class PageBreak(BaseModel):
    """Character offset at which a page (or section) starts in the full text."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(ge=1, description="1-based page or section number.")
    offset: int = Field(ge=0, description="Offset of the first character of the page.")


class ExtractedDocument(BaseModel):
    """Plain text produced by an extractor, plus breakpoints for paginated formats."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(default="", description="Cleaned plain text of the whole document.")
    page_breaks: list[PageBreak] = Field(
        default_factory=list,
        description="Ordered page breakpoints; empty for non-paginated formats.",
    )
    location_info: str | None = Field(
        default=None,
        description="Fixed location tag applied to every chunk (e.g. 'ocr' for images).",
    )


class PageAttribution(BaseModel):
    """Result of mapping a chunk back to the page it came from.

    ``estimated`` is True when the chunk text could not be located in the
    document and the page was derived proportionally from the chunk's
    position.  Estimated pages are approximate and are rendered as such.
    """

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(ge=1)
    label: str
    estimated: bool = False


# ---------------------------------------------------------------------------
# DocumentChunk: the fundamental unit of the knowledge base.
# ---------------------------------------------------------------------------
class DocumentChunk(BaseModel):
    """A chunk of text from a source document, embedded and ready for storage.

    ``metadata`` is the origin tag: the document type optionally followed by
    ``|`` and location info, e.g. ``"transcript"`` or ``"pdf|Page 12"``.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(description="The chunk's textual content.")
    embedding: list[float] = Field(description="Document-mode embedding vector.")
    source: str = Field(description="Logical document identifier (filename stem).")
    metadata: str = Field(description="Origin tag, optionally suffixed with location info.")
    page_estimated: bool = Field(
        default=False,
        description="True when the page in the metadata tag is a proportional estimate.",
    )

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("chunk text must not be empty or whitespace-only")
        return value

    @property
    def document_type(self) -> str:
        return self.metadata.split("|", 1)[0]

    @property
    def page_info(self) -> str:
        parts = self.metadata.split("|", 1)
        return parts[1] if len(parts) > 1 else ""


# ---------------------------------------------------------------------------
# Vector-store wire models
# ---------------------------------------------------------------------------
class VectorPoint(BaseModel):
    """A point to upsert into the vector store."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=0)
    vector: list[float]
    payload: dict[str, Any] = Field(default_factory=dict)


class ScoredPoint(BaseModel):
    """A nearest-neighbour hit returned by the vector store."""

    model_config = ConfigDict(frozen=True)

    id: int | str | None = None
    score: float = 0.0
    payload: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# SearchResult: a chunk plus retrieval context.
# ---------------------------------------------------------------------------
class SearchResult(BaseModel):
    """A retrieved chunk decorated for display.

    ``source`` is the human-readable label (``"Foo Transcript"``,
    ``"Foo.pdf (Page 3)"``); ``raw_source`` keeps the stored stem.
    """

    model_config = ConfigDict(frozen=True)

    content: str
    source: str
    raw_source: str = ""
    score: float
    type: str = ""
    page_info: str = ""
    page_estimated: bool = False


class Answer(BaseModel):
    """An LLM answer together with the chunks it was grounded on."""

    model_config = ConfigDict(frozen=True)

    query: str
    answer: str
    sources: list[SearchResult] = Field(default_factory=list)
