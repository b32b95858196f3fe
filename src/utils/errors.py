"""Custom exception hierarchy for the knowledge assistant.

All application exceptions inherit from :class:`KnowledgeAssistantError`,
which carries an optional ``provider_name`` so error handlers can identify
which external service (e.g. "openai", "qdrant", "pymupdf") caused the
failure.

The hierarchy is organized by pipeline stage:

    KnowledgeAssistantError  (base -- catch-all for any application error)
    +-- ExtractionError      (a document could not be turned into text)
    +-- EmbeddingError       (embedding request rejected or malformed)
    +-- VectorStoreError     (collection setup, upsert, query or delete failed)
    +-- RetrievalError       (a search could not be answered)
    +-- LLMError             (chat-completion call failed)
    +-- LedgerError          (processing ledger could not be written)
    +-- ConfigurationError   (startup / missing config)

Batch ingestion isolates ExtractionError and EmbeddingError per file;
VectorStoreError stops the run.  Query paths surface RetrievalError so
callers can tell "search failed" apart from "no results".
"""


class KnowledgeAssistantError(Exception):
    """Base exception for all knowledge-assistant errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[qdrant] Collection creation failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class ExtractionError(KnowledgeAssistantError):
    """Raised when a document cannot be read or parsed (corrupt PDF, bad EPUB, OCR failure)."""

    def __init__(
        self,
        message: str = "Text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(KnowledgeAssistantError):
    """Raised when the embedding provider rejects a request or returns a bad vector."""

    def __init__(
        self,
        message: str = "Embedding request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LedgerError(KnowledgeAssistantError):
    """Raised when the processing ledger cannot persist its state."""

    def __init__(
        self,
        message: str = "Processing ledger operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Storage / retrieval errors
# ---------------------------------------------------------------------------

class VectorStoreError(KnowledgeAssistantError):
    """Raised when a vector-store call fails.

    ``status_code`` and ``detail`` carry the HTTP status and an excerpt of
    the response body when the store answered with an error, so operators
    can diagnose the failure from the log line alone.
    """

    def __init__(
        self,
        message: str = "Vector store operation failed",
        provider_name: str | None = None,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        self._status_code = status_code
        self._detail = detail
        if status_code is not None:
            message = f"{message} (status {status_code})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message=message, provider_name=provider_name)

    @property
    def status_code(self) -> int | None:
        return self._status_code

    @property
    def detail(self) -> str | None:
        return self._detail


class RetrievalError(KnowledgeAssistantError):
    """Raised when a search cannot be answered (embedding or vector-store failure)."""

    def __init__(
        self,
        message: str = "Search failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(KnowledgeAssistantError):
    """Raised when an LLM API call fails or returns an empty response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(KnowledgeAssistantError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
