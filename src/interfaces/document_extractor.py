"""Abstract base class for document extractors.

One extractor per document type turns a file on disk into plain text
(plus page breakpoints for paginated formats).  Format parsing is done by
third-party libraries; extractors invoke them uniformly and normalize the
output with :func:`src.utils.text_normalizer.clean_extracted_text`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.rag import ExtractedDocument


# Concrete implementations live in src/services/ingestion/source_processors/.
class IDocumentExtractor(ABC):
    """Contract for per-format text extractors.

    Extraction is synchronous (file and CPU bound); the batch orchestrator
    runs it in a worker thread.
    """

    #: Document type tag this extractor handles, e.g. ``"pdf"``.
    document_type: str = ""

    @abstractmethod
    def extract(self, file_path: str) -> ExtractedDocument:
        """Extract cleaned plain text from *file_path*.

        Parameters
        ----------
        file_path:
            Path to the source file.

        Returns
        -------
        ExtractedDocument
            The document text; ``page_breaks`` is populated for paginated
            formats only.

        Raises
        ------
        src.utils.errors.ExtractionError
            If the file is unreadable or its format is corrupt.
        """
