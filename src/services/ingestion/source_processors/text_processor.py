"""Source processor for plain-text transcript files.

Transcripts are read as UTF-8 (undecodable bytes replaced) and cleaned
with the shared typography normalizer.  No page structure exists, so no
breakpoints are reported.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from src.interfaces.document_extractor import IDocumentExtractor
from src.models.rag import ExtractedDocument
from src.utils.errors import ExtractionError
from src.utils.text_normalizer import clean_extracted_text

logger = structlog.get_logger(logger_name=__name__)


class TextProcessor(IDocumentExtractor):
    """Reads ``.txt`` transcripts."""

    document_type = "transcript"

    def extract(self, file_path: str) -> ExtractedDocument:
        try:
            raw = Path(file_path).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ExtractionError(
                message=f"Cannot read {file_path}: {exc}",
                provider_name="text",
            ) from exc

        text = clean_extracted_text(raw)
        logger.debug("text_extracted", file_path=file_path, chars=len(text))
        return ExtractedDocument(text=text)
