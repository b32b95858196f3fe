"""Source processor for PDF documents.

Reads PDF files using PyMuPDF (fitz) page by page.  Each page is cleaned
on its own, then pages are joined with a blank line.  Before a page's text
is appended, a breakpoint records the page number and the offset at which
that page starts, so chunks can later be attributed back to their page.

Pages without extractable text (scans without an OCR layer) still get a
breakpoint; they simply contribute no characters.
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from src.interfaces.document_extractor import IDocumentExtractor
from src.models.rag import ExtractedDocument, PageBreak
from src.utils.errors import ExtractionError
from src.utils.text_normalizer import clean_extracted_text

logger = structlog.get_logger(logger_name=__name__)

_PAGE_SEPARATOR = "\n\n"


class PDFProcessor(IDocumentExtractor):
    """Extracts text and page breakpoints from ``.pdf`` files."""

    document_type = "pdf"

    def extract(self, file_path: str) -> ExtractedDocument:
        pages = self._extract_pages(file_path)

        parts: list[str] = []
        page_breaks: list[PageBreak] = []
        length = 0
        for page_number, page_text in pages:
            if parts and page_text:
                length += len(_PAGE_SEPARATOR)
            page_breaks.append(PageBreak(page_number=page_number, offset=length))
            if page_text:
                parts.append(page_text)
                length += len(page_text)

        full_text = _PAGE_SEPARATOR.join(parts)
        if not full_text:
            logger.warning("pdf_no_text_extracted", file_path=file_path, pages=len(pages))

        logger.debug("pdf_extracted", file_path=file_path, pages=len(pages), chars=len(full_text))
        return ExtractedDocument(text=full_text, page_breaks=page_breaks)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_pages(file_path: str) -> list[tuple[int, str]]:
        """Return ``(page_number, cleaned_text)`` for every page, 1-based."""
        try:
            doc = fitz.open(file_path)
        except Exception as exc:
            raise ExtractionError(
                message=f"Cannot open PDF {file_path}: {exc}",
                provider_name="pymupdf",
            ) from exc

        pages: list[tuple[int, str]] = []
        try:
            for page_index in range(len(doc)):
                page = doc[page_index]
                pages.append((page_index + 1, clean_extracted_text(page.get_text("text"))))
        except Exception as exc:
            raise ExtractionError(
                message=f"Failed reading PDF {file_path}: {exc}",
                provider_name="pymupdf",
            ) from exc
        finally:
            doc.close()

        return pages
