"""Source processor for EPUB books.

Reads EPUB files using ebooklib and strips each XHTML document item
(typically one per chapter) to text with BeautifulSoup.  Every kept
document item becomes a numbered section with a breakpoint, so chunks are
attributed to ``Section N`` the same way PDF chunks get ``Page N``.
"""

from __future__ import annotations

import ebooklib
import structlog
from bs4 import BeautifulSoup
from ebooklib import epub

from src.interfaces.document_extractor import IDocumentExtractor
from src.models.rag import ExtractedDocument, PageBreak
from src.utils.errors import ExtractionError
from src.utils.text_normalizer import clean_extracted_text

logger = structlog.get_logger(logger_name=__name__)

_SECTION_SEPARATOR = "\n\n"

# Items shorter than this are title pages, TOCs and copyright notices.
_MIN_SECTION_CHARS = 40


class EPUBProcessor(IDocumentExtractor):
    """Extracts text and section breakpoints from ``.epub`` files."""

    document_type = "epub"

    def extract(self, file_path: str) -> ExtractedDocument:
        sections = self._extract_sections(file_path)

        parts: list[str] = []
        page_breaks: list[PageBreak] = []
        length = 0
        for number, section_text in enumerate(sections, start=1):
            if parts:
                length += len(_SECTION_SEPARATOR)
            page_breaks.append(PageBreak(page_number=number, offset=length))
            parts.append(section_text)
            length += len(section_text)

        if not parts:
            logger.warning("epub_no_sections_extracted", file_path=file_path)

        return ExtractedDocument(text=_SECTION_SEPARATOR.join(parts), page_breaks=page_breaks)

    @staticmethod
    def _extract_sections(file_path: str) -> list[str]:
        try:
            book = epub.read_epub(file_path, options={"ignore_ncx": True})
        except Exception as exc:
            raise ExtractionError(
                message=f"Cannot open EPUB {file_path}: {exc}",
                provider_name="ebooklib",
            ) from exc

        sections: list[str] = []
        for item in book.get_items_of_type(ebooklib.ITEM_DOCUMENT):
            html_content = item.get_content().decode("utf-8", errors="replace")
            soup = BeautifulSoup(html_content, "html.parser")
            text = clean_extracted_text(soup.get_text(separator="\n"))
            if len(text) < _MIN_SECTION_CHARS:
                continue
            sections.append(text)

        logger.debug("epub_extracted", file_path=file_path, sections=len(sections))
        return sections
