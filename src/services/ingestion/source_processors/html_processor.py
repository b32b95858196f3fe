"""Source processor for saved web pages.

Main-content extraction uses trafilatura (the same engine the web
scraper relies on) so navigation, cookie banners and footers stay out of
the knowledge base.  Pages where trafilatura finds no main content (link
hubs, very short pages) fall back to BeautifulSoup's visible text with
script/style/nav elements removed.
"""

from __future__ import annotations

from pathlib import Path

import structlog
import trafilatura
from bs4 import BeautifulSoup

from src.interfaces.document_extractor import IDocumentExtractor
from src.models.rag import ExtractedDocument
from src.utils.errors import ExtractionError
from src.utils.text_normalizer import clean_extracted_text

logger = structlog.get_logger(logger_name=__name__)

_NON_CONTENT_TAGS = ("script", "style", "noscript", "nav", "header", "footer", "aside", "form")


def html_to_text(html: str) -> str:
    """Return the visible text of *html* using BeautifulSoup."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_NON_CONTENT_TAGS):
        tag.decompose()
    return soup.get_text(separator="\n")


class HTMLProcessor(IDocumentExtractor):
    """Extracts readable text from ``.html`` / ``.htm`` files."""

    document_type = "webpage"

    def extract(self, file_path: str) -> ExtractedDocument:
        try:
            html = Path(file_path).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ExtractionError(
                message=f"Cannot read {file_path}: {exc}",
                provider_name="html",
            ) from exc

        text = trafilatura.extract(html, include_comments=False, include_tables=True)
        if not text:
            logger.debug("trafilatura_extraction_empty", file_path=file_path)
            text = html_to_text(html)

        cleaned = clean_extracted_text(text)
        logger.debug("html_extracted", file_path=file_path, chars=len(cleaned))
        return ExtractedDocument(text=cleaned)
