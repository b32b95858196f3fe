"""Source processors for the ingestion pipeline.

Each processor implements :class:`~src.interfaces.document_extractor.IDocumentExtractor`
and turns one file format into cleaned plain text (plus page/section
breakpoints where the format has them).  The batch orchestrator looks the
processor up by document type.

Available processors and their input formats:

- **TextProcessor**     -- ``transcript``: plain-text transcripts (.txt)
- **PDFProcessor**      -- ``pdf``: PyMuPDF page extraction with page breakpoints
- **MarkdownProcessor** -- ``markdown``: Markdown stripped to prose
- **ImageProcessor**    -- ``image``: Pillow + Tesseract OCR
- **EmailProcessor**    -- ``email``: stdlib email parser, HTML bodies via BeautifulSoup
- **HTMLProcessor**     -- ``webpage``: trafilatura main-content extraction
- **EPUBProcessor**     -- ``epub``: ebooklib + BeautifulSoup with section breakpoints
"""

from src.interfaces.document_extractor import IDocumentExtractor
from src.services.ingestion.source_processors.email_processor import EmailProcessor
from src.services.ingestion.source_processors.epub_processor import EPUBProcessor
from src.services.ingestion.source_processors.html_processor import HTMLProcessor
from src.services.ingestion.source_processors.image_processor import ImageProcessor
from src.services.ingestion.source_processors.markdown_processor import MarkdownProcessor
from src.services.ingestion.source_processors.pdf_processor import PDFProcessor
from src.services.ingestion.source_processors.text_processor import TextProcessor


def build_extractors() -> dict[str, IDocumentExtractor]:
    """Return one extractor instance per supported document type."""
    extractors: list[IDocumentExtractor] = [
        TextProcessor(),
        PDFProcessor(),
        MarkdownProcessor(),
        ImageProcessor(),
        EmailProcessor(),
        HTMLProcessor(),
        EPUBProcessor(),
    ]
    return {extractor.document_type: extractor for extractor in extractors}


__all__ = [
    "EPUBProcessor",
    "EmailProcessor",
    "HTMLProcessor",
    "ImageProcessor",
    "MarkdownProcessor",
    "PDFProcessor",
    "TextProcessor",
    "build_extractors",
]
