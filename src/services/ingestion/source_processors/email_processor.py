"""Source processor for RFC 822 email files (``.eml``).

Parsed with the standard library's :mod:`email` package using the modern
``policy.default`` API.  The extracted document starts with the subject,
sender and date lines so that queries such as "what did Alice say about
the release" can match, followed by the body.  A ``text/plain`` body is
preferred; HTML-only mail is reduced to text with BeautifulSoup.
Attachments are ignored.
"""

from __future__ import annotations

from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from pathlib import Path

import structlog

from src.interfaces.document_extractor import IDocumentExtractor
from src.models.rag import ExtractedDocument
from src.services.ingestion.source_processors.html_processor import html_to_text
from src.utils.errors import ExtractionError
from src.utils.text_normalizer import clean_extracted_text

logger = structlog.get_logger(logger_name=__name__)

_HEADER_FIELDS = (("Subject", "subject"), ("From", "from"), ("Date", "date"))


class EmailProcessor(IDocumentExtractor):
    """Extracts headers and body text from ``.eml`` files."""

    document_type = "email"

    def extract(self, file_path: str) -> ExtractedDocument:
        try:
            with open(file_path, "rb") as handle:
                message = BytesParser(policy=policy.default).parse(handle)
        except OSError as exc:
            raise ExtractionError(
                message=f"Cannot read {file_path}: {exc}",
                provider_name="email",
            ) from exc

        header_lines = [
            f"{label}: {message[field]}" for label, field in _HEADER_FIELDS if message[field]
        ]
        body = self._body_text(message, file_path)

        text = clean_extracted_text("\n".join(header_lines) + "\n\n" + body)
        logger.debug("email_extracted", file_path=Path(file_path).name, chars=len(text))
        return ExtractedDocument(text=text)

    @staticmethod
    def _body_text(message: EmailMessage, file_path: str) -> str:
        try:
            part = message.get_body(preferencelist=("plain", "html"))
            if part is None:
                return ""
            content = part.get_content()
        except (LookupError, UnicodeError, ValueError) as exc:
            raise ExtractionError(
                message=f"Cannot decode email body in {file_path}: {exc}",
                provider_name="email",
            ) from exc

        if part.get_content_subtype() == "html":
            return html_to_text(content)
        return content
