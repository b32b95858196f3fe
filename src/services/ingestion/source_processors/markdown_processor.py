"""Source processor for Markdown notes.

Markdown syntax would otherwise end up inside embeddings (``##``, link
URLs, table pipes), so it is stripped down to readable prose with a small
set of regex passes.  Code inside fenced blocks is kept as text, only the
fences go.
"""

from __future__ import annotations

import re
from pathlib import Path

import structlog

from src.interfaces.document_extractor import IDocumentExtractor
from src.models.rag import ExtractedDocument
from src.utils.errors import ExtractionError
from src.utils.text_normalizer import clean_extracted_text

logger = structlog.get_logger(logger_name=__name__)

_FRONT_MATTER = re.compile(r"\A---\s*\n.*?\n---\s*\n", re.DOTALL)
_CODE_FENCE = re.compile(r"^[ \t]*(```|~~~).*$", re.MULTILINE)
_HTML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_HTML_TAG = re.compile(r"</?[a-zA-Z][^>]*>")
_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_REFERENCE_LINK = re.compile(r"\[([^\]]+)\]\[[^\]]*\]")
_LINK_DEFINITION = re.compile(r"^[ \t]*\[[^\]]+\]:[ \t]+\S+.*$", re.MULTILINE)
_HEADING = re.compile(r"^[ \t]{0,3}#{1,6}[ \t]*(.*?)[ \t]*#*[ \t]*$", re.MULTILINE)
_SETEXT_UNDERLINE = re.compile(r"^[ \t]*(=+|-+)[ \t]*$", re.MULTILINE)
_BLOCKQUOTE = re.compile(r"^[ \t]*>[ \t]?", re.MULTILINE)
_LIST_MARKER = re.compile(r"^[ \t]*(?:[-*+]|\d+[.)])[ \t]+", re.MULTILINE)
_TABLE_RULE = re.compile(r"^[ \t]*\|?[ \t]*:?-{3,}:?[ \t]*(\|[ \t]*:?-{3,}:?[ \t]*)*\|?[ \t]*$", re.MULTILINE)
_TABLE_PIPE = re.compile(r"\s*\|\s*")
_EMPHASIS = re.compile(r"(\*\*|__|\*|_|~~)(?=\S)(.+?)(?<=\S)\1")
_INLINE_CODE = re.compile(r"`([^`]*)`")


def strip_markdown(markdown: str) -> str:
    """Reduce Markdown source to plain prose."""
    text = _FRONT_MATTER.sub("", markdown)
    text = _HTML_COMMENT.sub("", text)
    text = _CODE_FENCE.sub("", text)
    text = _IMAGE.sub(r"\1", text)
    text = _LINK.sub(r"\1", text)
    text = _REFERENCE_LINK.sub(r"\1", text)
    text = _LINK_DEFINITION.sub("", text)
    text = _HTML_TAG.sub("", text)
    text = _HEADING.sub(r"\1", text)
    text = _SETEXT_UNDERLINE.sub("", text)
    text = _BLOCKQUOTE.sub("", text)
    text = _LIST_MARKER.sub("", text)
    text = _TABLE_RULE.sub("", text)
    text = "\n".join(
        _TABLE_PIPE.sub(" ", line).strip() if "|" in line else line
        for line in text.split("\n")
    )
    text = _INLINE_CODE.sub(r"\1", text)
    text = _EMPHASIS.sub(r"\2", text)
    return text


class MarkdownProcessor(IDocumentExtractor):
    """Reads ``.md`` / ``.markdown`` files as plain prose."""

    document_type = "markdown"

    def extract(self, file_path: str) -> ExtractedDocument:
        try:
            raw = Path(file_path).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ExtractionError(
                message=f"Cannot read {file_path}: {exc}",
                provider_name="markdown",
            ) from exc

        text = clean_extracted_text(strip_markdown(raw))
        logger.debug("markdown_extracted", file_path=file_path, chars=len(text))
        return ExtractedDocument(text=text)
