"""Map a chunk back to the page it most plausibly came from.

Paginated extractors (PDF, EPUB) report a list of breakpoints: the
character offset at which each page starts in the concatenated document
text.  A chunk is attributed by locating its text in the document and
picking the last breakpoint at or before that offset.

Chunks are rebuilt from sentences joined by single spaces, so an exact
substring search fails whenever the page text contained newlines.  The
attributor therefore tries, in order:

1. an exact substring search,
2. a whitespace-insensitive search (continuation markers stripped),
3. a proportional estimate from the chunk's position in the document.

Only step 3 is a guess; its result carries ``estimated=True`` and callers
render it as approximate.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from typing import Sequence

import structlog

from src.models.rag import PageAttribution, PageBreak
from src.services.ingestion.chunker import CONTINUATION_MARKER
from src.utils.text_normalizer import collapse_whitespace

logger = structlog.get_logger(logger_name=__name__)

_WHITESPACE_RUN = re.compile(r"\s+")


def attribute_page(
    page_breaks: Sequence[PageBreak],
    chunk_text: str,
    full_text: str,
    chunk_index: int,
    total_chunks: int,
    label_prefix: str = "Page",
) -> PageAttribution:
    """Return the page a single chunk belongs to.

    Convenience wrapper around :class:`PageAttributor` for one-off lookups.
    Callers attributing many chunks of the same document should build one
    :class:`PageAttributor` and reuse it.

    Parameters
    ----------
    page_breaks:
        Breakpoints in ascending offset order.
    chunk_text:
        The chunk to locate.
    full_text:
        The full extracted document text the breakpoints refer to.
    chunk_index:
        0-based position of the chunk within the document.
    total_chunks:
        Number of chunks produced for the document.
    label_prefix:
        Word used in the label, ``"Page"`` for PDFs and ``"Section"`` for
        EPUB chapters.

    Returns
    -------
    PageAttribution
        Page number, display label and whether the page was estimated.
    """
    attributor = PageAttributor(page_breaks, full_text, label_prefix=label_prefix)
    return attributor.attribute(chunk_text, chunk_index, total_chunks)


class PageAttributor:
    """Attributes the chunks of one document to pages.

    The whitespace-collapsed copy of the document and its offset map are
    built once, on the first chunk that needs them.  Chunks arrive in
    document order, so every search starts just after the previous match
    and only falls back to the earlier part of the text when that fails.
    """

    def __init__(
        self,
        page_breaks: Sequence[PageBreak],
        full_text: str,
        label_prefix: str = "Page",
    ) -> None:
        self._page_breaks = list(page_breaks)
        self._starts = [b.offset for b in self._page_breaks]
        self._full_text = full_text
        self._label_prefix = label_prefix
        self._collapsed: str | None = None
        self._origin: list[int] = []
        self._exact_hint = 0
        self._collapsed_hint = 0

    def attribute(self, chunk_text: str, chunk_index: int, total_chunks: int) -> PageAttribution:
        """Return the page *chunk_text* belongs to (see :func:`attribute_page`)."""
        prefix = self._label_prefix
        if not self._page_breaks:
            return PageAttribution(page_number=1, label=f"{prefix} 1", estimated=True)

        offset = self._find_exact(chunk_text)
        if offset < 0:
            offset = self._find_normalized(chunk_text)

        if offset >= 0:
            page = self._page_at_offset(offset)
            return PageAttribution(page_number=page, label=f"{prefix} {page}")

        page = estimate_page(chunk_index, total_chunks, len(self._page_breaks))
        logger.debug(
            "page_attribution_estimated",
            chunk_index=chunk_index,
            total_chunks=total_chunks,
            page=page,
        )
        return PageAttribution(page_number=page, label=f"{prefix} {page}", estimated=True)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _find_exact(self, chunk_text: str) -> int:
        if not chunk_text:
            return -1
        found = _find_from(self._full_text, chunk_text, self._exact_hint)
        if found >= 0:
            self._exact_hint = found + 1
        return found

    def _find_normalized(self, chunk_text: str) -> int:
        """Locate *chunk_text* ignoring whitespace differences; -1 if absent."""
        needle = chunk_text.strip()
        if needle.startswith(CONTINUATION_MARKER):
            needle = needle[len(CONTINUATION_MARKER):]
        if needle.endswith(CONTINUATION_MARKER):
            needle = needle[: -len(CONTINUATION_MARKER)]
        needle = collapse_whitespace(needle)
        if not needle:
            return -1

        if self._collapsed is None:
            self._collapsed, self._origin = collapse_with_origin(self._full_text)
        found = _find_from(self._collapsed, needle, self._collapsed_hint)
        if found < 0:
            return -1
        self._collapsed_hint = found + 1
        return self._origin[found]

    def _page_at_offset(self, offset: int) -> int:
        position = bisect_right(self._starts, offset) - 1
        return self._page_breaks[max(position, 0)].page_number


def collapse_with_origin(text: str) -> tuple[str, list[int]]:
    """Collapse whitespace runs in *text* to single spaces.

    Returns the collapsed text plus, for every collapsed character, its
    offset in *text*.
    """
    pieces: list[str] = []
    origin: list[int] = []
    position = 0
    for match in _WHITESPACE_RUN.finditer(text):
        start = match.start()
        pieces.append(text[position:start])
        origin.extend(range(position, start))
        pieces.append(" ")
        origin.append(start)
        position = match.end()
    pieces.append(text[position:])
    origin.extend(range(position, len(text)))
    return "".join(pieces), origin


def estimate_page(chunk_index: int, total_chunks: int, total_pages: int) -> int:
    """Proportional page estimate: ``min(index * pages // chunks + 1, pages)``."""
    if total_pages < 1:
        return 1
    if total_chunks < 1:
        return 1
    return max(1, min(chunk_index * total_pages // total_chunks + 1, total_pages))


def _find_from(haystack: str, needle: str, hint: int) -> int:
    found = haystack.find(needle, hint)
    if found < 0 and hint:
        found = haystack.find(needle, 0, hint + len(needle))
    return found
