"""Sentence segmentation and greedy chunk packing.

Turns extracted document text into bounded, sentence-aligned chunk strings
ready for embedding.

The packing strategy has two key design goals:

1. **Sentence-preserving** -- Chunk boundaries fall between sentences so
   no chunk starts or ends mid-thought unless a single sentence is itself
   longer than the budget.

2. **Bounded** -- Every chunk respects ``max_chunk_chars`` (continuation
   markers included).  The only exception is a single word longer than the
   budget, which is emitted verbatim rather than cut mid-word.

Sentence detection is deliberately simple: a sentence ends at ``.``, ``!``
or ``?`` immediately followed by whitespace.  There is no abbreviation
handling, so "Dr. Smith" splits after "Dr.".
"""

from __future__ import annotations

import re

import structlog

logger = structlog.get_logger(logger_name=__name__)

# Literal marker appended to a split piece and prepended to its continuation.
CONTINUATION_MARKER = "..."

# Zero-width split point after terminal punctuation that is followed by
# whitespace.  End-of-input is not a boundary; the residual is kept as is.
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])(?=\s)")


def segment_sentences(text: str) -> list[str]:
    """Split *text* into sentence-like units.

    Parameters
    ----------
    text:
        Raw extracted text.

    Returns
    -------
    list[str]
        Trimmed, non-empty sentences in document order.  A text without
        terminal punctuation yields a single sentence.
    """
    if not text:
        return []
    return [part.strip() for part in _SENTENCE_BOUNDARY.split(text) if part.strip()]


class TextChunker:
    """Greedily packs sentences into chunks of at most ``max_chunk_chars``.

    Parameters
    ----------
    max_chunk_chars:
        Default character budget per chunk (500 for transcripts, 600 for
        richer formats in the default source table).
    overlap_chars:
        Default number of trailing characters of a flushed chunk carried
        into the next one.  The carried tail starts on a word boundary and
        is only used when it still fits alongside the next sentence, so
        ``overlap_chars=0`` reproduces plain greedy packing.
    """

    def __init__(self, max_chunk_chars: int = 600, overlap_chars: int = 0) -> None:
        self._validate(max_chunk_chars, overlap_chars)
        self._max_chunk_chars = max_chunk_chars
        self._overlap_chars = overlap_chars

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def pack(
        self,
        text: str,
        max_chunk_chars: int | None = None,
        overlap_chars: int | None = None,
    ) -> list[str]:
        """Split *text* into ordered chunk strings.

        Parameters
        ----------
        text:
            The full text to chunk.
        max_chunk_chars:
            Per-call override of the character budget.
        overlap_chars:
            Per-call override of the overlap carried between chunks.

        Returns
        -------
        list[str]
            Non-blank chunks in document order.  Empty input returns an
            empty list.

        Raises
        ------
        ValueError
            If the budget is below 1 or the overlap is negative.
        """
        max_chars = self._max_chunk_chars if max_chunk_chars is None else max_chunk_chars
        overlap = self._overlap_chars if overlap_chars is None else overlap_chars
        self._validate(max_chars, overlap)
        overlap = min(overlap, max_chars - 1)

        chunks: list[str] = []
        current = ""

        for sentence in segment_sentences(text):
            candidate = f"{current} {sentence}" if current else sentence
            if len(candidate) <= max_chars:
                current = candidate
                continue

            flushed = current.strip()
            if flushed:
                chunks.append(flushed)

            if len(sentence) > max_chars:
                pieces = self._split_long_sentence(sentence, max_chars)
                chunks.extend(pieces[:-1])
                current = pieces[-1]
            else:
                current = self._seed_with_overlap(flushed, sentence, max_chars, overlap)

        if current.strip():
            chunks.append(current.strip())

        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            max_chunk_chars=max_chars,
            overlap_chars=overlap,
        )
        return chunks

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(max_chunk_chars: int, overlap_chars: int) -> None:
        if max_chunk_chars < 1:
            raise ValueError(f"max_chunk_chars must be >= 1, got {max_chunk_chars}")
        if overlap_chars < 0:
            raise ValueError(f"overlap_chars must be >= 0, got {overlap_chars}")

    @staticmethod
    def _overlap_tail(chunk: str, overlap_chars: int) -> str:
        """Return the last *overlap_chars* of *chunk*, advanced to a word start."""
        if overlap_chars <= 0 or not chunk:
            return ""
        if len(chunk) <= overlap_chars:
            return chunk
        start = len(chunk) - overlap_chars
        tail = chunk[start:]
        if not chunk[start - 1].isspace() and not tail[0].isspace():
            # Started mid-word: drop the partial word.
            parts = tail.split(None, 1)
            tail = parts[1] if len(parts) > 1 else ""
        return tail.strip()

    def _seed_with_overlap(
        self, previous: str, sentence: str, max_chars: int, overlap_chars: int
    ) -> str:
        tail = self._overlap_tail(previous, overlap_chars)
        if tail:
            seeded = f"{tail} {sentence}"
            if len(seeded) <= max_chars:
                return seeded
        return sentence

    @staticmethod
    def _split_long_sentence(sentence: str, max_chars: int) -> list[str]:
        """Split an oversized sentence on word boundaries.

        Every piece but the last ends with :data:`CONTINUATION_MARKER` and
        every piece but the first starts with it, as long as the marker fits
        within *max_chars*.  A word longer than *max_chars* becomes its own
        piece, unmarked.
        """
        marker = CONTINUATION_MARKER
        budget = max_chars - len(marker)  # room left for the trailing marker
        pieces: list[str] = []
        current = ""

        for word in sentence.split():
            if not current:
                current = word
                continue
            candidate = f"{current} {word}"
            if len(candidate) <= budget:
                current = candidate
                continue

            pieces.append(current + marker if len(current) <= budget else current)
            continuation = marker + word
            current = continuation if len(continuation) <= max_chars else word

        if current:
            pieces.append(current)
        return pieces
