"""Unit tests for sentence segmentation and the greedy TextChunker."""

from __future__ import annotations

import re

import pytest

from src.services.ingestion.chunker import (
    CONTINUATION_MARKER,
    TextChunker,
    segment_sentences,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_MIXED_TEXT = (
    "Short one. A considerably longer sentence that keeps going for a while "
    "before it finally reaches its end! Is this a question? "
    "Supercalifragilisticexpialidociousness appears here. Tail without a stop"
)


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------


class TestSegmentSentences:
    def test_splits_on_terminal_punctuation_followed_by_whitespace(self) -> None:
        assert segment_sentences("One. Two! Three? Four") == ["One.", "Two!", "Three?", "Four"]

    def test_punctuation_without_whitespace_is_not_a_boundary(self) -> None:
        assert segment_sentences("Version 1.5 shipped.") == ["Version 1.5 shipped."]

    def test_no_abbreviation_handling(self) -> None:
        assert segment_sentences("Dr. Smith arrived.") == ["Dr.", "Smith arrived."]

    def test_empty_and_blank_input(self) -> None:
        assert segment_sentences("") == []
        assert segment_sentences("   \n\t ") == []

    def test_text_without_punctuation_is_one_sentence(self) -> None:
        assert segment_sentences("  just some words  ") == ["just some words"]

    def test_rejoining_reconstructs_text_up_to_whitespace(self) -> None:
        text = "First line.\nSecond line!\n\nThird line?  Fourth"
        assert " ".join(segment_sentences(text)) == _normalize(text)


# ---------------------------------------------------------------------------
# Packing scenarios
# ---------------------------------------------------------------------------


class TestPackScenarios:
    def test_sentences_too_long_to_combine_stay_separate(self) -> None:
        chunker = TextChunker()
        chunks = chunker.pack("Design is hard. Complexity grows. Manage it carefully.", 20)
        assert chunks == ["Design is hard.", "Complexity grows.", "Manage it carefully."]

    def test_short_text_fits_in_one_chunk(self) -> None:
        chunker = TextChunker()
        assert chunker.pack("Hello world. Goodbye world.", 100) == ["Hello world. Goodbye world."]

    def test_empty_text_yields_no_chunks(self) -> None:
        assert TextChunker().pack("", 50) == []
        assert TextChunker().pack("  \n ", 50) == []

    def test_constructor_defaults_apply(self) -> None:
        chunker = TextChunker(max_chunk_chars=20)
        assert chunker.pack("Design is hard. Complexity grows.") == [
            "Design is hard.",
            "Complexity grows.",
        ]


class TestChunkProperties:
    @pytest.mark.parametrize("max_chars", [1, 5, 12, 20, 37, 80, 500])
    def test_every_chunk_respects_the_bound(self, max_chars: int) -> None:
        chunks = TextChunker().pack(_MIXED_TEXT, max_chars)
        for chunk in chunks:
            if len(chunk) > max_chars:
                # Only a single unsplittable word may exceed the budget.
                assert " " not in chunk
                assert chunk.strip(".!?") in _MIXED_TEXT

    @pytest.mark.parametrize("max_chars", [1, 5, 12, 20, 37, 80, 500])
    def test_no_empty_chunks(self, max_chars: int) -> None:
        for chunk in TextChunker().pack(_MIXED_TEXT, max_chars):
            assert chunk.strip()
            assert chunk == chunk.strip()

    @pytest.mark.parametrize("max_chars", [40, 80, 500])
    def test_content_is_preserved_in_order(self, max_chars: int) -> None:
        chunks = TextChunker().pack(_MIXED_TEXT, max_chars)
        rejoined = " ".join(chunk.replace(CONTINUATION_MARKER, " ") for chunk in chunks)
        assert _normalize(rejoined).split() == _MIXED_TEXT.split()


class TestLongSentenceSplitting:
    def test_pieces_carry_continuation_markers_within_bound(self) -> None:
        chunks = TextChunker().pack("alpha beta gamma delta epsilon zeta eta theta.", 20)
        assert chunks == [
            "alpha beta gamma...",
            "...delta epsilon...",
            "...zeta eta...",
            "...theta.",
        ]
        assert all(len(chunk) <= 20 for chunk in chunks)

    def test_tail_of_split_sentence_absorbs_next_sentence(self) -> None:
        chunks = TextChunker().pack("alpha beta gamma delta epsilon zeta. Ok.", 20)
        assert chunks[-1] == "...zeta. Ok."

    def test_oversized_word_passes_through_verbatim(self) -> None:
        word = "x" * 30
        chunks = TextChunker().pack(f"{word} tail.", 10)
        assert word in chunks
        assert all(len(c) <= 10 for c in chunks if c != word)


class TestOverlap:
    def test_tail_of_previous_chunk_seeds_the_next(self) -> None:
        text = "Alpha beta gamma. Delta epsilon zeta. Eta theta iota."
        chunks = TextChunker().pack(text, 40, overlap_chars=10)
        assert chunks == [
            "Alpha beta gamma. Delta epsilon zeta.",
            "zeta. Eta theta iota.",
        ]

    def test_overlap_skipped_when_seed_would_overflow(self) -> None:
        chunks = TextChunker().pack("Design is hard. Complexity grows.", 20, overlap_chars=10)
        assert chunks == ["Design is hard.", "Complexity grows."]

    def test_zero_overlap_is_plain_greedy_packing(self) -> None:
        text = "Alpha beta gamma. Delta epsilon zeta. Eta theta iota."
        assert TextChunker().pack(text, 40, overlap_chars=0) == [
            "Alpha beta gamma. Delta epsilon zeta.",
            "Eta theta iota.",
        ]

    def test_overlap_is_clamped_below_the_budget(self) -> None:
        chunks = TextChunker().pack("One two. Three four.", 10, overlap_chars=500)
        assert all(len(chunk) <= 10 for chunk in chunks)


class TestValidation:
    def test_rejects_non_positive_budget(self) -> None:
        with pytest.raises(ValueError, match="max_chunk_chars"):
            TextChunker().pack("text.", 0)

    def test_rejects_negative_overlap(self) -> None:
        with pytest.raises(ValueError, match="overlap_chars"):
            TextChunker(overlap_chars=-1)
