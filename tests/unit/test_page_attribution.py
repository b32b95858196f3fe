"""Unit tests for mapping chunks back to pages."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from src.models.rag import PageBreak
from src.services.ingestion import page_attribution
from src.services.ingestion.page_attribution import (
    PageAttributor,
    attribute_page,
    collapse_with_origin,
    estimate_page,
)

_BREAKS = [
    PageBreak(page_number=1, offset=0),
    PageBreak(page_number=2, offset=500),
    PageBreak(page_number=3, offset=1200),
]


def _document_with_marker_at(offset: int, marker: str = "Needle sentence here.") -> str:
    text = "a" * offset + marker
    return text + "b" * (1500 - len(text))


class TestExactMatch:
    def test_offset_inside_second_page(self) -> None:
        full_text = _document_with_marker_at(700)
        result = attribute_page(_BREAKS, "Needle sentence here.", full_text, 0, 3)
        assert result.page_number == 2
        assert result.label == "Page 2"
        assert result.estimated is False

    @pytest.mark.parametrize(
        ("offset", "expected"),
        [(0, 1), (499, 1), (500, 2), (1199, 2), (1200, 3), (1400, 3)],
    )
    def test_breakpoint_boundaries(self, offset: int, expected: int) -> None:
        full_text = "a" * 1500
        full_text = full_text[:offset] + "NEEDLE" + full_text[offset + 6 :]
        result = attribute_page(_BREAKS, "NEEDLE", full_text, 0, 1)
        assert result.page_number == expected


class TestWhitespaceInsensitiveMatch:
    def test_chunk_joined_with_spaces_matches_text_with_newlines(self) -> None:
        full_text = "Intro text.\n" + "x" * 500 + "\nFirst line of page two.\nSecond line."
        breaks = [PageBreak(page_number=1, offset=0), PageBreak(page_number=2, offset=513)]
        chunk = "First line of page two. Second line."
        result = attribute_page(breaks, chunk, full_text, 0, 1)
        assert result.page_number == 2
        assert result.estimated is False

    def test_continuation_markers_are_ignored(self) -> None:
        full_text = "p1 " * 100 + "the long sentence continues here"
        breaks = [PageBreak(page_number=1, offset=0), PageBreak(page_number=2, offset=300)]
        result = attribute_page(breaks, "...sentence continues here", full_text, 1, 2)
        assert result.page_number == 2
        assert result.estimated is False


class TestEstimatedFallback:
    def test_unlocatable_chunk_uses_proportional_estimate(self) -> None:
        result = attribute_page(_BREAKS, "not in the document", "something else", 2, 3)
        assert result.page_number == 3
        assert result.estimated is True

    def test_no_breakpoints_means_first_page_estimated(self) -> None:
        result = attribute_page([], "anything", "anything", 0, 1)
        assert result.page_number == 1
        assert result.label == "Page 1"
        assert result.estimated is True

    def test_label_prefix_is_configurable(self) -> None:
        breaks = [PageBreak(page_number=1, offset=0), PageBreak(page_number=2, offset=10)]
        result = attribute_page(breaks, "chapter two", "chapter 1 chapter two", 1, 2, "Section")
        assert result.label == "Section 2"


class TestPageAttributor:
    @staticmethod
    def _paged_document(pages: int) -> tuple[str, list[PageBreak], list[str]]:
        """Pages of newline-terminated lines plus the space-joined chunk for each page."""
        parts: list[str] = []
        breaks: list[PageBreak] = []
        chunks: list[str] = []
        offset = 0
        for number in range(1, pages + 1):
            lines = [f"Page {number} opens here.", f"Page {number} closes here."]
            page_text = "\n".join(lines) + "\n\n"
            breaks.append(PageBreak(page_number=number, offset=offset))
            parts.append(page_text)
            chunks.append(" ".join(lines))
            offset += len(page_text)
        return "".join(parts), breaks, chunks

    def test_many_chunks_share_one_collapsed_copy(self) -> None:
        full_text, breaks, chunks = self._paged_document(300)
        attributor = PageAttributor(breaks, full_text)

        with patch.object(
            page_attribution, "collapse_with_origin", wraps=collapse_with_origin
        ) as collapse:
            results = [
                attributor.attribute(chunk, index, len(chunks))
                for index, chunk in enumerate(chunks)
            ]

        assert collapse.call_count == 1
        assert [r.page_number for r in results] == list(range(1, 301))
        assert not any(r.estimated for r in results)

    def test_repeated_text_is_attributed_in_document_order(self) -> None:
        full_text = "Same line.\n" + "Same line.\n"
        breaks = [PageBreak(page_number=1, offset=0), PageBreak(page_number=2, offset=11)]
        attributor = PageAttributor(breaks, full_text)

        pages = [attributor.attribute("Same line.", index, 2).page_number for index in range(2)]

        assert pages == [1, 2]

    def test_falls_back_to_earlier_text(self) -> None:
        full_text = "Alpha one.\nBeta two.\nGamma three."
        breaks = [PageBreak(page_number=1, offset=0), PageBreak(page_number=2, offset=11)]
        attributor = PageAttributor(breaks, full_text)

        assert attributor.attribute("Gamma three.", 1, 2).page_number == 2
        assert attributor.attribute("Alpha one.", 0, 2).page_number == 1


class TestCollapseWithOrigin:
    def test_offsets_point_into_original_text(self) -> None:
        collapsed, origin = collapse_with_origin("a \n\tb  c")
        assert collapsed == "a b c"
        assert origin == [0, 1, 4, 5, 7]


class TestEstimatePage:
    @pytest.mark.parametrize(
        ("index", "chunks", "pages", "expected"),
        [
            (0, 10, 5, 1),
            (5, 10, 5, 3),
            (9, 10, 5, 5),
            (0, 1, 3, 1),
            (3, 2, 4, 4),
            (0, 0, 4, 1),
            (2, 4, 0, 1),
        ],
    )
    def test_estimate_stays_within_page_range(
        self, index: int, chunks: int, pages: int, expected: int
    ) -> None:
        assert estimate_page(index, chunks, pages) == expected
