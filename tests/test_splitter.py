"""Tests for PDF splitting with PyMuPDF."""

import threading

import fitz  # PyMuPDF
import pytest

from conftest import page_count, page_text
from pdf_decomposer.engine import (
    ArtifactSerializationError,
    DecompositionCancelled,
    DocumentBoundary,
    InvalidSourceError,
    split_pdf,
)
from pdf_decomposer.engine import splitter


def _b(start: int, end: int, title: str | None = None) -> DocumentBoundary:
    return DocumentBoundary(
        start_page=start,
        end_page=end,
        document_type="police-report",
        title=title or f"Report {start}-{end}",
        confidence=0.9,
    )


class TestSplitPdf:
    """Tests for split_pdf on a ten-page bundle."""

    def test_one_artifact_per_boundary(self, bundle_pdf):
        result = split_pdf(bundle_pdf, [_b(1, 5), _b(6, 10)])
        assert len(result.artifacts) == 2
        assert result.all_succeeded
        assert result.source_pages == 10

    def test_artifacts_are_standalone_pdfs(self, bundle_pdf):
        """Test that each artifact loads and holds the right pages in order."""
        result = split_pdf(bundle_pdf, [_b(1, 5), _b(6, 10)])
        second = result.artifacts[1].pdf_bytes

        assert second.startswith(b"%PDF-")
        assert page_count(second) == 5
        assert "Bundle page 6" in page_text(second, 0)
        assert "Bundle page 10" in page_text(second, 4)

    def test_page_counts_sum_to_source(self, bundle_pdf):
        """Test that a full partition reproduces the source page count."""
        boundaries = [_b(1, 2), _b(3, 3), _b(4, 9), _b(10, 10)]
        result = split_pdf(bundle_pdf, boundaries)
        assert sum(a.page_count for a in result.artifacts) == 10
        assert [page_count(a.pdf_bytes) for a in result.artifacts] == [2, 1, 6, 1]

    def test_suggested_names(self, bundle_pdf):
        result = split_pdf(bundle_pdf, [_b(1, 5, "Stalking Complaint"), _b(6, 10)])
        assert result.artifacts[0].suggested_name == (
            "police-report_stalking-complaint_p1-5.pdf"
        )

    def test_clamps_out_of_range_pages(self, bundle_pdf):
        """Test that ranges are clamped to the source's pages."""
        result = split_pdf(bundle_pdf, [_b(0, 4), _b(8, 15)])

        first, second = result.artifacts
        assert (first.start_page, first.end_page, first.page_count) == (1, 4, 4)
        assert (second.start_page, second.end_page, second.page_count) == (8, 10, 3)
        assert second.suggested_name.endswith("_p8-10.pdf")
        # The supplied boundary is kept as given
        assert second.boundary.end_page == 15

    def test_empty_range_skipped(self, bundle_pdf):
        """Test that a boundary outside the source is skipped, not fatal."""
        result = split_pdf(bundle_pdf, [_b(1, 10), _b(12, 14)])
        assert len(result.artifacts) == 1
        assert len(result.skipped) == 1
        assert result.skipped[0].start_page == 12
        assert "empty page range" in result.skipped[0].reason

    def test_inverted_range_skipped(self, bundle_pdf):
        result = split_pdf(bundle_pdf, [_b(7, 3), _b(1, 10)])
        assert len(result.artifacts) == 1
        assert result.skipped[0].title == "Report 7-3"

    def test_serialization_failure_isolated(self, bundle_pdf, monkeypatch):
        """Test that one failing boundary does not stop the others."""
        original = splitter._render_range

        def flaky_render(source, start_page, end_page):
            if start_page == 4:
                raise ArtifactSerializationError(start_page, end_page, "corrupt content stream")
            return original(source, start_page, end_page)

        monkeypatch.setattr(splitter, "_render_range", flaky_render)
        result = split_pdf(bundle_pdf, [_b(1, 3), _b(4, 6), _b(7, 10)])

        assert [a.start_page for a in result.artifacts] == [1, 7]
        assert not result.all_succeeded
        skipped = result.skipped[0]
        assert (skipped.start_page, skipped.end_page) == (4, 6)
        assert "corrupt content stream" in skipped.reason

    def test_pymupdf_error_becomes_skipped_boundary(self, bundle_pdf, monkeypatch):
        """Test that a raw PyMuPDF failure while writing one range is isolated."""
        original = fitz.Document.tobytes

        def failing_tobytes(doc, *args, **kwargs):
            if doc.page_count == 3:
                raise RuntimeError("cannot write object 12")
            return original(doc, *args, **kwargs)

        monkeypatch.setattr(fitz.Document, "tobytes", failing_tobytes)
        result = split_pdf(bundle_pdf, [_b(1, 5), _b(6, 8), _b(9, 10)])

        assert [(a.start_page, a.end_page) for a in result.artifacts] == [(1, 5), (9, 10)]
        assert len(result.skipped) == 1
        skipped = result.skipped[0]
        assert (skipped.start_page, skipped.end_page) == (6, 8)
        assert skipped.reason == "failed to serialize pages 6-8: cannot write object 12"

    def test_empty_boundary_list(self, bundle_pdf):
        result = split_pdf(bundle_pdf, [])
        assert result.artifacts == []
        assert result.skipped == []

    def test_rejects_non_pdf(self):
        with pytest.raises(InvalidSourceError):
            split_pdf(b"not a pdf at all", [_b(1, 1)])

    def test_rejects_truncated_pdf(self, bundle_pdf):
        with pytest.raises(InvalidSourceError):
            split_pdf(bundle_pdf[:40], [_b(1, 1)])

    def test_cancellation_discards_partial_output(self, bundle_pdf):
        """Test that a set cancel event stops the split with no result."""
        event = threading.Event()
        event.set()
        with pytest.raises(DecompositionCancelled):
            split_pdf(bundle_pdf, [_b(1, 5), _b(6, 10)], cancel_event=event)
