"""Tests for the boundary validator."""

from pdf_decomposer.engine import DocumentBoundary, validate_boundaries


def _b(start: int, end: int) -> DocumentBoundary:
    return DocumentBoundary(
        start_page=start, end_page=end, title=f"Doc {start}-{end}", confidence=0.9
    )


class TestValidCoverage:
    """Boundary lists that partition the bundle exactly."""

    def test_two_adjacent_boundaries(self):
        report = validate_boundaries([_b(1, 5), _b(6, 10)], total_pages=10)
        assert report.valid
        assert report.errors == []

    def test_single_boundary(self):
        assert validate_boundaries([_b(1, 10)], total_pages=10).valid

    def test_single_page_documents(self):
        boundaries = [_b(p, p) for p in range(1, 5)]
        assert validate_boundaries(boundaries, total_pages=4).valid

    def test_unsorted_input_accepted(self):
        """Test that ordering is checked after sorting by start page."""
        assert validate_boundaries([_b(6, 10), _b(1, 5)], total_pages=10).valid


class TestGaps:
    def test_gap_names_missing_page(self):
        report = validate_boundaries([_b(1, 5), _b(7, 10)], total_pages=10)
        assert not report.valid
        assert len(report.errors) == 1
        assert "Gap detected" in report.errors[0]
        assert "page 6" in report.errors[0]

    def test_gap_names_missing_range(self):
        report = validate_boundaries([_b(1, 3), _b(8, 10)], total_pages=10)
        assert "pages 4-7" in report.errors[0]

    def test_leading_gap(self):
        report = validate_boundaries([_b(3, 10)], total_pages=10)
        assert not report.valid
        assert "pages 1-2" in report.errors[0]

    def test_trailing_gap(self):
        report = validate_boundaries([_b(1, 8)], total_pages=10)
        assert not report.valid
        assert "pages 9-10" in report.errors[0]


class TestOverlaps:
    def test_overlap_names_both_boundaries(self):
        report = validate_boundaries([_b(1, 6), _b(5, 10)], total_pages=10)
        assert not report.valid
        assert len(report.errors) == 1
        assert "Overlap detected" in report.errors[0]
        assert "1-6" in report.errors[0]
        assert "5-10" in report.errors[0]

    def test_shared_edge_page_is_overlap(self):
        report = validate_boundaries([_b(1, 5), _b(5, 10)], total_pages=10)
        assert not report.valid


class TestRangeSanity:
    def test_start_below_one(self):
        report = validate_boundaries([_b(0, 10)], total_pages=10)
        assert not report.valid
        assert any("Invalid start page" in e and "0-10" in e for e in report.errors)

    def test_end_beyond_total(self):
        report = validate_boundaries([_b(1, 12)], total_pages=10)
        assert any("Invalid end page" in e and "10 pages" in e for e in report.errors)

    def test_inverted_range(self):
        report = validate_boundaries([_b(1, 4), _b(8, 5), _b(9, 10)], total_pages=10)
        assert any("Invalid range" in e and "8-5" in e for e in report.errors)


class TestReporting:
    def test_all_problems_reported(self):
        """Test that checks are not short-circuited."""
        boundaries = [_b(0, 3), _b(5, 7), _b(6, 12)]
        report = validate_boundaries(boundaries, total_pages=10)

        joined = "\n".join(report.errors)
        assert "Invalid start page" in joined
        assert "Invalid end page" in joined
        assert "Gap detected" in joined
        assert "Overlap detected" in joined

    def test_empty_boundary_list_invalid(self):
        report = validate_boundaries([], total_pages=4)
        assert not report.valid
        assert "pages 1-4" in report.errors[0]

    def test_input_not_modified(self):
        """Test that the validator never reorders or repairs boundaries."""
        boundaries = [_b(6, 10), _b(1, 6)]
        validate_boundaries(boundaries, total_pages=10)
        assert [(b.start_page, b.end_page) for b in boundaries] == [(6, 10), (1, 6)]
