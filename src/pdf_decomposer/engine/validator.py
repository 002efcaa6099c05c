"""Boundary Validator: report structural problems, never repair them."""

from collections.abc import Sequence

from ..logger import logger
from .models import DocumentBoundary, ValidationReport


def _range_errors(boundary: DocumentBoundary, total_pages: int) -> list[str]:
    errors = []
    declared = boundary.page_range
    if boundary.start_page < 1:
        errors.append(
            f"Invalid start page in boundary {declared}: {boundary.start_page} (must be >= 1)"
        )
    if boundary.end_page > total_pages:
        errors.append(
            f"Invalid end page in boundary {declared}: {boundary.end_page} "
            f"(document has {total_pages} pages)"
        )
    if boundary.start_page > boundary.end_page:
        errors.append(
            f"Invalid range in boundary {declared}: start {boundary.start_page} "
            f"> end {boundary.end_page}"
        )
    return errors


def _page_span(first: int, last: int) -> str:
    return f"page {first}" if first == last else f"pages {first}-{last}"


def validate_boundaries(
    boundaries: Sequence[DocumentBoundary], total_pages: int
) -> ValidationReport:
    """Check that boundaries partition pages 1..total_pages without gaps or overlaps.

    Every check runs; the report lists all problems found. The input is
    never reordered, merged or trimmed.

    Args:
        boundaries: Candidate boundaries, in any order.
        total_pages: Declared page count of the source bundle.

    Returns:
        ValidationReport with valid=True only when no error was found.
    """
    errors: list[str] = []

    if not boundaries:
        errors.append(f"No boundaries supplied for {_page_span(1, total_pages)}")
        return ValidationReport(valid=False, errors=errors)

    for boundary in boundaries:
        errors.extend(_range_errors(boundary, total_pages))

    ordered = sorted(boundaries, key=lambda b: b.start_page)

    if ordered[0].start_page > 1:
        errors.append(
            f"Gap detected: {_page_span(1, ordered[0].start_page - 1)} "
            "not assigned to any document"
        )

    for current, following in zip(ordered, ordered[1:]):
        if current.end_page + 1 < following.start_page:
            errors.append(
                f"Gap detected: {_page_span(current.end_page + 1, following.start_page - 1)} "
                "not assigned to any document"
            )
        elif current.end_page >= following.start_page:
            errors.append(
                f"Overlap detected: boundary {current.page_range} overlaps "
                f"boundary {following.page_range}"
            )

    last_end = max(b.end_page for b in ordered)
    if last_end < total_pages:
        errors.append(
            f"Gap detected: {_page_span(last_end + 1, total_pages)} "
            "not assigned to any document"
        )

    report = ValidationReport(valid=not errors, errors=errors)
    if not report.valid:
        logger.warn(
            "boundary validation failed",
            boundaries=len(boundaries),
            total_pages=total_pages,
            error_count=len(errors),
        )
    return report
