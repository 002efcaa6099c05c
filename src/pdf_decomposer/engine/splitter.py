"""PDF Splitter: one standalone PDF per boundary, copied losslessly with PyMuPDF."""

import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

import fitz  # PyMuPDF

from ..logger import logger
from .errors import ArtifactSerializationError, DecompositionCancelled, InvalidSourceError
from .models import DocumentBoundary, SkippedBoundary, SplitArtifact
from .naming import artifact_name

PDF_MAGIC = b"%PDF-"


@dataclass
class SplitResult:
    """Artifacts produced by a split, with the boundaries that could not be produced."""

    artifacts: list[SplitArtifact] = field(default_factory=list)
    skipped: list[SkippedBoundary] = field(default_factory=list)
    source_pages: int = 0

    @property
    def all_succeeded(self) -> bool:
        return not self.skipped


def open_source_pdf(source_bytes: bytes) -> fitz.Document:
    """Load PDF bytes, rejecting anything PyMuPDF cannot read as a PDF.

    Raises:
        InvalidSourceError: If the bytes are empty, lack a PDF header, or fail to load.
    """
    if source_bytes[:5] != PDF_MAGIC:
        raise InvalidSourceError("source is not a PDF (missing %PDF- header)")
    try:
        doc = fitz.open(stream=source_bytes, filetype="pdf")
    except Exception as e:
        raise InvalidSourceError(f"source PDF could not be loaded: {e}") from e
    if doc.page_count == 0:
        doc.close()
        raise InvalidSourceError("source PDF has no pages")
    return doc


def _render_range(source: fitz.Document, start_page: int, end_page: int) -> bytes:
    """Copy 1-based inclusive pages into a new document and serialize it."""
    target = fitz.open()
    try:
        target.insert_pdf(source, from_page=start_page - 1, to_page=end_page - 1)
        if target.page_count != end_page - start_page + 1:
            raise ArtifactSerializationError(
                start_page,
                end_page,
                f"copied {target.page_count} pages, expected {end_page - start_page + 1}",
            )
        return target.tobytes(garbage=3, deflate=True)
    except ArtifactSerializationError:
        raise
    except Exception as e:
        raise ArtifactSerializationError(start_page, end_page, str(e)) from e
    finally:
        target.close()


def _clamp(boundary: DocumentBoundary, page_count: int) -> tuple[int, int]:
    return max(1, boundary.start_page), min(page_count, boundary.end_page)


def split_pdf(
    source_bytes: bytes,
    boundaries: Sequence[DocumentBoundary],
    cancel_event: threading.Event | None = None,
) -> SplitResult:
    """Split a PDF into one artifact per boundary.

    Page ranges are clamped to the source's pages. A boundary whose clamped
    range is empty, or whose pages fail to serialize, is recorded in
    ``skipped`` and the remaining boundaries are still processed.

    Args:
        source_bytes: The bundle PDF.
        boundaries: Boundaries to materialize, in output order.
        cancel_event: When set between boundaries, the split stops and
            nothing produced so far is returned.

    Returns:
        SplitResult with artifacts in boundary order and skipped boundaries.

    Raises:
        InvalidSourceError: If the source cannot be loaded.
        DecompositionCancelled: If cancel_event is set mid-split.
    """
    start = time.perf_counter()
    source = open_source_pdf(source_bytes)
    result = SplitResult(source_pages=source.page_count)

    try:
        for boundary in boundaries:
            if cancel_event is not None and cancel_event.is_set():
                raise DecompositionCancelled("split cancelled; partial artifacts discarded")

            start_page, end_page = _clamp(boundary, source.page_count)
            if start_page > end_page:
                reason = (
                    f"empty page range after clamping {boundary.page_range} "
                    f"to 1-{source.page_count}"
                )
                logger.warn(
                    "skipping boundary with empty page range",
                    boundary=boundary.page_range,
                    source_pages=source.page_count,
                )
                result.skipped.append(
                    SkippedBoundary(
                        start_page=boundary.start_page,
                        end_page=boundary.end_page,
                        title=boundary.title,
                        reason=reason,
                    )
                )
                continue

            try:
                pdf_bytes = _render_range(source, start_page, end_page)
            except ArtifactSerializationError as e:
                logger.error(
                    "failed to split boundary",
                    boundary=boundary.page_range,
                    error=e.reason,
                )
                result.skipped.append(
                    SkippedBoundary(
                        start_page=boundary.start_page,
                        end_page=boundary.end_page,
                        title=boundary.title,
                        reason=str(e),
                    )
                )
                continue

            clamped = boundary.model_copy(
                update={"start_page": start_page, "end_page": end_page}
            )
            result.artifacts.append(
                SplitArtifact(
                    boundary=boundary,
                    pdf_bytes=pdf_bytes,
                    suggested_name=artifact_name(clamped),
                    start_page=start_page,
                    end_page=end_page,
                    page_count=end_page - start_page + 1,
                )
            )
    finally:
        source.close()

    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "pdf split complete",
        boundaries=len(boundaries),
        artifacts=len(result.artifacts),
        skipped=len(result.skipped),
        source_pages=result.source_pages,
        duration_ms=round(duration_ms, 2),
    )
    return result
