"""Decomposition Orchestrator: index, detect, validate, then optionally split."""

import threading
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

from pydantic import BaseModel

from ..logger import logger, run_context
from .classifier import BoundaryClassifier
from .errors import DecompositionCancelled
from .models import (
    DecompositionMode,
    DecompositionResult,
    DecompositionState,
    Diagnostics,
    InvalidBoundaryPolicy,
    PageElement,
)
from .oracle import BoundaryOracle
from .page_index import index_by_page, total_pages
from .splitter import open_source_pdf, split_pdf
from .validator import validate_boundaries


@dataclass
class DecompositionRequest:
    """One source document for a batch run."""

    source_bytes: bytes
    elements: Sequence[PageElement]
    source_identifier: str
    mode: DecompositionMode = DecompositionMode.DETECT_ONLY
    on_invalid: InvalidBoundaryPolicy | None = None
    source_description: str | None = None


class BatchItem(BaseModel):
    """Outcome of one document in a batch: a result or the error that stopped it."""

    source_identifier: str
    result: DecompositionResult | None = None
    error: str | None = None


def _checkpoint(cancel_event: threading.Event | None, next_stage: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise DecompositionCancelled(f"decomposition cancelled before {next_stage}")


class DocumentDecomposer:
    """Runs the decomposition pipeline for one bundle at a time.

    Holds no per-run state, so one instance can serve concurrent runs for
    independent documents.
    """

    def __init__(
        self,
        oracle: BoundaryOracle,
        classifier: BoundaryClassifier | None = None,
    ):
        self.classifier = classifier or BoundaryClassifier(oracle)

    def decompose(
        self,
        source_bytes: bytes,
        elements: Sequence[PageElement],
        source_identifier: str,
        mode: DecompositionMode = DecompositionMode.DETECT_ONLY,
        on_invalid: InvalidBoundaryPolicy | None = None,
        source_description: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> DecompositionResult:
        """Decompose a bundle PDF into per-document boundaries and, optionally, artifacts.

        Args:
            source_bytes: The bundle PDF.
            elements: Page-indexed text elements extracted from the bundle.
            source_identifier: Opaque name for the source, e.g. its file name.
            mode: DETECT_ONLY returns boundaries for review; SPLIT also produces PDFs.
            on_invalid: Required with SPLIT. REFUSE skips splitting when the
                validation report has errors; SPLIT_ANYWAY splits best-effort.
            source_description: Free text passed to the classifier as context.
            cancel_event: Checked before each stage; when set the run stops
                with DecompositionCancelled and returns nothing.

        Returns:
            DecompositionResult manifest.

        Raises:
            ValueError: If SPLIT is requested without an on_invalid policy.
            EmptyInputError: If elements is empty.
            InvalidSourceError: If source_bytes is not a loadable PDF.
            DecompositionCancelled: If cancel_event is set mid-run.
        """
        if mode == DecompositionMode.SPLIT and on_invalid is None:
            raise ValueError("on_invalid must be set explicitly when mode is SPLIT")

        with run_context(source_identifier):
            return self._run(
                source_bytes,
                elements,
                source_identifier,
                mode,
                on_invalid,
                source_description,
                cancel_event,
            )

    def detect(
        self,
        source_bytes: bytes,
        elements: Sequence[PageElement],
        source_identifier: str,
        source_description: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> DecompositionResult:
        """Detect boundaries without splitting."""
        return self.decompose(
            source_bytes,
            elements,
            source_identifier,
            mode=DecompositionMode.DETECT_ONLY,
            source_description=source_description,
            cancel_event=cancel_event,
        )

    def _run(
        self,
        source_bytes: bytes,
        elements: Sequence[PageElement],
        source_identifier: str,
        mode: DecompositionMode,
        on_invalid: InvalidBoundaryPolicy | None,
        source_description: str | None,
        cancel_event: threading.Event | None,
    ) -> DecompositionResult:
        start = time.perf_counter()

        # Corrupt sources fail here, before any oracle call
        source = open_source_pdf(source_bytes)
        pdf_pages = source.page_count
        source.close()

        _checkpoint(cancel_event, "indexing")
        page_index = index_by_page(elements)
        pages = total_pages(page_index)
        logger.info(
            "elements indexed",
            state=DecompositionState.INDEXED.value,
            elements=len(elements),
            pages_with_elements=len(page_index),
            total_pages=pages,
        )

        _checkpoint(cancel_event, "detection")
        classification = self.classifier.classify(page_index, source_description)
        boundaries = classification.boundaries
        logger.debug("boundaries detected", state=DecompositionState.DETECTED.value)

        _checkpoint(cancel_event, "validation")
        report = validate_boundaries(boundaries, pages)
        logger.debug("boundaries validated", state=DecompositionState.VALIDATED.value)

        diagnostics = Diagnostics(
            element_count=len(elements),
            input_tokens=classification.input_tokens,
            output_tokens=classification.output_tokens,
            model=classification.model,
            used_fallback=classification.used_fallback,
            fallback_reason=classification.fallback_reason,
        )
        if classification.used_fallback:
            diagnostics.warnings.append(
                "boundary detection fell back to a single low-confidence boundary; "
                "review manually before splitting"
            )
        if pdf_pages != pages:
            diagnostics.warnings.append(
                f"page count mismatch: elements reach page {pages}, PDF has {pdf_pages} pages"
            )
            logger.warn("page count mismatch", element_pages=pages, pdf_pages=pdf_pages)

        artifacts = None
        if mode == DecompositionMode.DETECT_ONLY:
            state = DecompositionState.DETECT_ONLY_COMPLETE
        elif not report.valid and on_invalid == InvalidBoundaryPolicy.REFUSE:
            diagnostics.split_refused = True
            diagnostics.warnings.append(
                f"split refused: validation reported {len(report.errors)} error(s)"
            )
            logger.warn("split refused on invalid boundaries", errors=len(report.errors))
            state = DecompositionState.DETECT_ONLY_COMPLETE
        else:
            _checkpoint(cancel_event, "splitting")
            split = split_pdf(source_bytes, boundaries, cancel_event=cancel_event)
            artifacts = split.artifacts
            diagnostics.skipped_boundaries = split.skipped
            state = DecompositionState.SPLIT

        diagnostics.processing_time_ms = round((time.perf_counter() - start) * 1000, 2)

        logger.info(
            "decomposition complete",
            state=state.value,
            total_pages=pages,
            boundaries=len(boundaries),
            valid=report.valid,
            artifacts=len(artifacts) if artifacts is not None else None,
            used_fallback=diagnostics.used_fallback,
            duration_ms=diagnostics.processing_time_ms,
        )

        return DecompositionResult(
            source_identifier=source_identifier,
            total_pages=pages,
            boundaries=boundaries,
            validation=report,
            state=state,
            diagnostics=diagnostics,
            artifacts=artifacts,
        )

    def decompose_batch(
        self,
        requests: Sequence[DecompositionRequest],
        max_workers: int = 4,
        cancel_event: threading.Event | None = None,
    ) -> list[BatchItem]:
        """Decompose independent bundles in parallel.

        max_workers also bounds the number of concurrent oracle calls. A
        failure in one document is recorded on its BatchItem and does not
        stop the others. Setting cancel_event stops every run at its next
        stage boundary; cancelled runs are recorded as errors.

        Returns:
            BatchItems in the same order as requests.
        """
        total = len(requests)
        if total == 0:
            return []

        logger.info("starting batch decomposition", total=total, max_workers=max_workers)
        start = time.perf_counter()
        items: dict[int, BatchItem] = {}

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_index = {
                executor.submit(
                    self.decompose,
                    req.source_bytes,
                    req.elements,
                    req.source_identifier,
                    mode=req.mode,
                    on_invalid=req.on_invalid,
                    source_description=req.source_description,
                    cancel_event=cancel_event,
                ): i
                for i, req in enumerate(requests)
            }

            for future in as_completed(future_to_index):
                idx = future_to_index[future]
                identifier = requests[idx].source_identifier
                try:
                    items[idx] = BatchItem(source_identifier=identifier, result=future.result())
                except Exception as e:
                    logger.exception(
                        "failed to decompose document",
                        source_file=identifier,
                        error=str(e),
                    )
                    items[idx] = BatchItem(source_identifier=identifier, error=str(e))

        results = [items[i] for i in range(total)]
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "batch decomposition complete",
            total=total,
            failed=sum(1 for r in results if r.error),
            duration_ms=round(duration_ms, 2),
        )
        return results
