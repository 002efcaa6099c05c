"""Boundary Classifier Adapter: page synopses in, candidate boundaries out."""

import json
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from pydantic import ValidationError

from ..logger import logger
from .errors import OracleParseError, OracleUnavailableError
from .models import DocumentBoundary, DocumentType, PageElement, PageSynopsis
from .oracle import BoundaryOracle
from .page_index import build_synopses, total_pages

FALLBACK_CONFIDENCE = 0.1
FALLBACK_TITLE = "Unprocessed Document Bundle"
FALLBACK_DESCRIPTION = "Boundary detection failed; the whole bundle is treated as one document"

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?(.*?)```", re.DOTALL)

SYSTEM_PROMPT = """You split bundled public-records PDFs into their component documents.

Records custodians often concatenate unrelated material into one file: police reports,
email chains, text-message screenshots, photos, memos, court filings and medical records,
with no separators and sometimes in deliberately confusing order. You decide where each
logical document starts and ends. You never summarise beyond what is asked and you answer
with JSON only."""

PROMPT_TEMPLATE = """{source_line}The bundle has {page_count} pages. Each entry below summarises one page:
its titles, its headers and the opening of its first paragraph.

{synopses}

Find the document boundaries.

A new document starts where you see a break in any of:
- topic or subject
- document type (for example report to email to photos)
- case number
- incident date
- header or letterhead formatting
- email sender/recipient set

Keep these together as one document unless the case or the people involved clearly change:
- an email chain spanning several pages
- a multi-page report (never split a report mid-way)
- a run of related photos
- an email together with the report or file attached to it

When unsure whether to split, do not split. A missed boundary is cheaper than a false one.

Every page from 1 to {page_count} must belong to exactly one document, in order.

Return a JSON array, ordered by start_page, where each object has:
- start_page: first page (1-based)
- end_page: last page (inclusive)
- document_type: one of {document_types}
- title: short descriptive title
- description: one or two sentences on the content
- confidence: 0 to 1, how sure you are of this boundary
- case_number: if one is visible, else omit
- incident_date: YYYY-MM-DD if identifiable, else omit
- subjects: people or topics in this document

Example:
[
  {{"start_page": 1, "end_page": 12, "document_type": "police-report",
    "title": "Incident Report 25-04417", "description": "Officer narrative of a harassment complaint.",
    "confidence": 0.93, "case_number": "25-04417", "incident_date": "2025-03-02",
    "subjects": ["J. Alvarez", "Harassment complaint"]}},
  {{"start_page": 13, "end_page": 17, "document_type": "email",
    "title": "Email Chain - Records Unit and Complainant", "description": "Scheduling a follow-up interview.",
    "confidence": 0.88, "subjects": ["Records Unit", "J. Alvarez"]}}
]"""


@dataclass
class ClassificationResult:
    """Candidate boundaries plus the accounting for the oracle call."""

    boundaries: list[DocumentBoundary] = field(default_factory=list)
    input_tokens: int = 0
    output_tokens: int = 0
    model: str | None = None
    used_fallback: bool = False
    fallback_reason: str | None = None


def fallback_boundary(page_count: int) -> DocumentBoundary:
    """Single low-confidence boundary covering the whole bundle."""
    return DocumentBoundary(
        start_page=1,
        end_page=page_count,
        document_type=DocumentType.OTHER,
        title=FALLBACK_TITLE,
        description=FALLBACK_DESCRIPTION,
        confidence=FALLBACK_CONFIDENCE,
    )


def build_prompt(
    synopses: Sequence[PageSynopsis],
    page_count: int,
    source_description: str | None = None,
) -> str:
    """Render the classification request for a list of page synopses."""
    source_line = f"Source: {source_description}\n\n" if source_description else ""
    return PROMPT_TEMPLATE.format(
        source_line=source_line,
        page_count=page_count,
        synopses=json.dumps([s.model_dump() for s in synopses], indent=2),
        document_types=", ".join(t.value for t in DocumentType),
    )


def extract_json_payload(text: str):
    """Return the first well-formed JSON array or object in a response.

    Fenced code blocks are tried first, then the raw text, so prose around
    the JSON is ignored.
    """
    candidates = [m.group(1) for m in _FENCE_RE.finditer(text)]
    candidates.append(text)

    decoder = json.JSONDecoder()
    for candidate in candidates:
        for i, ch in enumerate(candidate):
            if ch not in "[{":
                continue
            try:
                payload, _ = decoder.raw_decode(candidate, i)
            except json.JSONDecodeError:
                continue
            return payload

    raise OracleParseError("no JSON array or object found in oracle response")


def parse_boundaries(text: str) -> list[DocumentBoundary]:
    """Parse an oracle response into boundaries sorted by start page.

    Raises:
        OracleParseError: If no JSON is present or any boundary object is invalid.
    """
    payload = extract_json_payload(text)

    if isinstance(payload, dict):
        items = payload.get("boundaries", [payload])
    else:
        items = payload

    if not isinstance(items, list) or not items:
        raise OracleParseError("oracle response contains no boundary objects")

    boundaries = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise OracleParseError(f"boundary {i} is not an object")
        try:
            boundaries.append(DocumentBoundary.model_validate(item))
        except ValidationError as e:
            raise OracleParseError(f"boundary {i} is invalid: {e}") from e

    return sorted(boundaries, key=lambda b: b.start_page)


class BoundaryClassifier:
    """Ask the oracle for document boundaries, falling back to one boundary on failure."""

    def __init__(self, oracle: BoundaryOracle, system_prompt: str | None = None):
        self.oracle = oracle
        self.system_prompt = system_prompt or SYSTEM_PROMPT

    def classify(
        self,
        page_index: Mapping[int, Sequence[PageElement]],
        source_description: str | None = None,
    ) -> ClassificationResult:
        """Detect candidate boundaries for an indexed bundle.

        Never raises for oracle problems: an unreachable oracle or an
        unparseable answer yields the whole-bundle fallback boundary.
        No retry is attempted; re-running with the same input is safe.
        """
        page_count = total_pages(page_index)
        synopses = build_synopses(page_index)
        prompt = build_prompt(synopses, page_count, source_description)

        logger.info(
            "requesting boundary classification",
            pages=page_count,
            synopses=len(synopses),
            prompt_length=len(prompt),
        )

        try:
            response = self.oracle.complete(self.system_prompt, prompt)
        except (OracleUnavailableError, OracleParseError) as e:
            return self._fallback(page_count, str(e))
        except Exception as e:
            return self._fallback(page_count, f"{type(e).__name__}: {e}")

        try:
            boundaries = parse_boundaries(response.text)
        except OracleParseError as e:
            result = self._fallback(page_count, str(e))
            result.input_tokens = response.input_tokens
            result.output_tokens = response.output_tokens
            result.model = response.model
            return result

        logger.info(
            "boundaries detected",
            count=len(boundaries),
            pages=page_count,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
        )
        return ClassificationResult(
            boundaries=boundaries,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
            model=response.model,
        )

    def _fallback(self, page_count: int, reason: str) -> ClassificationResult:
        logger.warn(
            "boundary detection failed, using whole-bundle fallback",
            pages=page_count,
            error=reason,
        )
        return ClassificationResult(
            boundaries=[fallback_boundary(page_count)],
            used_fallback=True,
            fallback_reason=reason,
        )
