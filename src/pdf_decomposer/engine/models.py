"""Data model for bundle decomposition."""

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_PAGE_NUMBER = 1

# Element categories produced by the upstream extractor
TITLE = "Title"
HEADER = "Header"
NARRATIVE_TEXT = "NarrativeText"
LIST_ITEM = "ListItem"
TABLE = "Table"


class DocumentType(str, Enum):
    POLICE_REPORT = "police-report"
    EMAIL = "email"
    SMS = "sms"
    PHOTO = "photo"
    MEMO = "memo"
    COURT_FILING = "court-filing"
    MEDICAL_RECORD = "medical-record"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "DocumentType":
        """Map free-form classifier output onto the closed set, defaulting to OTHER."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.OTHER
        normalized = value.strip().lower().replace("_", "-").replace(" ", "-")
        try:
            return cls(normalized)
        except ValueError:
            return cls.OTHER


class DecompositionMode(str, Enum):
    DETECT_ONLY = "detect_only"
    SPLIT = "split"


class InvalidBoundaryPolicy(str, Enum):
    """What a split run does when the validation report is not clean."""

    REFUSE = "refuse"
    SPLIT_ANYWAY = "split_anyway"


class DecompositionState(str, Enum):
    INDEXED = "indexed"
    DETECTED = "detected"
    VALIDATED = "validated"
    SPLIT = "split"
    DETECT_ONLY_COMPLETE = "detect_only_complete"


class PageElement(BaseModel):
    """One unit of extracted text with its source page."""

    model_config = ConfigDict(frozen=True)

    type: str
    text: str = ""
    page_number: int | None = None  # None when the extractor had no page metadata

    @classmethod
    def from_extractor(cls, raw: dict) -> "PageElement":
        """Build from an extractor element: {"type", "text", "metadata": {"page_number"}}."""
        metadata = raw.get("metadata") or {}
        return cls(
            type=str(raw.get("type", "")),
            text=raw.get("text") or "",
            page_number=metadata.get("page_number"),
        )


class PageSynopsis(BaseModel):
    """Compact per-page summary sent to the classifier."""

    page: int
    titles: list[str] = Field(default_factory=list)
    headers: list[str] = Field(default_factory=list)
    preview: str = ""


class DocumentBoundary(BaseModel):
    """One logical document's page range and classification.

    Page ranges are not checked here: out-of-range or inverted boundaries
    must survive parsing so the validator can report them.
    """

    start_page: int
    end_page: int
    document_type: DocumentType = DocumentType.OTHER
    title: str = Field(min_length=1)
    description: str = ""
    confidence: float = Field(ge=0.0, le=1.0)
    case_number: str | None = None
    incident_date: date | None = None
    subjects: list[str] | None = None

    @field_validator("document_type", mode="before")
    @classmethod
    def coerce_document_type(cls, v: Any) -> DocumentType:
        return DocumentType.parse(v)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("case_number", mode="before")
    @classmethod
    def blank_case_number(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("incident_date", mode="before")
    @classmethod
    def lenient_incident_date(cls, v: Any) -> date | None:
        # Dates are advisory metadata; an unreadable one is dropped, not fatal
        if v is None or isinstance(v, date):
            return v
        if isinstance(v, str):
            try:
                return date.fromisoformat(v.strip())
            except ValueError:
                return None
        return None

    @field_validator("subjects", mode="before")
    @classmethod
    def dedupe_subjects(cls, v: Any) -> Any:
        if v is None:
            return None
        if isinstance(v, str):
            v = [v]
        seen: list[str] = []
        for subject in v:
            subject = str(subject).strip()
            if subject and subject not in seen:
                seen.append(subject)
        return seen

    @property
    def page_count(self) -> int:
        return self.end_page - self.start_page + 1

    @property
    def page_range(self) -> str:
        return f"{self.start_page}-{self.end_page}"


class ValidationReport(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)


class SplitArtifact(BaseModel):
    """A standalone PDF produced from one boundary.

    ``boundary`` is the boundary as supplied; ``start_page``/``end_page``
    are the pages actually copied after clamping to the source.
    """

    boundary: DocumentBoundary
    pdf_bytes: bytes = Field(repr=False)
    suggested_name: str
    start_page: int
    end_page: int
    page_count: int


class SkippedBoundary(BaseModel):
    """A boundary the splitter could not materialize."""

    start_page: int
    end_page: int
    title: str
    reason: str


class Diagnostics(BaseModel):
    processing_time_ms: float = 0.0
    element_count: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    model: str | None = None
    used_fallback: bool = False
    fallback_reason: str | None = None
    split_refused: bool = False
    skipped_boundaries: list[SkippedBoundary] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class DecompositionResult(BaseModel):
    """Manifest returned by one orchestrator invocation."""

    source_identifier: str
    total_pages: int
    boundaries: list[DocumentBoundary]
    validation: ValidationReport
    state: DecompositionState
    diagnostics: Diagnostics = Field(default_factory=Diagnostics)
    artifacts: list[SplitArtifact] | None = None

    def manifest(self) -> dict:
        """JSON-safe view of the result without artifact payloads."""
        data = self.model_dump(mode="json", exclude={"artifacts"})
        if self.artifacts is not None:
            data["artifacts"] = [
                {
                    "suggested_name": a.suggested_name,
                    "page_count": a.page_count,
                    "start_page": a.start_page,
                    "end_page": a.end_page,
                    "size_bytes": len(a.pdf_bytes),
                }
                for a in self.artifacts
            ]
        return data
