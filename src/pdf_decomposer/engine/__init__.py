from .classifier import (
    BoundaryClassifier,
    ClassificationResult,
    build_prompt,
    extract_json_payload,
    fallback_boundary,
    parse_boundaries,
)
from .errors import (
    ArtifactSerializationError,
    DecompositionCancelled,
    DecompositionError,
    EmptyInputError,
    InvalidSourceError,
    OracleParseError,
    OracleUnavailableError,
)
from .extraction import extract_elements
from .models import (
    DecompositionMode,
    DecompositionResult,
    DecompositionState,
    Diagnostics,
    DocumentBoundary,
    DocumentType,
    InvalidBoundaryPolicy,
    PageElement,
    PageSynopsis,
    SkippedBoundary,
    SplitArtifact,
    ValidationReport,
)
from .naming import artifact_name, slugify
from .oracle import AnthropicOracle, BoundaryOracle, OracleResponse
from .orchestrator import BatchItem, DecompositionRequest, DocumentDecomposer
from .page_index import build_synopses, index_by_page, total_pages
from .report import format_markdown_report
from .splitter import SplitResult, split_pdf
from .storage import artifact_key, artifact_metadata, default_prefix, write_artifacts
from .validator import validate_boundaries

__all__ = [
    # Models
    "PageElement",
    "PageSynopsis",
    "DocumentBoundary",
    "DocumentType",
    "SplitArtifact",
    "SkippedBoundary",
    "ValidationReport",
    "Diagnostics",
    "DecompositionResult",
    "DecompositionMode",
    "DecompositionState",
    "InvalidBoundaryPolicy",
    # Errors
    "DecompositionError",
    "EmptyInputError",
    "InvalidSourceError",
    "OracleUnavailableError",
    "OracleParseError",
    "ArtifactSerializationError",
    "DecompositionCancelled",
    # Page index
    "index_by_page",
    "total_pages",
    "build_synopses",
    # Oracle and classifier
    "BoundaryOracle",
    "AnthropicOracle",
    "OracleResponse",
    "BoundaryClassifier",
    "ClassificationResult",
    "build_prompt",
    "extract_json_payload",
    "parse_boundaries",
    "fallback_boundary",
    # Validation, splitting, naming
    "validate_boundaries",
    "split_pdf",
    "SplitResult",
    "artifact_name",
    "slugify",
    # Orchestration
    "DocumentDecomposer",
    "DecompositionRequest",
    "BatchItem",
    # Collaborator helpers
    "extract_elements",
    "default_prefix",
    "artifact_key",
    "artifact_metadata",
    "write_artifacts",
    "format_markdown_report",
]
