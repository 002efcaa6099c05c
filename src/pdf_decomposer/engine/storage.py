"""Helpers for handing split artifacts to storage.

The engine never calls these itself; they build the keys and metadata a
storage collaborator needs and write artifacts to a local directory.
"""

from collections.abc import Sequence
from pathlib import Path, PurePosixPath

from ..logger import logger
from .models import SplitArtifact
from .naming import slugify

PDF_CONTENT_TYPE = "application/pdf"


def default_prefix(source_identifier: str) -> str:
    """Default object-store prefix for a source: decomposed/{source stem}/."""
    stem = PurePosixPath(source_identifier.replace("\\", "/")).stem
    slug = slugify(stem)
    # "." and ".." would escape the prefix
    if not slug.strip("."):
        slug = "unknown"
    return f"decomposed/{slug}/"


def artifact_key(prefix: str, artifact: SplitArtifact) -> str:
    """Object key for an artifact under a caller-chosen prefix."""
    if prefix and not prefix.endswith("/"):
        prefix = f"{prefix}/"
    return f"{prefix}{artifact.suggested_name}"


def artifact_metadata(artifact: SplitArtifact) -> dict[str, str]:
    """Custom object metadata describing an artifact's origin."""
    return {
        "content_type": PDF_CONTENT_TYPE,
        "document_type": artifact.boundary.document_type.value,
        "page_range": f"{artifact.start_page}-{artifact.end_page}",
        "confidence": str(artifact.boundary.confidence),
    }


def write_artifacts(
    artifacts: Sequence[SplitArtifact], output_dir: str | Path
) -> list[Path]:
    """Write each artifact to output_dir under its suggested name.

    Args:
        artifacts: Artifacts from a split run.
        output_dir: Target directory; created if missing.

    Returns:
        Paths written, in artifact order.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for artifact in artifacts:
        path = output_dir / artifact.suggested_name
        path.write_bytes(artifact.pdf_bytes)
        paths.append(path)
        logger.info(
            "artifact written",
            path=str(path),
            page_count=artifact.page_count,
            size_bytes=len(artifact.pdf_bytes),
        )

    return paths
