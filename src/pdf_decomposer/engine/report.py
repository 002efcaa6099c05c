"""Markdown review report for a decomposition manifest."""

from collections.abc import Sequence

from .models import DecompositionResult, DecompositionState


def format_markdown_report(
    result: DecompositionResult, keys: Sequence[str] | None = None
) -> str:
    """Render a result as a markdown document for human review.

    Args:
        result: The manifest to render.
        keys: Optional storage keys, one per artifact in artifact order,
            shown as each document's split file.
    """
    artifact_files: dict[tuple[int, int], str] = {}
    if result.artifacts:
        for i, artifact in enumerate(result.artifacts):
            location = keys[i] if keys and i < len(keys) else artifact.suggested_name
            b = artifact.boundary
            artifact_files[(b.start_page, b.end_page)] = location

    lines = [
        "# Document Decomposition Results",
        "",
        f"**Source File**: {result.source_identifier}",
        f"**Total Pages**: {result.total_pages}",
        f"**Documents Detected**: {len(result.boundaries)}",
        f"**Processing Time**: {result.diagnostics.processing_time_ms / 1000:.1f}s",
        f"**Boundaries Valid**: {'yes' if result.validation.valid else 'no'}",
        "",
        "---",
        "",
        "## Detected Document Boundaries",
        "",
    ]

    for i, boundary in enumerate(result.boundaries, start=1):
        lines.append(f"### {i}. {boundary.title}")
        lines.append("")
        lines.append(
            f"- **Pages**: {boundary.page_range} ({boundary.page_count} pages)"
        )
        lines.append(f"- **Document Type**: {boundary.document_type.value}")
        if boundary.description:
            lines.append(f"- **Description**: {boundary.description}")
        lines.append(f"- **Confidence**: {boundary.confidence * 100:.0f}%")
        if boundary.case_number:
            lines.append(f"- **Case Number**: {boundary.case_number}")
        if boundary.incident_date:
            lines.append(f"- **Incident Date**: {boundary.incident_date.isoformat()}")
        if boundary.subjects:
            lines.append(f"- **Subjects**: {', '.join(boundary.subjects)}")
        split_file = artifact_files.get((boundary.start_page, boundary.end_page))
        if split_file:
            lines.append(f"- **Split File**: `{split_file}`")
        lines.append("")

    if result.validation.errors:
        lines.extend(["---", "", "## Validation Problems", ""])
        lines.extend(f"- {error}" for error in result.validation.errors)
        lines.append("")

    skipped = result.diagnostics.skipped_boundaries
    if skipped:
        lines.extend(["---", "", "## Skipped Boundaries", ""])
        lines.extend(
            f"- Pages {s.start_page}-{s.end_page} ({s.title}): {s.reason}" for s in skipped
        )
        lines.append("")

    if result.diagnostics.warnings:
        lines.extend(["---", "", "## Warnings", ""])
        lines.extend(f"- {w}" for w in result.diagnostics.warnings)
        lines.append("")

    lines.extend(["---", "", "## Next Steps", ""])
    if result.state == DecompositionState.SPLIT and result.artifacts:
        lines.append(
            "Split documents are ready. Process each file above as a standalone document."
        )
    elif result.diagnostics.split_refused:
        lines.append(
            "Splitting was refused because the boundaries failed validation. "
            "Correct the boundaries or re-run with an explicit split-anyway policy."
        )
    else:
        lines.append(
            "Boundaries detected. Review them, then re-run in split mode to produce the documents."
        )

    return "\n".join(lines) + "\n"
