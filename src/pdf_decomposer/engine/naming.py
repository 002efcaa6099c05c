"""Artifact Namer: deterministic, storage-safe names for split PDFs."""

import re

from .models import DocumentBoundary

MAX_NAME_LENGTH = 200
UNTITLED_SLUG = "untitled"

_UNSAFE_RUN_RE = re.compile(r"[^a-z0-9._-]+")
_DASH_RUN_RE = re.compile(r"-{2,}")


def slugify(text: str) -> str:
    """Lowercase, collapse unsafe runs to '-', and strip edge dashes."""
    slug = _UNSAFE_RUN_RE.sub("-", text.lower())
    slug = _DASH_RUN_RE.sub("-", slug)
    return slug.strip("-")


def artifact_name(boundary: DocumentBoundary) -> str:
    """Name a split PDF as {documentType}_{titleSlug}_p{start}-{end}.pdf.

    The page suffix keeps names unique within one validated run even when
    titles collide. Over-long titles are shortened so the whole name fits
    MAX_NAME_LENGTH without losing the type or page range.
    """
    prefix = f"{boundary.document_type.value}_"
    suffix = f"_p{boundary.start_page}-{boundary.end_page}.pdf"
    title_slug = slugify(boundary.title) or UNTITLED_SLUG

    room = MAX_NAME_LENGTH - len(prefix) - len(suffix)
    if len(title_slug) > room:
        title_slug = title_slug[:room].rstrip("-")

    return f"{prefix}{title_slug}{suffix}"[:MAX_NAME_LENGTH]
