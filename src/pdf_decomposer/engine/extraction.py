"""Local element extraction with PyMuPDF.

Produces the same element shape an external partitioning service would,
so a bundle can be decomposed without one.
"""

import statistics

import fitz  # PyMuPDF

from ..logger import logger
from .models import HEADER, LIST_ITEM, NARRATIVE_TEXT, TABLE, TITLE, PageElement
from .splitter import open_source_pdf

# Blocks whose bottom edge sits in the top band of the page are running headers
HEADER_BAND_RATIO = 0.08
HEADER_MAX_CHARS = 120
TITLE_SIZE_RATIO = 1.2
TITLE_MAX_CHARS = 100
BULLET_CHARS = "•◦▪▸►-*"


def _extract_spans_info(block_dict: dict) -> tuple[str, float, bool]:
    """Return (text, average font size, mostly bold) for a PyMuPDF text block."""
    texts = []
    font_sizes = []
    bold_count = 0

    for line in block_dict.get("lines", []):
        for span in line.get("spans", []):
            text = span.get("text", "").strip()
            if not text:
                continue
            texts.append(text)
            font_sizes.append(span.get("size", 12.0))
            flags = span.get("flags", 0)
            if (flags & 2**4) or "bold" in span.get("font", "").lower():
                bold_count += 1

    if not texts:
        return "", 12.0, False

    combined = " ".join(texts).replace("\x00", "")
    return combined, statistics.mean(font_sizes), bold_count > len(texts) / 2


def _classify_block(
    text: str,
    font_size: float,
    median_size: float,
    is_bold: bool,
    bbox: tuple[float, float, float, float] | None,
    page_height: float,
) -> str:
    stripped = text.strip()

    if (
        bbox is not None
        and page_height > 0
        and bbox[3] <= page_height * HEADER_BAND_RATIO
        and len(stripped) <= HEADER_MAX_CHARS
    ):
        return HEADER

    if stripped and (
        stripped[0] in BULLET_CHARS
        or (len(stripped) > 2 and stripped[0].isdigit() and stripped[1] in ".)")
    ):
        return LIST_ITEM

    if font_size > median_size * TITLE_SIZE_RATIO:
        return TITLE
    if is_bold and len(stripped) < TITLE_MAX_CHARS:
        return TITLE

    return NARRATIVE_TEXT


def _table_elements(page: fitz.Page, page_number: int) -> list[PageElement]:
    elements = []
    try:
        for table in page.find_tables():
            rows = table.extract()
            if not rows:
                continue
            text = "\n".join(
                " | ".join(str(cell) if cell else "" for cell in row) for row in rows
            )
            elements.append(PageElement(type=TABLE, text=text, page_number=page_number))
    except Exception as e:
        logger.warn("table extraction failed", page_number=page_number, error=str(e))
    return elements


def extract_elements(source_bytes: bytes) -> list[PageElement]:
    """Extract page-indexed elements from a PDF.

    Args:
        source_bytes: The PDF to read.

    Returns:
        Elements in reading order, each tagged with its 1-based page number.

    Raises:
        InvalidSourceError: If the bytes are not a loadable PDF.
    """
    doc = open_source_pdf(source_bytes)
    try:
        page_dicts = [page.get_text("dict") for page in doc]

        all_sizes = []
        for page_dict in page_dicts:
            for block in page_dict.get("blocks", []):
                if block.get("type") == 0:
                    text, size, _ = _extract_spans_info(block)
                    if text:
                        all_sizes.append(size)
        median_size = statistics.median(all_sizes) if all_sizes else 12.0

        elements: list[PageElement] = []
        for page_number, (page, page_dict) in enumerate(zip(doc, page_dicts), start=1):
            page_height = page.rect.height
            for block in page_dict.get("blocks", []):
                if block.get("type") != 0:  # images and other non-text blocks
                    continue
                text, font_size, is_bold = _extract_spans_info(block)
                if not text.strip():
                    continue
                bbox = block.get("bbox")
                element_type = _classify_block(
                    text, font_size, median_size, is_bold, bbox, page_height
                )
                elements.append(
                    PageElement(type=element_type, text=text, page_number=page_number)
                )
            elements.extend(_table_elements(page, page_number))

        logger.info(
            "elements extracted",
            total_pages=doc.page_count,
            elements=len(elements),
        )
        return elements
    finally:
        doc.close()
