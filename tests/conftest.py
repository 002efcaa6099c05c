"""Shared fixtures: in-memory bundle PDFs and a scripted oracle."""

import json

import fitz  # PyMuPDF
import pytest

from pdf_decomposer.engine import BoundaryOracle, OracleResponse, PageElement


class StaticOracle(BoundaryOracle):
    """Oracle that returns a fixed response or raises a fixed error."""

    def __init__(
        self,
        text: str = "[]",
        error: Exception | None = None,
        input_tokens: int = 1200,
        output_tokens: int = 300,
        on_call=None,
    ):
        self.text = text
        self.error = error
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens
        self.on_call = on_call
        self.calls: list[tuple[str, str]] = []

    def complete(self, system_prompt: str, prompt: str) -> OracleResponse:
        self.calls.append((system_prompt, prompt))
        if self.on_call:
            self.on_call()
        if self.error:
            raise self.error
        return OracleResponse(
            text=self.text,
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
            model="static-test-oracle",
        )


def boundaries_json(*ranges: tuple[int, int], document_type: str = "police-report") -> str:
    """Oracle-style JSON array for the given page ranges."""
    return json.dumps(
        [
            {
                "start_page": start,
                "end_page": end,
                "document_type": document_type,
                "title": f"Document {start}-{end}",
                "description": f"Pages {start} to {end}",
                "confidence": 0.9,
            }
            for start, end in ranges
        ]
    )


def make_pdf(page_texts: list[str]) -> bytes:
    """Build a PDF with one page per text."""
    doc = fitz.open()
    for text in page_texts:
        page = doc.new_page()
        page.insert_text((72, 72), text, fontsize=12, fontname="helv")
    data = doc.tobytes()
    doc.close()
    return data


def page_text(pdf_bytes: bytes, index: int) -> str:
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    try:
        return doc[index].get_text()
    finally:
        doc.close()


def page_count(pdf_bytes: bytes) -> int:
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    try:
        return doc.page_count
    finally:
        doc.close()


@pytest.fixture(scope="module")
def bundle_pdf() -> bytes:
    """Ten-page bundle whose page N reads 'Bundle page N'."""
    return make_pdf([f"Bundle page {n}" for n in range(1, 11)])


@pytest.fixture
def bundle_elements() -> list[PageElement]:
    """One title and one narrative element per page of the ten-page bundle."""
    elements = []
    for n in range(1, 11):
        elements.append(PageElement(type="Title", text=f"Section {n}", page_number=n))
        elements.append(
            PageElement(type="NarrativeText", text=f"Bundle page {n}", page_number=n)
        )
    return elements
