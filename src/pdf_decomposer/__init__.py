"""Decompose bundled multi-document PDFs into per-document artifacts."""

__version__ = "0.1.0"
