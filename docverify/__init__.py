"""Proof-document verification text extraction.

Reads the embedded text layer of submitted PDFs, falls back to poppler
rasterization plus Tesseract OCR for scanned pages, and applies
document-type heuristics to surface institution names, identifiers,
years, programs, and fee amounts for review.
"""

__version__ = "1.0.0"
