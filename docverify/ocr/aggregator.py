"""Merges per-page OCR outcomes into one document-level result."""

from docverify.types import ExtractionMethod, ExtractionResult, PageOutcome
from docverify.utils.logger import get_logger

logger = get_logger(__name__)


def page_header(page_number: int) -> str:
    return f"--- Page {page_number} ---"


def aggregate_pages(outcomes: list[PageOutcome], page_count: int) -> ExtractionResult:
    """Combine page outcomes in page order.

    Successful pages contribute their text under a page header. Failed
    pages leave an inline ``[Error: ...]`` marker but are excluded from
    the counts and the confidence average. Pages that recognized no text
    are left out entirely.

    Args:
        outcomes: One outcome per attempted page.
        page_count: Total pages in the source document.

    Returns:
        ExtractionResult with ``method=ocr``.
    """
    sections: list[str] = []
    total_confidence = 0.0
    total_words = 0
    total_lines = 0
    processed = 0

    for outcome in sorted(outcomes, key=lambda o: o.page_number):
        if outcome.error is not None:
            sections.append(f"{page_header(outcome.page_number)}\n[Error: {outcome.error}]")
        elif outcome.succeeded:
            sections.append(f"{page_header(outcome.page_number)}\n{outcome.text}")
            total_confidence += outcome.confidence or 0.0
            total_words += outcome.word_count
            total_lines += outcome.line_count
            processed += 1
        else:
            logger.info("Page %d produced no text", outcome.page_number)

    confidence = total_confidence / processed if processed else 0.0

    return ExtractionResult(
        text="\n\n".join(sections),
        confidence=min(max(confidence, 0.0), 100.0),
        page_count=max(page_count, 1),
        processed_page_count=processed,
        method=ExtractionMethod.OCR,
        word_count=total_words,
        line_count=total_lines,
    )
