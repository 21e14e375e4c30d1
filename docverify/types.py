"""Data model shared by every pipeline stage.

All values are built fresh for each extraction request and handed back
to the caller; nothing here is persisted.
"""

from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Any


class DocumentType(StrEnum):
    """Kinds of proof document accepted for verification."""

    STUDENT_ID = "student_id"
    ADMISSION_LETTER = "admission_letter"
    FEE_RECEIPT = "fee_receipt"


class ExtractionMethod(StrEnum):
    """How the document text was obtained."""

    DIRECT = "direct"
    OCR = "ocr"
    PARTIAL = "partial"


class ConfidenceLevel(StrEnum):
    """Coarse trust flag derived from the amount of recovered text."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class Capability:
    """Availability of an optional external tool."""

    name: str
    available: bool
    reason: str | None = None

    @classmethod
    def present(cls, name: str) -> "Capability":
        return cls(name=name, available=True)

    @classmethod
    def missing(cls, name: str, reason: str) -> "Capability":
        return cls(name=name, available=False, reason=reason)


@dataclass
class PageOutcome:
    """Result of rasterizing and recognizing one page."""

    page_number: int
    text: str | None = None
    confidence: float | None = None
    word_count: int = 0
    line_count: int = 0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """True when the page produced non-empty recognized text."""
        return self.error is None and bool(self.text and self.text.strip())


@dataclass
class ExtractionResult:
    """Document-level text plus confidence for one extraction run."""

    text: str
    confidence: float
    page_count: int
    processed_page_count: int
    method: ExtractionMethod
    word_count: int
    line_count: int
    rasterizer: Capability | None = None
    error: str | None = None


@dataclass
class AnalysisResult:
    """Heuristic fields recovered from the extracted text."""

    text_length: int
    word_count: int
    has_content: bool
    confidence_level: ConfidenceLevel
    detected_institution: str | None = None
    detected_fields: dict[str, str] = field(default_factory=dict)


@dataclass
class DocumentReport:
    """Outcome of one pipeline run, successful or not."""

    success: bool
    source_file: str
    document_type: str
    extraction: ExtractionResult | None = None
    analysis: AnalysisResult | None = None
    error: str | None = None
    processing_time: str = ""
    elapsed_ms: float = 0.0

    @classmethod
    def failure(
        cls,
        source_file: str,
        document_type: str,
        error: str,
        processing_time: str = "",
        elapsed_ms: float = 0.0,
    ) -> "DocumentReport":
        return cls(
            success=False,
            source_file=source_file,
            document_type=document_type,
            error=error,
            processing_time=processing_time,
            elapsed_ms=elapsed_ms,
        )

    def to_dict(self) -> dict[str, Any]:
        """Flatten the report into a JSON-serializable response payload."""
        if not self.success or self.extraction is None or self.analysis is None:
            return {
                "success": False,
                "error": self.error,
                "extracted_text": "",
                "confidence": 0,
            }

        extraction = self.extraction
        analysis = self.analysis
        return {
            "success": True,
            "extracted_text": extraction.text,
            "text_length": len(extraction.text),
            "confidence": extraction.confidence,
            "word_count": analysis.word_count,
            "line_count": extraction.line_count,
            "detected_institution": analysis.detected_institution,
            "detected_fields": dict(analysis.detected_fields),
            "confidence_level": str(analysis.confidence_level),
            "page_count": extraction.page_count,
            "processed_page_count": extraction.processed_page_count,
            "method": str(extraction.method),
            "processing_time": self.processing_time,
            "error": extraction.error,
            "rasterizer": (
                asdict(extraction.rasterizer) if extraction.rasterizer else None
            ),
        }
