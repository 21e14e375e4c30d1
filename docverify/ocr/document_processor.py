"""Extraction pipeline for submitted proof documents.

Tries the embedded PDF text layer first, falls back to rasterizing and
OCR-ing the first pages when the layer is too thin, and finally runs the
document-type heuristics over whatever text was recovered. ``process``
always returns a ``DocumentReport``; faults are reported, not raised.
"""

import time
from datetime import datetime, timezone
from pathlib import Path

from docverify.errors import (
    DocverifyError,
    ExtractionTimeoutError,
    MissingDependencyError,
    PageError,
    UnsupportedFormatError,
)
from docverify.extraction.rule_extractor import RuleExtractor
from docverify.types import (
    DocumentReport,
    DocumentType,
    ExtractionMethod,
    ExtractionResult,
    PageOutcome,
)
from docverify.utils.config import AppConfig
from docverify.utils.logger import get_logger

from .aggregator import aggregate_pages
from .pdf_handler import PDFHandler
from .tesseract_engine import TesseractEngine
from .text_layer import TextLayer, read_text_layer
from .workspace import TempWorkspace

logger = get_logger(__name__)

_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png"}


def _count_words_lines(text: str) -> tuple[int, int]:
    return len(text.split()), len(text.splitlines())


class _Deadline:
    """Wall-clock budget for one run."""

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        # Never 0: pytesseract treats a zero timeout as unlimited.
        return max(self.expires_at - time.monotonic(), 0.01)

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class DocumentProcessor:
    """End-to-end text extraction and analysis for one document at a time.

    Owns a ``TempWorkspace`` for intermediate page images; call ``close()``
    or use the processor as a context manager to release it.

    Args:
        config: Application configuration object.
        workspace: Workspace to render pages into. A new one is created
            (under ``pipeline.temp_dir`` if set) when omitted.
    """

    def __init__(self, config: AppConfig, workspace: TempWorkspace | None = None) -> None:
        self.config = config
        self.pdf_handler = PDFHandler(
            dpi=config.rasterizer.dpi,
            max_width=config.rasterizer.max_width,
            max_height=config.rasterizer.max_height,
            probe_command=config.rasterizer.probe_command,
            poppler_path=config.rasterizer.poppler_path,
        )
        self.ocr_engine = TesseractEngine(
            tesseract_cmd=config.ocr.tesseract_cmd,
            default_lang=config.ocr.default_lang,
            psm=config.ocr.psm,
        )
        self.rule_extractor = RuleExtractor()
        self.workspace = workspace or TempWorkspace(config.pipeline.temp_dir)

    def __enter__(self) -> "DocumentProcessor":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.workspace.close()

    def process(
        self,
        source: Path | str,
        document_type: DocumentType | str,
        filename: str | None = None,
    ) -> DocumentReport:
        """Extract and analyze the text of one document.

        Args:
            source: Path to a PDF, JPEG, or PNG file.
            document_type: Declared type of the proof document.
            filename: Display name for the source document.

        Returns:
            A successful report with extraction and analysis results, or a
            failure report carrying the error message.
        """
        path = Path(source)
        filename = filename or path.name
        started = time.monotonic()
        logger.info("Processing document: %s (%s)", filename, path.suffix.lower())

        try:
            doc_type = DocumentType(document_type)
        except ValueError:
            message = f"Invalid document type: {document_type}"
            logger.error("Error processing document %s: %s", filename, message)
            return self._failure(filename, str(document_type), message, started)

        try:
            extraction = self.extract(path)
            analysis = self.rule_extractor.analyze(extraction.text, doc_type)
        except DocverifyError as exc:
            logger.error("Error processing document %s: %s", filename, exc)
            return self._failure(filename, str(doc_type), exc.message, started)
        except Exception as exc:
            logger.exception("Unexpected error processing document %s", filename)
            return self._failure(filename, str(document_type), str(exc), started)

        elapsed_ms = (time.monotonic() - started) * 1000
        logger.info(
            "Extracted %d chars from %s via %s (confidence %.1f) in %.0f ms",
            len(extraction.text),
            filename,
            extraction.method,
            extraction.confidence,
            elapsed_ms,
        )
        return DocumentReport(
            success=True,
            source_file=filename,
            document_type=str(doc_type),
            extraction=extraction,
            analysis=analysis,
            processing_time=_timestamp(),
            elapsed_ms=elapsed_ms,
        )

    def extract(self, path: Path) -> ExtractionResult:
        """Obtain text for a document, dispatching on its extension.

        Raises:
            UnsupportedFormatError: If the extension is not accepted.
            ParseError: If a PDF cannot be opened.
            OCRFailure: If OCR of a standalone image fails.
        """
        ext = path.suffix.lower()
        supported = {e.lower() for e in self.config.pipeline.supported_extensions}
        if ext not in supported:
            raise UnsupportedFormatError(ext)

        if ext == ".pdf":
            return self.extract_pdf(path)
        if ext in _IMAGE_EXTENSIONS:
            return self.extract_image(path)
        raise UnsupportedFormatError(ext)

    def extract_image(self, path: Path) -> ExtractionResult:
        """OCR a standalone image as a single-page document."""
        deadline = _Deadline(self.config.pipeline.run_timeout_seconds)
        result = self.ocr_engine.recognize(path, timeout=deadline.remaining(), page_number=1)
        has_text = bool(result.text.strip())
        return ExtractionResult(
            text=result.text,
            confidence=result.confidence,
            page_count=1,
            processed_page_count=1 if has_text else 0,
            method=ExtractionMethod.OCR,
            word_count=result.word_count,
            line_count=result.line_count,
        )

    def extract_pdf(self, path: Path) -> ExtractionResult:
        """Extract PDF text, preferring the embedded text layer.

        Raises:
            ParseError: If the PDF cannot be opened at all.
        """
        policy = self.config.pipeline
        deadline = _Deadline(policy.run_timeout_seconds)
        layer = read_text_layer(path)

        if len(layer.text.strip()) > policy.direct_text_threshold:
            logger.info("PDF contains selectable text, using direct extraction")
            words, lines = _count_words_lines(layer.text)
            return ExtractionResult(
                text=layer.text,
                confidence=policy.direct_confidence,
                page_count=layer.page_count,
                processed_page_count=min(layer.page_count, self.config.rasterizer.max_pages),
                method=ExtractionMethod.DIRECT,
                word_count=words,
                line_count=lines,
            )

        logger.info("PDF appears to be image-based, converting pages for OCR")
        capability = self.pdf_handler.check_available()
        if not capability.available:
            return self._partial_result(layer, MissingDependencyError(capability))

        outcomes = self._process_pages(path, layer.page_count, deadline)
        result = aggregate_pages(outcomes, layer.page_count)
        result.rasterizer = capability
        return result

    def _partial_result(self, layer: TextLayer, exc: MissingDependencyError) -> ExtractionResult:
        logger.warning("Cannot OCR image-based PDF: %s", exc.message)
        words, lines = _count_words_lines(layer.text)
        return ExtractionResult(
            text=layer.text,
            confidence=self.config.pipeline.partial_confidence,
            page_count=layer.page_count,
            processed_page_count=0,
            method=ExtractionMethod.PARTIAL,
            word_count=words,
            line_count=lines,
            rasterizer=exc.capability,
            error=exc.message,
        )

    def _process_pages(
        self, path: Path, page_count: int, deadline: _Deadline
    ) -> list[PageOutcome]:
        pages_to_process = min(page_count, self.config.rasterizer.max_pages)
        outcomes: list[PageOutcome] = []

        for page_number in range(1, pages_to_process + 1):
            logger.info("Processing page %d/%d...", page_number, pages_to_process)
            try:
                if deadline.expired:
                    raise ExtractionTimeoutError(
                        f"extraction time budget of {deadline.seconds:g}s exceeded",
                        page_number=page_number,
                    )
                outcomes.append(self._process_page(path, page_number, deadline))
            except PageError as exc:
                logger.warning("Error processing page %d: %s", page_number, exc.message)
                outcomes.append(PageOutcome(page_number=page_number, error=exc.message))

        return outcomes

    def _process_page(self, path: Path, page_number: int, deadline: _Deadline) -> PageOutcome:
        image_path = self.workspace.new_path(prefix=f"{path.stem}_p{page_number}")
        try:
            self.pdf_handler.render_page(
                path, page_number, image_path, timeout=deadline.remaining()
            )
            result = self.ocr_engine.recognize(
                image_path, timeout=deadline.remaining(), page_number=page_number
            )
        finally:
            self.workspace.release(image_path)

        return PageOutcome(
            page_number=page_number,
            text=result.text,
            confidence=result.confidence,
            word_count=result.word_count,
            line_count=result.line_count,
        )

    @staticmethod
    def _failure(
        filename: str, document_type: str, message: str, started: float
    ) -> DocumentReport:
        return DocumentReport.failure(
            source_file=filename,
            document_type=document_type,
            error=message,
            processing_time=_timestamp(),
            elapsed_ms=(time.monotonic() - started) * 1000,
        )


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()
