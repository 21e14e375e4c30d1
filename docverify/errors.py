"""Exception taxonomy for the extraction pipeline.

Whole-document faults (``ParseError``, ``UnsupportedFormatError``) end a
run with a failure report. Page-scoped faults (``PageConversionError``,
``OCRFailure``, ``ExtractionTimeoutError``) are recorded against a single
page and never abort the document. ``MissingDependencyError`` marks an
optional tool that is not installed; the pipeline degrades instead of failing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docverify.types import Capability


class DocverifyError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown document extraction error occurred."


class ParseError(DocverifyError):
    """Raised when the document cannot be opened or parsed at all."""

    @property
    def default_message(self) -> str:
        return "Document could not be opened or parsed."


class UnsupportedFormatError(DocverifyError):
    """Raised when the file extension is outside the accepted set."""

    def __init__(self, extension: str, message: str = "") -> None:
        self.extension = extension
        super().__init__(message or f"Unsupported file format: {extension or '<none>'}")


class MissingDependencyError(DocverifyError):
    """Raised when an optional external tool is unavailable."""

    def __init__(self, capability: Capability, message: str = "") -> None:
        self.capability = capability
        super().__init__(
            message or f"{capability.name} is not available: {capability.reason}"
        )


class PageError(DocverifyError):
    """Base class for failures scoped to a single page."""

    def __init__(self, message: str = "", page_number: int | None = None) -> None:
        self.page_number = page_number
        super().__init__(message)


class PageConversionError(PageError):
    """Raised when one PDF page cannot be rasterized."""

    @property
    def default_message(self) -> str:
        return "Page conversion failed - no image generated"


class OCRFailure(PageError):
    """Raised when the OCR engine cannot recognize an image."""

    @property
    def default_message(self) -> str:
        return "OCR failed"


class ExtractionTimeoutError(PageError):
    """Raised for pages left unprocessed once the run budget is spent."""

    @property
    def default_message(self) -> str:
        return "Extraction time budget exceeded"
