"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel

from docverify.types import DocumentType


class ExtractTextRequest(BaseModel):
    """Request body for extracting text from an already stored file."""

    file_path: str | None = None
    document_type: str | None = None


class CapabilityResponse(BaseModel):
    name: str
    available: bool
    reason: str | None = None


class ExtractionData(BaseModel):
    """Extraction and analysis results for one document."""

    success: bool
    extracted_text: str
    text_length: int
    confidence: float
    word_count: int
    line_count: int
    detected_institution: str | None = None
    detected_fields: dict[str, str]
    confidence_level: str
    page_count: int
    processed_page_count: int
    method: str
    processing_time: str
    error: str | None = None
    rasterizer: CapabilityResponse | None = None


class ExtractionResponse(BaseModel):
    """Response envelope for an extraction request."""

    success: bool
    message: str
    data: ExtractionData | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    rasterizer_available: bool
    document_types: list[DocumentType]
