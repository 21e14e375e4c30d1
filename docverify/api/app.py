"""FastAPI application exposing the extraction pipeline.

Maps pipeline reports onto HTTP responses; the pipeline itself never
raises, so status codes are decided here from the report contents.
"""

import shutil
from pathlib import Path
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from docverify import __version__
from docverify.ocr.document_processor import DocumentProcessor
from docverify.ocr.tesseract_engine import TesseractEngine
from docverify.types import DocumentReport, DocumentType
from docverify.utils.config import load_config
from docverify.utils.logger import get_logger

from .schemas import ExtractionData, ExtractionResponse, ExtractTextRequest, HealthResponse

logger = get_logger(__name__)

app = FastAPI(
    title="Proof Document Verification API",
    description="Extract text and key fields from student ID cards, "
    "admission letters, and fee receipts",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_processor() -> DocumentProcessor:
    """Build a processor with its own workspace for one request."""
    return DocumentProcessor(load_config())


def _to_response(report: DocumentReport) -> ExtractionResponse:
    if not report.success:
        logger.error("Extraction failed for %s: %s", report.source_file, report.error)
        raise HTTPException(status_code=500, detail=report.error or "OCR extraction failed")
    return ExtractionResponse(
        success=True,
        message="Text extracted successfully",
        data=ExtractionData(**report.to_dict()),
    )


@app.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return system health and optional tool availability."""
    processor = _get_processor()
    try:
        rasterizer = processor.pdf_handler.check_available()
    finally:
        processor.close()
    return HealthResponse(
        status="healthy",
        version=__version__,
        tesseract_available=TesseractEngine.is_available(),
        rasterizer_available=rasterizer.available,
        document_types=list(DocumentType),
    )


@app.post("/api/documents/extract-text", response_model=ExtractionResponse)
def extract_text(request: ExtractTextRequest) -> ExtractionResponse:
    """Extract text from a document that is already on disk.

    Args:
        request: Path of the stored file and its declared document type.

    Returns:
        Extraction and analysis results.
    """
    if not request.file_path or not request.document_type:
        raise HTTPException(
            status_code=400, detail="file_path and document_type are required"
        )
    if request.document_type not in {t.value for t in DocumentType}:
        raise HTTPException(status_code=400, detail="Invalid document type")

    path = Path(request.file_path)
    if not path.exists():
        raise HTTPException(status_code=404, detail="File not found")

    logger.info("Starting OCR extraction for: %s", path)
    with _get_processor() as processor:
        report = processor.process(path, request.document_type)
    return _to_response(report)


@app.post("/extract", response_model=ExtractionResponse)
async def extract_upload(
    file: Annotated[UploadFile, File(...)],
    document_type: Annotated[DocumentType, Query()],
) -> ExtractionResponse:
    """Extract text from an uploaded document.

    The upload only lives in the request's workspace and is deleted once
    the run completes.

    Args:
        file: Uploaded PDF, JPEG, or PNG document.
        document_type: Declared type of the proof document.

    Returns:
        Extraction and analysis results.
    """
    suffix = Path(file.filename or "").suffix.lower()
    processor = _get_processor()
    try:
        if suffix not in processor.config.pipeline.supported_extensions:
            raise HTTPException(
                status_code=400, detail=f"Unsupported file format: {suffix or '<none>'}"
            )

        upload_path = processor.workspace.new_path(prefix="upload", suffix=suffix)
        with open(upload_path, "wb") as out:
            shutil.copyfileobj(file.file, out)
        try:
            report = await run_in_threadpool(
                processor.process, upload_path, document_type, file.filename
            )
        finally:
            processor.workspace.release(upload_path)
    finally:
        processor.close()

    return _to_response(report)
