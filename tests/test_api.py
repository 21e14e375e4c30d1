"""Tests for the FastAPI REST endpoints."""

import io
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from docverify.api.app import app
from docverify.ocr.document_processor import DocumentProcessor
from docverify.ocr.pdf_handler import PDFHandler
from docverify.types import (
    AnalysisResult,
    Capability,
    ConfidenceLevel,
    DocumentReport,
    ExtractionMethod,
    ExtractionResult,
)
from docverify.utils.config import AppConfig


def _success_report() -> DocumentReport:
    return DocumentReport(
        success=True,
        source_file="receipt.pdf",
        document_type="fee_receipt",
        extraction=ExtractionResult(
            text="ABC College\nTotal: 12,500",
            confidence=95.0,
            page_count=1,
            processed_page_count=1,
            method=ExtractionMethod.DIRECT,
            word_count=4,
            line_count=2,
        ),
        analysis=AnalysisResult(
            text_length=25,
            word_count=4,
            has_content=False,
            confidence_level=ConfidenceLevel.LOW,
            detected_institution="ABC College",
            detected_fields={"amount": "12500"},
        ),
        processing_time="2026-01-01T00:00:00+00:00",
    )


@pytest.fixture
def client() -> TestClient:
    """Create a FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def processor(app_config: AppConfig) -> Iterator[DocumentProcessor]:
    """A real processor whose pipeline run is replaced by a mock."""
    proc = DocumentProcessor(app_config)
    proc.process = MagicMock(return_value=_success_report())
    proc.pdf_handler = MagicMock(spec=PDFHandler)
    proc.pdf_handler.check_available.return_value = Capability.present("poppler")
    with patch("docverify.api.app._get_processor", return_value=proc):
        yield proc
    proc.close()


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health_returns_ok(self, client: TestClient, processor: DocumentProcessor) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["rasterizer_available"] is True
        assert isinstance(data["tesseract_available"], bool)
        assert data["document_types"] == ["student_id", "admission_letter", "fee_receipt"]


class TestExtractTextEndpoint:
    """Tests for /api/documents/extract-text."""

    def test_success(
        self, client: TestClient, processor: DocumentProcessor, tmp_path: Path
    ) -> None:
        doc = tmp_path / "receipt.pdf"
        doc.write_bytes(b"%PDF-1.4")

        response = client.post(
            "/api/documents/extract-text",
            json={"file_path": str(doc), "document_type": "fee_receipt"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Text extracted successfully"
        assert body["data"]["detected_fields"] == {"amount": "12500"}
        assert body["data"]["method"] == "direct"
        processor.process.assert_called_once_with(doc, "fee_receipt")

    def test_missing_fields(self, client: TestClient, processor: DocumentProcessor) -> None:
        response = client.post("/api/documents/extract-text", json={"document_type": "student_id"})
        assert response.status_code == 400
        processor.process.assert_not_called()

    def test_invalid_document_type(
        self, client: TestClient, processor: DocumentProcessor, tmp_path: Path
    ) -> None:
        response = client.post(
            "/api/documents/extract-text",
            json={"file_path": str(tmp_path / "a.pdf"), "document_type": "passport"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid document type"

    def test_file_not_found(
        self, client: TestClient, processor: DocumentProcessor, tmp_path: Path
    ) -> None:
        response = client.post(
            "/api/documents/extract-text",
            json={"file_path": str(tmp_path / "gone.pdf"), "document_type": "student_id"},
        )
        assert response.status_code == 404

    def test_pipeline_failure_maps_to_500(
        self, client: TestClient, processor: DocumentProcessor, tmp_path: Path
    ) -> None:
        doc = tmp_path / "broken.pdf"
        doc.write_bytes(b"junk")
        processor.process.return_value = DocumentReport.failure(
            "broken.pdf", "student_id", "Unable to parse PDF broken.pdf"
        )

        response = client.post(
            "/api/documents/extract-text",
            json={"file_path": str(doc), "document_type": "student_id"},
        )

        assert response.status_code == 500
        assert response.json()["detail"] == "Unable to parse PDF broken.pdf"


class TestUploadEndpoint:
    """Tests for /extract."""

    def test_upload_success(self, client: TestClient, processor: DocumentProcessor) -> None:
        response = client.post(
            "/extract",
            params={"document_type": "fee_receipt"},
            files={"file": ("receipt.pdf", io.BytesIO(b"%PDF-1.4"), "application/pdf")},
        )

        assert response.status_code == 200
        assert response.json()["data"]["detected_institution"] == "ABC College"
        upload_path = processor.process.call_args.args[0]
        assert upload_path.suffix == ".pdf"
        assert not upload_path.exists()

    def test_upload_unsupported_format(
        self, client: TestClient, processor: DocumentProcessor
    ) -> None:
        response = client.post(
            "/extract",
            params={"document_type": "student_id"},
            files={"file": ("card.gif", io.BytesIO(b"GIF89a"), "image/gif")},
        )
        assert response.status_code == 400
        processor.process.assert_not_called()

    def test_upload_invalid_document_type(
        self, client: TestClient, processor: DocumentProcessor
    ) -> None:
        response = client.post(
            "/extract",
            params={"document_type": "passport"},
            files={"file": ("card.png", io.BytesIO(b"png"), "image/png")},
        )
        assert response.status_code == 422
