"""Configuration management for the docverify pipeline.

Loads and validates YAML configuration with defaults for the OCR engine,
the PDF rasterizer, and the extraction pipeline policy.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class OCRConfig(BaseModel):
    """Configuration for the Tesseract OCR engine."""

    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    psm: int = 3


class RasterizerConfig(BaseModel):
    """Configuration for PDF page rasterization through poppler."""

    dpi: int = Field(default=300, gt=0)
    max_width: int = Field(default=2000, gt=0)
    max_height: int = Field(default=2000, gt=0)
    max_pages: int = Field(default=5, ge=1)
    probe_command: list[str] = Field(default_factory=lambda: ["pdftoppm", "-v"])
    poppler_path: str | None = None


class PipelineConfig(BaseModel):
    """Fallback policy and resource limits for one extraction run."""

    direct_text_threshold: int = 100
    direct_confidence: float = Field(default=95.0, ge=0.0, le=100.0)
    partial_confidence: float = Field(default=50.0, ge=0.0, le=100.0)
    run_timeout_seconds: float = Field(default=120.0, gt=0.0)
    temp_dir: str | None = None
    supported_extensions: list[str] = Field(
        default_factory=lambda: [".pdf", ".jpg", ".jpeg", ".png"]
    )


class AppConfig(BaseModel):
    """Top-level application configuration."""

    ocr: OCRConfig = Field(default_factory=OCRConfig)
    rasterizer: RasterizerConfig = Field(default_factory=RasterizerConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
