"""Shared test fixtures for the docverify test suite."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from docverify.utils.config import AppConfig, PipelineConfig


@pytest.fixture
def sample_image() -> Image.Image:
    """Create a simple synthetic grayscale test image."""
    pixels = np.zeros((200, 300), dtype=np.uint8)
    pixels[50:150, 50:250] = 255
    return Image.fromarray(pixels)


@pytest.fixture
def sample_png(tmp_path: Path, sample_image: Image.Image) -> Path:
    """Write the synthetic image to a PNG file."""
    path = tmp_path / "card.png"
    sample_image.save(path)
    return path


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """Default configuration with page images kept under tmp_path."""
    return AppConfig(pipeline=PipelineConfig(temp_dir=str(tmp_path / "work")))


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
