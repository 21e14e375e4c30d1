"""Tesseract OCR engine wrapper.

Runs a single-language recognition pass over one image and reports the
text together with a 0-100 confidence and word/line counts.
"""

import shutil
from dataclasses import dataclass
from pathlib import Path

import pytesseract
from PIL import Image

from docverify.errors import OCRFailure
from docverify.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class OCRResult:
    """Recognition output for one image."""

    text: str
    confidence: float
    word_count: int
    line_count: int
    language: str


class TesseractEngine:
    """Wrapper around Tesseract OCR for page images.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: OCR language corpus used for every page.
        psm: Default Tesseract page segmentation mode.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
        psm: int = 3,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang
        self.psm = psm

    @staticmethod
    def is_available() -> bool:
        """Return whether a Tesseract binary can be found."""
        cmd = pytesseract.pytesseract.tesseract_cmd
        return shutil.which(cmd) is not None

    def recognize(
        self,
        image: Path | str | Image.Image,
        lang: str | None = None,
        psm: int | None = None,
        timeout: float = 0,
        page_number: int | None = None,
    ) -> OCRResult:
        """Recognize the text in one image.

        Args:
            image: Image file path or PIL image.
            lang: OCR language code. Defaults to the engine default.
            psm: Page segmentation mode. Defaults to the engine default.
            timeout: Seconds before Tesseract is killed; 0 means no limit.
            page_number: Page this image belongs to, for error reporting.

        Returns:
            OCRResult with text, average word confidence (0-100), and counts.

        Raises:
            OCRFailure: If the image cannot be loaded or recognized.
        """
        lang = lang or self.default_lang
        config = f"--psm {psm if psm is not None else self.psm}"

        try:
            pil_image = self._load(image)
            text = pytesseract.image_to_string(
                pil_image, lang=lang, config=config, timeout=timeout
            )
            data = pytesseract.image_to_data(
                pil_image,
                lang=lang,
                config=config,
                timeout=timeout,
                output_type=pytesseract.Output.DICT,
            )
        except Exception as exc:
            raise OCRFailure(f"OCR failed: {exc}", page_number=page_number) from exc

        total_conf = 0.0
        scored = 0
        word_count = 0
        lines: set[tuple[int, int, int]] = set()

        for i in range(len(data["text"])):
            conf = float(data["conf"][i])
            word_text = str(data["text"][i]).strip()
            if not word_text:
                continue
            word_count += 1
            lines.add((data["block_num"][i], data["par_num"][i], data["line_num"][i]))
            if conf > 0:
                total_conf += conf
                scored += 1

        avg_conf = total_conf / scored if scored else 0.0

        logger.info(
            "OCR recognized %d words on %d lines, confidence %.1f",
            word_count,
            len(lines),
            avg_conf,
        )
        return OCRResult(
            text=text,
            confidence=min(max(avg_conf, 0.0), 100.0),
            word_count=word_count,
            line_count=len(lines),
            language=lang,
        )

    @staticmethod
    def _load(image: Path | str | Image.Image) -> Image.Image:
        if isinstance(image, Image.Image):
            return image
        with Image.open(image) as img:
            img.load()
            return img.copy()
