"""PDF page rasterization for the OCR fallback.

Renders single PDF pages to size-capped PNG files through pdf2image,
which drives the poppler command-line tools. Poppler is an optional
system dependency, so its presence is probed before any page is rendered.
"""

import subprocess
from pathlib import Path

from pdf2image import convert_from_path

from docverify.errors import PageConversionError
from docverify.types import Capability
from docverify.utils.logger import get_logger

logger = get_logger(__name__)

RASTERIZER_NAME = "poppler"


class PDFHandler:
    """Converts PDF pages to images for OCR processing.

    Args:
        dpi: Rendering resolution. Higher values produce better OCR
            results but use more memory.
        max_width: Upper bound on the rendered image width in pixels.
        max_height: Upper bound on the rendered image height in pixels.
        probe_command: Command whose successful exit proves poppler is
            installed.
        poppler_path: Directory holding the poppler binaries, if they are
            not on ``PATH``.
    """

    def __init__(
        self,
        dpi: int = 300,
        max_width: int = 2000,
        max_height: int = 2000,
        probe_command: list[str] | None = None,
        poppler_path: str | None = None,
    ) -> None:
        self.dpi = dpi
        self.max_size = (max_width, max_height)
        self.probe_command = probe_command or ["pdftoppm", "-v"]
        self.poppler_path = poppler_path

    def check_available(self) -> Capability:
        """Probe whether the poppler tools can be executed."""
        command = list(self.probe_command)
        if self.poppler_path:
            command[0] = str(Path(self.poppler_path) / command[0])
        try:
            subprocess.run(
                command,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=True,
                timeout=10,
            )
        except FileNotFoundError:
            return Capability.missing(
                RASTERIZER_NAME, f"'{command[0]}' was not found; install poppler-utils"
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as exc:
            return Capability.missing(RASTERIZER_NAME, f"'{command[0]}' probe failed: {exc}")

        logger.debug("Rasterizer probe succeeded: %s", " ".join(command))
        return Capability.present(RASTERIZER_NAME)

    def render_page(
        self,
        pdf_path: Path,
        page_number: int,
        output_path: Path,
        timeout: float | None = None,
    ) -> Path:
        """Render one page to a PNG file.

        Args:
            pdf_path: Path to the PDF file.
            page_number: 1-based page to render.
            output_path: Where to write the PNG.
            timeout: Seconds before the poppler process is killed.

        Returns:
            ``output_path`` once the image has been written.

        Raises:
            PageConversionError: If poppler produced no image for the page.
        """
        try:
            images = convert_from_path(
                str(pdf_path),
                dpi=self.dpi,
                first_page=page_number,
                last_page=page_number,
                fmt="png",
                poppler_path=self.poppler_path,
                timeout=timeout,
            )
            if not images:
                raise PageConversionError(page_number=page_number)

            image = images[0]
            image.thumbnail(self.max_size)
            image.save(output_path, format="PNG")
        except PageConversionError:
            raise
        except Exception as exc:
            raise PageConversionError(
                f"Page conversion failed: {exc}", page_number=page_number
            ) from exc

        logger.debug(
            "Rendered page %d of %s to %s (%dx%d)",
            page_number,
            Path(pdf_path).name,
            output_path.name,
            image.width,
            image.height,
        )
        return output_path
