"""Embedded text-layer extraction for natively digital PDFs."""

from dataclasses import dataclass
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from docverify.errors import ParseError
from docverify.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class TextLayer:
    """Text already present in a PDF plus its page count."""

    text: str
    page_count: int


def read_text_layer(pdf_path: Path) -> TextLayer:
    """Read the embedded text of every page of a PDF.

    Args:
        pdf_path: Path to the PDF file.

    Returns:
        Page texts joined by blank lines, and the page count from the
        document structure (at least 1).

    Raises:
        ParseError: If the file is missing, unreadable, or encrypted.
    """
    path = Path(pdf_path)
    if not path.is_file():
        raise ParseError(f"PDF file not found: {path}")

    try:
        reader = PdfReader(path)
        if reader.is_encrypted and not reader.decrypt(""):
            raise ParseError(f"PDF is encrypted: {path.name}")
        pages = list(reader.pages)
    except ParseError:
        raise
    except (PyPdfError, OSError, ValueError) as exc:
        raise ParseError(f"Unable to parse PDF {path.name}: {exc}") from exc

    texts: list[str] = []
    for index, page in enumerate(pages, 1):
        try:
            texts.append(page.extract_text() or "")
        except Exception as exc:
            logger.warning("Text layer unreadable on page %d of %s: %s", index, path.name, exc)
            texts.append("")

    text = "\n\n".join(texts)
    logger.debug("Read %d chars of embedded text from %d page(s)", len(text), len(pages))
    return TextLayer(text=text, page_count=max(len(pages), 1))
