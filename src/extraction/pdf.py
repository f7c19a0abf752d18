"""Text extraction from uploaded reference documents."""

import asyncio
import logging
from pathlib import Path
from typing import Protocol

from pypdf import PdfReader

logger = logging.getLogger(__name__)


class TextExtractor(Protocol):
    """Anything that reads the text out of an uploaded document."""

    async def extract(self, path: Path) -> str:
        ...


def extract_pdf_text(path: Path) -> str:
    """
    Extract plain text from a PDF file using pypdf.

    Args:
        path: Path of the PDF on disk

    Returns:
        Text of all pages joined by newlines, stripped

    Raises:
        pypdf.errors.PyPdfError: If the file is not a readable PDF
    """
    reader = PdfReader(path)
    texts = []
    for page in reader.pages:
        text = page.extract_text()
        if text and text.strip():
            texts.append(text.strip())
    return "\n".join(texts).strip()


class PdfTextExtractor:
    """Runs pypdf in a worker thread so the event loop stays free."""

    async def extract(self, path: Path) -> str:
        text = await asyncio.to_thread(extract_pdf_text, path)
        logger.info("Extracted %d characters from %s", len(text), path.name)
        return text
