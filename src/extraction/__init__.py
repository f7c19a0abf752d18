"""Reference-document text extraction."""

from .pdf import PdfTextExtractor, TextExtractor, extract_pdf_text

__all__ = ["PdfTextExtractor", "TextExtractor", "extract_pdf_text"]
