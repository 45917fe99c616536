"""Text extraction from uploaded PDFs."""

import io
import logging
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from research_lens.config import settings
from research_lens.errors import DocumentError

logger = logging.getLogger(__name__)


def extract_pdf_text(
    source: bytes | str | Path,
    max_pages: int | None = None,
    filename: str | None = None,
) -> str:
    """
    Extract the text of the first pages of a PDF.
    
    Page texts are joined with single spaces.
    
    Args:
        source: PDF bytes or a path to a PDF file.
        max_pages: Pages to read (defaults to settings.max_pdf_pages).
        filename: Original filename, for error reporting.
        
    Returns:
        Concatenated page text.
        
    Raises:
        DocumentError: If the PDF cannot be opened or read.
    """
    limit = max_pages or settings.max_pdf_pages
    
    try:
        if isinstance(source, (bytes, bytearray)):
            reader = PdfReader(io.BytesIO(source))
        else:
            reader = PdfReader(str(source))
        
        parts = []
        for page in reader.pages[:limit]:
            parts.append(page.extract_text() or "")
    except (PdfReadError, OSError, ValueError, KeyError, TypeError) as e:
        logger.warning(f"Failed to read PDF {filename or ''}: {e}")
        raise DocumentError("Failed to extract text from PDF.", filename=filename) from e
    
    text = " ".join(parts)
    logger.info(f"Extracted {len(text)} characters from {min(len(parts), limit)} pages")
    return text
