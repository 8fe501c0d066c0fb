"""
DOCUMENT TEXT EXTRACTOR
=======================

Turns an uploaded PDF or DOCX into plain text for POST /chat/document.
The parsing itself is done by pypdf and python-docx; this module only decides
which one to call and how their failures are reported.

  application/pdf  -> pypdf, text of every page joined with newlines
  DOCX MIME type   -> python-docx, text of every paragraph joined with newlines
  anything else    -> UnsupportedFormatError naming the MIME type

Library failures become ExtractionError. Nothing is retried.
"""

import io
import logging
from typing import Callable, Dict

import docx
from pypdf import PdfReader

from gateway.errors import ExtractionError, UnsupportedFormatError

logger = logging.getLogger("GATEWAY")

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _extract_pdf(buffer: bytes) -> str:
    reader = PdfReader(io.BytesIO(buffer))
    return "\n".join((page.extract_text() or "") for page in reader.pages)


def _extract_docx(buffer: bytes) -> str:
    document = docx.Document(io.BytesIO(buffer))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


_EXTRACTORS: Dict[str, Callable[[bytes], str]] = {
    PDF_MIME_TYPE: _extract_pdf,
    DOCX_MIME_TYPE: _extract_docx,
}


def extract_text(buffer: bytes, mime_type: str) -> str:
    """
    Extract plain text from buffer according to mime_type.

    Raises:
        UnsupportedFormatError: mime_type is neither PDF nor DOCX.
        ExtractionError: the underlying library could not read the file.
    """
    extractor = _EXTRACTORS.get(mime_type)
    if extractor is None:
        raise UnsupportedFormatError(mime_type)

    try:
        text = extractor(buffer)
    except Exception as e:
        logger.warning("Text extraction failed for %s: %s", mime_type, e)
        raise ExtractionError(f"Failed to extract text: {e}") from e

    logger.info("Extracted %d characters from %s upload", len(text), mime_type)
    return text
