import io

import docx
import pytest
from pypdf import PdfWriter

from gateway.errors import ExtractionError, UnsupportedFormatError
from gateway.services.document_extractor import DOCX_MIME_TYPE, PDF_MIME_TYPE, extract_text


def _docx_bytes(*paragraphs: str) -> bytes:
    document = docx.Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _blank_pdf_bytes() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def test_docx_paragraphs_are_joined():
    text = extract_text(_docx_bytes("First line", "Second line"), DOCX_MIME_TYPE)
    assert text == "First line\nSecond line"


def test_blank_pdf_yields_empty_text():
    assert extract_text(_blank_pdf_bytes(), PDF_MIME_TYPE).strip() == ""


@pytest.mark.parametrize("mime_type", ["text/plain", "image/png", ""])
def test_unsupported_mime_type_is_named(mime_type):
    with pytest.raises(UnsupportedFormatError) as excinfo:
        extract_text(b"whatever", mime_type)
    assert excinfo.value.mime_type == mime_type
    assert excinfo.value.message == f"Unsupported file type: {mime_type}"


def test_corrupt_docx_raises_extraction_error():
    with pytest.raises(ExtractionError, match="Failed to extract text"):
        extract_text(b"not a zip archive", DOCX_MIME_TYPE)


def test_corrupt_pdf_raises_extraction_error():
    with pytest.raises(ExtractionError):
        extract_text(b"definitely not a pdf", PDF_MIME_TYPE)
