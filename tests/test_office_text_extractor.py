"""Tests for text extraction from office-interchange files."""

import io

import fitz
import openpyxl
import pptx
import pytest

from shared.clients.source.OfficeTextExtractor import (
    DOCX_MIME_TYPE,
    PDF_MIME_TYPE,
    PPTX_MIME_TYPE,
    XLSX_MIME_TYPE,
    extract_text,
    is_extractable,
)
from shared.errors import UnsupportedFormat
from tests.helpers import docx_bytes


def test_docx_paragraphs_are_joined_by_lines():
    data = docx_bytes("Quarterly budget review", "Travel costs went down.")

    assert extract_text(DOCX_MIME_TYPE, data) == "Quarterly budget review\nTravel costs went down."


def test_xlsx_rows_are_rendered_per_sheet():
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.title = "Costs"
    sheet.append(["item", "amount"])
    sheet.append(["rent", 1200])
    buffer = io.BytesIO()
    workbook.save(buffer)

    assert extract_text(XLSX_MIME_TYPE, buffer.getvalue()) == "Sheet: Costs\nitem | amount\nrent | 1200"


def test_pdf_page_text_is_extracted():
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Signed contract terms")
    data = doc.tobytes()
    doc.close()

    assert "Signed contract terms" in extract_text(PDF_MIME_TYPE, data)


def test_pptx_slide_text_is_extracted():
    presentation = pptx.Presentation()
    slide = presentation.slides.add_slide(presentation.slide_layouts[5])
    slide.shapes.title.text = "Roadmap 2025"
    buffer = io.BytesIO()
    presentation.save(buffer)

    assert "Roadmap 2025" in extract_text(PPTX_MIME_TYPE, buffer.getvalue())


def test_other_types_are_unsupported():
    assert not is_extractable("image/jpeg")
    with pytest.raises(UnsupportedFormat):
        extract_text("image/jpeg", b"\xff\xd8", "img-1")
