"""Text extraction for downloaded office-interchange files (PDF, DOCX, XLSX, PPTX)."""

import io

import docx
import fitz  # PyMuPDF
import pptx
from openpyxl import load_workbook

from shared.errors import UnsupportedFormat

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PPTX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"


def extract_pdf(data: bytes) -> str:
    with fitz.open(stream=data, filetype="pdf") as doc:
        return "\n".join(page.get_text() for page in doc)


def extract_docx(data: bytes) -> str:
    document = docx.Document(io.BytesIO(data))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def extract_pptx(data: bytes) -> str:
    presentation = pptx.Presentation(io.BytesIO(data))
    texts: list[str] = []
    for slide in presentation.slides:
        for shape in slide.shapes:
            if shape.has_text_frame:
                texts.append(shape.text_frame.text)
    return "\n".join(texts)


def extract_xlsx(data: bytes) -> str:
    """One line per row, cells joined by " | ", each sheet introduced by its name."""
    workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    lines: list[str] = []
    try:
        for sheet in workbook.worksheets:
            lines.append(f"Sheet: {sheet.title}")
            for row in sheet.iter_rows(values_only=True):
                if any(cell is not None for cell in row):
                    lines.append(" | ".join("" if cell is None else str(cell) for cell in row))
    finally:
        workbook.close()
    return "\n".join(lines)


_EXTRACTORS = {
    PDF_MIME_TYPE: extract_pdf,
    DOCX_MIME_TYPE: extract_docx,
    XLSX_MIME_TYPE: extract_xlsx,
    PPTX_MIME_TYPE: extract_pptx,
}


def is_extractable(mime_type: str | None) -> bool:
    return mime_type in _EXTRACTORS


def extract_text(mime_type: str | None, data: bytes, file_id: str | None = None) -> str:
    """Turn the raw bytes of an office file into plain text.

    Raises:
        UnsupportedFormat: If no extractor exists for the MIME type.
        Exception: If the file cannot be parsed.
    """
    extractor = _EXTRACTORS.get(mime_type or "")
    if extractor is None:
        raise UnsupportedFormat(mime_type, file_id)
    return extractor(data)
