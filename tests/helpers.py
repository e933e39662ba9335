"""Fakes and builders shared by the test modules."""

import io
import re
from datetime import datetime, timedelta, timezone

import docx

from shared.errors import ProviderUnavailable, UnsupportedFormat
from shared.models.document import DocumentMeta
from shared.models.embedding import ChunkMetadata, EmbeddingChunk

GDOC = "application/vnd.google-apps.document"
TEXT = "text/plain"
JPEG = "image/jpeg"

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

_MIME_FILTER = re.compile(r"mimeType='([^']+)'")


class FakeEmbedClient:
    """Embedding provider returning fixed-size vectors derived from the text."""

    def __init__(self, fail_on: str | None = None, dimension: int = 3) -> None:
        self.embed_model = "fake-embed"
        self.fail_on = fail_on
        self.dimension = dimension
        self.requests: list[list[str]] = []

    async def is_available(self) -> bool:
        return True

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        texts = [texts] if isinstance(texts, str) else texts
        self.requests.append(list(texts))
        if self.fail_on and any(self.fail_on in text for text in texts):
            raise ProviderUnavailable("provider down")
        return [self.vector_for(text) for text in texts]

    def vector_for(self, text: str) -> list[float]:
        return [float(len(text) % 7 + 1)] + [1.0] * (self.dimension - 1)


class FakeSourceClient:
    """In-memory content source recording every listing and write call."""

    def __init__(self, files: list[DocumentMeta] | None = None, contents: dict | None = None) -> None:
        self.files = files or []
        self.contents = contents or {}
        self.list_calls: list[tuple[int, str, str]] = []
        self.folders: list[str] = []
        self.shortcuts: list[tuple[str, str, str]] = []
        self.fail_folders: set[str] = set()
        self.fail_shortcuts: set[str] = set()

    async def do_list_candidates(self, page_size: int, order_by: str, filter_expr: str) -> list[DocumentMeta]:
        self.list_calls.append((page_size, order_by, filter_expr))
        match = _MIME_FILTER.search(filter_expr)
        files = [f for f in self.files if match is None or f.mime_type == match.group(1)]
        return files[:page_size]

    async def do_get_content(self, file_id: str) -> str:
        content = self.contents.get(file_id)
        if content is None:
            raise UnsupportedFormat("application/octet-stream", file_id)
        if isinstance(content, Exception):
            raise content
        return content

    async def do_create_folder(self, name: str) -> str:
        if name in self.fail_folders:
            raise RuntimeError(f"cannot create {name}")
        self.folders.append(name)
        return f"folder-{len(self.folders)}"

    async def do_create_shortcut(self, file_id: str, folder_id: str, file_name: str) -> str:
        if file_id in self.fail_shortcuts:
            raise RuntimeError(f"cannot link {file_id}")
        self.shortcuts.append((file_id, folder_id, file_name))
        return f"shortcut-{len(self.shortcuts)}"


def make_document(file_id: str, name: str | None = None, mime_type: str = GDOC, age_minutes: int = 0,
                  folder_path: str | None = None) -> DocumentMeta:
    return DocumentMeta(
        file_id=file_id,
        name=name or f"{file_id}.txt",
        mime_type=mime_type,
        modified_time=BASE_TIME - timedelta(minutes=age_minutes),
        folder_path=folder_path,
    )


def make_chunk(file_id: str, vector: list[float], chunk_index: int = 0, user_id: str = "user-1",
               file_name: str | None = None, content: str = "", folder_path: str | None = None,
               chunk_total: int = 1) -> EmbeddingChunk:
    return EmbeddingChunk(
        user_id=user_id,
        file_id=file_id,
        file_name=file_name or f"{file_id}.txt",
        chunk_index=chunk_index,
        content=content or f"content of {file_id} chunk {chunk_index}",
        vector=vector,
        metadata=ChunkMetadata(
            chunk_total=chunk_total,
            original_length=len(content),
            processed_at=BASE_TIME,
            folder_path=folder_path,
        ),
    )


INVOICE_TEXT = "Invoice 1001. Amount due 450 USD for consulting services."
PHOTO_TEXT = "Holiday photos from the beach trip with family."


def docx_bytes(*paragraphs: str) -> bytes:
    document = docx.Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()
