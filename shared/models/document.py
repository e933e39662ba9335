"""Document metadata as observed on the content source.

Hierarchy:
  DocumentMeta:   one file listed by the content source (backend-independent).
  IndexedFile:    per-file summary derived from the stored embedding chunks.
"""

from datetime import datetime

from pydantic import BaseModel

ROOT_FOLDER = "Root"

# Native formats the source can export as text
NATIVE_MIME_TYPES: tuple[str, ...] = (
    "application/vnd.google-apps.document",
    "application/vnd.google-apps.spreadsheet",
    "application/vnd.google-apps.presentation",
    "text/plain",
)

# Office-interchange formats, only processed when explicitly enabled
OFFICE_MIME_TYPES: tuple[str, ...] = (
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
)


class DocumentMeta(BaseModel):
    """A single file as listed by the content source.

    The file_id is opaque and stable across syncs. user_id is only set once
    the record has been persisted for a user.
    """

    file_id: str
    name: str
    mime_type: str | None = None
    modified_time: datetime | None = None
    size: int | None = None
    web_view_link: str | None = None
    folder_path: str | None = None
    user_id: str | None = None


class IndexedFile(BaseModel):
    """Summary of one indexed file, aggregated over its chunks."""

    file_id: str
    file_name: str
    chunk_count: int
    total_content: int
    last_updated: datetime | None = None
