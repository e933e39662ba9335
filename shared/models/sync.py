"""Models describing sync planning decisions and sync outcomes."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from shared.models.document import DocumentMeta


class SyncStrategy(str, Enum):
    """Policy deciding which files a sync pass (re)indexes."""

    NEW_FILES_ONLY = "new_files_only"
    FORCE_REINDEX = "force_reindex"


class SyncDecision(BaseModel):
    """Files chosen for (re)processing plus diagnostic counts.

    Attributes:
        strategy:        The strategy that produced the decision.
        files:           Files to process, most recently modified first.
        total_seen:      Distinct candidates returned by the source.
        processable:     Candidates with a supported MIME type.
        already_indexed: Processable candidates already present in the index.
        up_to_date:      True when there is nothing to do. Not an error.
        message:         Human-readable summary.
    """

    strategy: SyncStrategy
    files: list[DocumentMeta] = []
    total_seen: int = 0
    processable: int = 0
    already_indexed: int = 0
    up_to_date: bool = False
    message: str = ""


class SyncProgress(BaseModel):
    """Progress snapshot handed to an optional progress callback."""

    total_files: int
    processed_files: int
    current_file: str = ""
    embeddings_created: int = 0
    skipped: int = 0
    errors: int = 0
    is_complete: bool = False


class SyncResult(BaseModel):
    """Aggregate outcome of a sync pass. Partial success is the normal case."""

    success: bool = True
    strategy: SyncStrategy
    total_files: int = 0
    processed_files: int = 0
    embedding_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    cancelled_count: int = 0
    message: str = ""


class SyncRequest(BaseModel):
    """Request body for triggering a sync pass over the HTTP surface."""

    user_id: str
    strategy: SyncStrategy = SyncStrategy.NEW_FILES_ONLY
    limit: int = Field(default=10, ge=1, le=200)


class SyncStats(BaseModel):
    """Index statistics for one user."""

    total_documents: int
    indexed_files: int
    total_embeddings: int
    average_embeddings_per_file: float
    last_sync_time: datetime | None = None
