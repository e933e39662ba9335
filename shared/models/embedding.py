"""Embedding records stored in the index and the per-file view used for clustering."""

from datetime import datetime

from pydantic import BaseModel

from shared.models.document import ROOT_FOLDER


class ChunkMetadata(BaseModel):
    """Bookkeeping stored alongside each chunk.

    Attributes:
        chunk_total:     Number of chunks the file was split into.
        original_length: Length of the extracted text before normalisation.
        processed_at:    When the chunk was embedded.
        folder_path:     Folder the file lived in at sync time, if known.
    """

    chunk_total: int
    original_length: int
    processed_at: datetime
    folder_path: str | None = None


class EmbeddingChunk(BaseModel):
    """One embedded slice of a document.

    chunk_index values of a file are contiguous from 0. A file counts as
    indexed as soon as one chunk exists for it.
    """

    user_id: str
    file_id: str
    file_name: str
    chunk_index: int
    content: str
    vector: list[float]
    metadata: ChunkMetadata


class FileEmbeddingView(BaseModel):
    """Per-file projection consumed by the clustering engine.

    The representative vector is the one of the file's first chunk.
    """

    file_id: str
    file_name: str
    vector: list[float]
    content: str = ""
    folder_path: str = ROOT_FOLDER


def build_file_views(chunks: list[EmbeddingChunk]) -> list[FileEmbeddingView]:
    """Collapse stored chunks into exactly one view per distinct file.

    Args:
        chunks (list[EmbeddingChunk]): All chunks of a single user.

    Returns:
        list[FileEmbeddingView]: One view per file, in first-seen file order.
    """
    first_chunks: dict[str, EmbeddingChunk] = {}
    for chunk in chunks:
        current = first_chunks.get(chunk.file_id)
        if current is None or chunk.chunk_index < current.chunk_index:
            first_chunks[chunk.file_id] = chunk

    return [
        FileEmbeddingView(
            file_id=chunk.file_id,
            file_name=chunk.file_name,
            vector=chunk.vector,
            content=chunk.content,
            folder_path=chunk.metadata.folder_path or ROOT_FOLDER,
        )
        for chunk in first_chunks.values()
    ]
