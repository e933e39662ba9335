from abc import ABC, abstractmethod
from datetime import datetime

from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentMeta
from shared.models.embedding import EmbeddingChunk
from shared.models.organization import OrganizationActivity


class IndexStoreInterface(ABC):
    """Per-user store of embedding chunks, document records and activity logs.

    Records are keyed by (user_id, file_id, chunk_index). Engines must make
    do_replace_file_chunks atomic: readers see either all of a file's old
    chunks or all of its new ones.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_engine_name(self) -> str:
        """
        Returns the name of the storage engine in lowercase. E.g. "sqlite"
        """
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def boot(self) -> None:
        """Prepare the storage backend (e.g. create tables)."""

    async def close(self) -> None:
        """Release the storage backend."""

    ##########################################
    ################ CHUNKS ##################
    ##########################################

    @abstractmethod
    async def do_store_chunk(self, chunk: EmbeddingChunk) -> None:
        """Append a single chunk, replacing a stored chunk with the same index."""
        pass

    @abstractmethod
    async def do_replace_file_chunks(self, user_id: str, file_id: str, chunks: list[EmbeddingChunk]) -> None:
        """Atomically replace every stored chunk of a file.

        Args:
            user_id (str): Owner of the file.
            file_id (str): The file whose chunks are replaced.
            chunks (list[EmbeddingChunk]): The new chunks, contiguous from index 0.
                An empty list removes the file from the index.
        """
        pass

    @abstractmethod
    async def do_delete_file_chunks(self, user_id: str, file_id: str) -> int:
        """Remove every chunk of a file and return how many were removed."""
        pass

    @abstractmethod
    async def do_fetch_all_chunks(self, user_id: str) -> list[EmbeddingChunk]:
        """Return all chunks of a user, grouped by file and ordered by chunk index."""
        pass

    @abstractmethod
    async def do_fetch_file_ids(self, user_id: str) -> set[str]:
        """Return the IDs of every file with at least one chunk."""
        pass

    ##########################################
    ############### DOCUMENTS ################
    ##########################################

    @abstractmethod
    async def do_upsert_document(self, user_id: str, document: DocumentMeta) -> DocumentMeta:
        """Insert or update the document record of a file and return it."""
        pass

    @abstractmethod
    async def do_fetch_documents(self, user_id: str) -> list[DocumentMeta]:
        pass

    ##########################################
    ############### ACTIVITY #################
    ##########################################

    @abstractmethod
    async def do_log_organization_activity(self, activity: OrganizationActivity) -> None:
        pass

    @abstractmethod
    async def do_fetch_organization_activities(self, user_id: str) -> list[OrganizationActivity]:
        pass

    @abstractmethod
    async def do_mark_synced(self, user_id: str, synced_at: datetime) -> None:
        pass

    @abstractmethod
    async def do_fetch_last_sync_time(self, user_id: str) -> datetime | None:
        pass

    ##########################################
    ################ HELPERS #################
    ##########################################

    def _validate_file_chunks(self, user_id: str, file_id: str, chunks: list[EmbeddingChunk]) -> list[EmbeddingChunk]:
        """Check chunks belong to the file and are contiguous from 0.

        Raises:
            ValueError: If a chunk belongs to another user/file or indices have gaps.
        """
        ordered = sorted(chunks, key=lambda chunk: chunk.chunk_index)
        for expected_index, chunk in enumerate(ordered):
            if chunk.user_id != user_id or chunk.file_id != file_id:
                raise ValueError(f"Chunk {chunk.chunk_index} does not belong to file '{file_id}' of user '{user_id}'.")
            if chunk.chunk_index != expected_index:
                raise ValueError(f"Chunk indices of file '{file_id}' are not contiguous from 0.")
        return ordered
