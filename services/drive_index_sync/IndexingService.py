"""Indexes a single file: extract, chunk, embed, store."""

from datetime import datetime, timezone

from services.drive_index_sync.Chunker import DEFAULT_CHUNK_SIZE, chunk_text, normalize_text
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.index.IndexStoreInterface import IndexStoreInterface
from shared.clients.source.SourceClientInterface import SourceClientInterface
from shared.errors import UnsupportedFormat
from shared.helper.HelperConfig import HelperConfig
from shared.helper.UserLockRegistry import UserLockRegistry
from shared.models.document import DocumentMeta
from shared.models.embedding import ChunkMetadata, EmbeddingChunk

MIN_CONTENT_LENGTH = 20  # files with this much text or less are skipped


class IndexingService:
    """Turns one source file into stored embedding chunks."""

    def __init__(
        self,
        helper_config: HelperConfig,
        source_client: SourceClientInterface,
        embed_client: EmbedClientInterface,
        index_store: IndexStoreInterface,
        lock_registry: UserLockRegistry,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._source_client = source_client
        self._embed_client = embed_client
        self._index_store = index_store
        self._lock_registry = lock_registry
        self._chunk_size = int(helper_config.get_number_val("INDEX_CHUNK_SIZE", default=DEFAULT_CHUNK_SIZE))

    async def do_index_file(self, user_id: str, document: DocumentMeta) -> int:
        """Index a file, replacing whatever was stored for it before.

        Args:
            user_id (str): Owner of the index.
            document (DocumentMeta): The file as listed by the content source.

        Returns:
            int: Number of chunks stored, 0 if the file was skipped.

        Raises:
            ProviderUnavailable: If the embedding provider fails.
            Exception: If the content source or the index store fails.
        """
        await self._index_store.do_upsert_document(user_id, document)

        try:
            content = await self._source_client.do_get_content(document.file_id)
        except UnsupportedFormat as exc:
            self.logging.info("Skipping file id=%s ('%s'): %s", document.file_id, document.name, exc)
            await self._drop_stale_chunks(user_id, document)
            return 0

        if len(normalize_text(content)) <= MIN_CONTENT_LENGTH:
            self.logging.info("Skipping file id=%s ('%s'): insufficient content.", document.file_id, document.name)
            await self._drop_stale_chunks(user_id, document)
            return 0

        texts = chunk_text(content, self._chunk_size)
        if not texts:
            self.logging.info("Skipping file id=%s ('%s'): content produced no chunks.", document.file_id, document.name)
            await self._drop_stale_chunks(user_id, document)
            return 0

        # one provider request for all chunks of this file
        vectors = await self._embed_client.do_embed(texts)

        metadata = ChunkMetadata(
            chunk_total=len(texts),
            original_length=len(content),
            processed_at=datetime.now(timezone.utc),
            folder_path=document.folder_path,
        )
        chunks = [
            EmbeddingChunk(
                user_id=user_id,
                file_id=document.file_id,
                file_name=document.name,
                chunk_index=chunk_index,
                content=text,
                vector=vector,
                metadata=metadata,
            )
            for chunk_index, (text, vector) in enumerate(zip(texts, vectors))
        ]

        async with self._lock_registry.get_lock(user_id):
            await self._index_store.do_replace_file_chunks(user_id, document.file_id, chunks)

        self.logging.info("Indexed file id=%s ('%s'): %d chunks stored.", document.file_id, document.name, len(chunks))
        return len(chunks)

    async def _drop_stale_chunks(self, user_id: str, document: DocumentMeta) -> None:
        """Remove chunks stored by an earlier pass for a file that is now skipped."""
        async with self._lock_registry.get_lock(user_id):
            removed = await self._index_store.do_delete_file_chunks(user_id, document.file_id)
        if removed:
            self.logging.info("Removed %d stale chunks of file id=%s ('%s').", removed, document.file_id, document.name)
