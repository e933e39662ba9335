from datetime import datetime

from shared.clients.index.IndexStoreInterface import IndexStoreInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentMeta
from shared.models.embedding import EmbeddingChunk
from shared.models.organization import OrganizationActivity


class IndexStoreMemory(IndexStoreInterface):
    """In-process index. Contents are lost when the process exits."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        # user_id -> file_id -> chunks ordered by chunk_index
        self._chunks: dict[str, dict[str, list[EmbeddingChunk]]] = {}
        self._documents: dict[str, dict[str, DocumentMeta]] = {}
        self._activities: dict[str, list[OrganizationActivity]] = {}
        self._last_sync: dict[str, datetime] = {}

    def _get_engine_name(self) -> str:
        return "Memory"

    ################ CHUNKS ##################
    async def do_store_chunk(self, chunk: EmbeddingChunk) -> None:
        file_chunks = self._chunks.setdefault(chunk.user_id, {}).setdefault(chunk.file_id, [])
        file_chunks[:] = [c for c in file_chunks if c.chunk_index != chunk.chunk_index]
        file_chunks.append(chunk)
        file_chunks.sort(key=lambda c: c.chunk_index)

    async def do_replace_file_chunks(self, user_id: str, file_id: str, chunks: list[EmbeddingChunk]) -> None:
        ordered = self._validate_file_chunks(user_id, file_id, chunks)
        user_chunks = self._chunks.setdefault(user_id, {})
        if ordered:
            # single assignment, so readers never see a half-written file
            user_chunks[file_id] = ordered
        else:
            user_chunks.pop(file_id, None)

    async def do_delete_file_chunks(self, user_id: str, file_id: str) -> int:
        removed = self._chunks.get(user_id, {}).pop(file_id, [])
        return len(removed)

    async def do_fetch_all_chunks(self, user_id: str) -> list[EmbeddingChunk]:
        return [chunk for file_chunks in self._chunks.get(user_id, {}).values() for chunk in file_chunks]

    async def do_fetch_file_ids(self, user_id: str) -> set[str]:
        return {file_id for file_id, file_chunks in self._chunks.get(user_id, {}).items() if file_chunks}

    ################ DOCUMENTS ##################
    async def do_upsert_document(self, user_id: str, document: DocumentMeta) -> DocumentMeta:
        record = document.model_copy(update={"user_id": user_id})
        self._documents.setdefault(user_id, {})[record.file_id] = record
        return record

    async def do_fetch_documents(self, user_id: str) -> list[DocumentMeta]:
        return list(self._documents.get(user_id, {}).values())

    ################ ACTIVITY ##################
    async def do_log_organization_activity(self, activity: OrganizationActivity) -> None:
        self._activities.setdefault(activity.user_id, []).append(activity)

    async def do_fetch_organization_activities(self, user_id: str) -> list[OrganizationActivity]:
        return list(self._activities.get(user_id, []))

    async def do_mark_synced(self, user_id: str, synced_at: datetime) -> None:
        self._last_sync[user_id] = synced_at

    async def do_fetch_last_sync_time(self, user_id: str) -> datetime | None:
        return self._last_sync.get(user_id)
