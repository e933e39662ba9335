import asyncio
import json
import os
import sqlite3
from contextlib import closing
from datetime import datetime

from shared.clients.index.IndexStoreInterface import IndexStoreInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentMeta
from shared.models.embedding import ChunkMetadata, EmbeddingChunk
from shared.models.organization import OrganizationActivity


class IndexStoreSqlite(IndexStoreInterface):
    """SQLite backed index.

    Every call opens its own connection on a worker thread, so the event
    loop never blocks on disk IO. Vectors and metadata are stored as JSON.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._db_path = helper_config.get_string_val("INDEX_SQLITE_PATH", default="data/index.sqlite3")

    def _get_engine_name(self) -> str:
        return "Sqlite"

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def boot(self) -> None:
        await asyncio.to_thread(self._init_db)
        self.logging.info("SQLite index ready at %s", self._db_path)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        directory = os.path.dirname(self._db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with closing(self._connect()) as conn, conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS chunks (
                    user_id TEXT NOT NULL,
                    file_id TEXT NOT NULL,
                    chunk_index INTEGER NOT NULL,
                    file_name TEXT NOT NULL,
                    content TEXT NOT NULL,
                    vector TEXT NOT NULL,
                    metadata TEXT NOT NULL,
                    PRIMARY KEY (user_id, file_id, chunk_index)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    user_id TEXT NOT NULL,
                    file_id TEXT NOT NULL,
                    record TEXT NOT NULL,
                    PRIMARY KEY (user_id, file_id)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS organization_activities (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    record TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS sync_state (
                    user_id TEXT PRIMARY KEY,
                    last_sync_at TEXT NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_activities_user ON organization_activities(user_id)")

    ##########################################
    ################ CHUNKS ##################
    ##########################################

    @staticmethod
    def _chunk_row(chunk: EmbeddingChunk) -> tuple:
        return (
            chunk.user_id,
            chunk.file_id,
            chunk.chunk_index,
            chunk.file_name,
            chunk.content,
            json.dumps(chunk.vector),
            chunk.metadata.model_dump_json(),
        )

    @staticmethod
    def _row_to_chunk(row: sqlite3.Row) -> EmbeddingChunk:
        return EmbeddingChunk(
            user_id=row["user_id"],
            file_id=row["file_id"],
            file_name=row["file_name"],
            chunk_index=row["chunk_index"],
            content=row["content"],
            vector=json.loads(row["vector"]),
            metadata=ChunkMetadata.model_validate_json(row["metadata"]),
        )

    def _store_chunk(self, chunk: EmbeddingChunk) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT OR REPLACE INTO chunks VALUES (?, ?, ?, ?, ?, ?, ?)",
                self._chunk_row(chunk),
            )

    async def do_store_chunk(self, chunk: EmbeddingChunk) -> None:
        await asyncio.to_thread(self._store_chunk, chunk)

    def _replace_file_chunks(self, user_id: str, file_id: str, chunks: list[EmbeddingChunk]) -> None:
        # delete and insert share one transaction
        with closing(self._connect()) as conn, conn:
            conn.execute("DELETE FROM chunks WHERE user_id = ? AND file_id = ?", (user_id, file_id))
            conn.executemany(
                "INSERT INTO chunks VALUES (?, ?, ?, ?, ?, ?, ?)",
                [self._chunk_row(chunk) for chunk in chunks],
            )

    async def do_replace_file_chunks(self, user_id: str, file_id: str, chunks: list[EmbeddingChunk]) -> None:
        ordered = self._validate_file_chunks(user_id, file_id, chunks)
        await asyncio.to_thread(self._replace_file_chunks, user_id, file_id, ordered)

    def _delete_file_chunks(self, user_id: str, file_id: str) -> int:
        with closing(self._connect()) as conn, conn:
            cursor = conn.execute("DELETE FROM chunks WHERE user_id = ? AND file_id = ?", (user_id, file_id))
            return cursor.rowcount

    async def do_delete_file_chunks(self, user_id: str, file_id: str) -> int:
        return await asyncio.to_thread(self._delete_file_chunks, user_id, file_id)

    def _fetch_all_chunks(self, user_id: str) -> list[EmbeddingChunk]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT * FROM chunks WHERE user_id = ? ORDER BY file_id, chunk_index",
                (user_id,),
            ).fetchall()
        return [self._row_to_chunk(row) for row in rows]

    async def do_fetch_all_chunks(self, user_id: str) -> list[EmbeddingChunk]:
        return await asyncio.to_thread(self._fetch_all_chunks, user_id)

    def _fetch_file_ids(self, user_id: str) -> set[str]:
        with closing(self._connect()) as conn:
            rows = conn.execute("SELECT DISTINCT file_id FROM chunks WHERE user_id = ?", (user_id,)).fetchall()
        return {row["file_id"] for row in rows}

    async def do_fetch_file_ids(self, user_id: str) -> set[str]:
        return await asyncio.to_thread(self._fetch_file_ids, user_id)

    ##########################################
    ############### DOCUMENTS ################
    ##########################################

    def _upsert_document(self, user_id: str, document: DocumentMeta) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                INSERT INTO documents (user_id, file_id, record) VALUES (?, ?, ?)
                ON CONFLICT(user_id, file_id) DO UPDATE SET record = excluded.record
                """,
                (user_id, document.file_id, document.model_dump_json()),
            )

    async def do_upsert_document(self, user_id: str, document: DocumentMeta) -> DocumentMeta:
        record = document.model_copy(update={"user_id": user_id})
        await asyncio.to_thread(self._upsert_document, user_id, record)
        return record

    def _fetch_documents(self, user_id: str) -> list[DocumentMeta]:
        with closing(self._connect()) as conn:
            rows = conn.execute("SELECT record FROM documents WHERE user_id = ?", (user_id,)).fetchall()
        return [DocumentMeta.model_validate_json(row["record"]) for row in rows]

    async def do_fetch_documents(self, user_id: str) -> list[DocumentMeta]:
        return await asyncio.to_thread(self._fetch_documents, user_id)

    ##########################################
    ############### ACTIVITY #################
    ##########################################

    def _log_organization_activity(self, activity: OrganizationActivity) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO organization_activities (user_id, record) VALUES (?, ?)",
                (activity.user_id, activity.model_dump_json()),
            )

    async def do_log_organization_activity(self, activity: OrganizationActivity) -> None:
        await asyncio.to_thread(self._log_organization_activity, activity)

    def _fetch_organization_activities(self, user_id: str) -> list[OrganizationActivity]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT record FROM organization_activities WHERE user_id = ? ORDER BY id",
                (user_id,),
            ).fetchall()
        return [OrganizationActivity.model_validate_json(row["record"]) for row in rows]

    async def do_fetch_organization_activities(self, user_id: str) -> list[OrganizationActivity]:
        return await asyncio.to_thread(self._fetch_organization_activities, user_id)

    def _mark_synced(self, user_id: str, synced_at: datetime) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                INSERT INTO sync_state (user_id, last_sync_at) VALUES (?, ?)
                ON CONFLICT(user_id) DO UPDATE SET last_sync_at = excluded.last_sync_at
                """,
                (user_id, synced_at.isoformat()),
            )

    async def do_mark_synced(self, user_id: str, synced_at: datetime) -> None:
        await asyncio.to_thread(self._mark_synced, user_id, synced_at)

    def _fetch_last_sync_time(self, user_id: str) -> datetime | None:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT last_sync_at FROM sync_state WHERE user_id = ?", (user_id,)).fetchone()
        return datetime.fromisoformat(row["last_sync_at"]) if row else None

    async def do_fetch_last_sync_time(self, user_id: str) -> datetime | None:
        return await asyncio.to_thread(self._fetch_last_sync_time, user_id)
