"""Synchronisation service.

Plans a sync pass over a user's content source, indexes the selected files
with bounded parallelism and reports aggregate counts. One file's failure
never aborts the pass.
"""

import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from services.drive_index_sync.IndexingService import IndexingService
from services.drive_index_sync.SyncPlanner import SyncPlanner
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.index.IndexStoreInterface import IndexStoreInterface
from shared.clients.source.SourceClientInterface import SourceClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.UserLockRegistry import UserLockRegistry
from shared.models.document import DocumentMeta, IndexedFile
from shared.models.sync import SyncProgress, SyncResult, SyncStats, SyncStrategy

DOC_CONCURRENCY = 5  # default max parallel file syncs

ProgressCallback = Callable[[SyncProgress], None]


class FileOutcome(str, Enum):
    INDEXED = "indexed"
    SKIPPED = "skipped"
    FAILED = "failed"
    CANCELLED = "cancelled"


class _PassState:
    """Mutable counters of a running sync pass."""

    def __init__(self, total_files: int) -> None:
        self.total_files = total_files
        self.finished = 0
        self.indexed = 0
        self.embeddings = 0
        self.skipped = 0
        self.errors = 0
        self.cancelled = 0

    def to_progress(self, current_file: str = "", is_complete: bool = False) -> SyncProgress:
        return SyncProgress(
            total_files=self.total_files,
            processed_files=self.finished,
            current_file=current_file,
            embeddings_created=self.embeddings,
            skipped=self.skipped,
            errors=self.errors,
            is_complete=is_complete,
        )


class SyncService:
    """Orchestrates the sync pipeline from the content source into the index."""

    def __init__(
        self,
        helper_config: HelperConfig,
        source_client: SourceClientInterface,
        embed_client: EmbedClientInterface,
        index_store: IndexStoreInterface,
        lock_registry: UserLockRegistry,
        planner: SyncPlanner | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._source_client = source_client
        self._index_store = index_store
        self._lock_registry = lock_registry
        self._planner = planner or SyncPlanner(helper_config=helper_config)
        self._indexing_service = IndexingService(
            helper_config=helper_config,
            source_client=source_client,
            embed_client=embed_client,
            index_store=index_store,
            lock_registry=lock_registry,
        )
        self._concurrency = max(1, int(helper_config.get_number_val("SYNC_CONCURRENCY", default=DOC_CONCURRENCY)))

    ##########################################
    ############### CORE SYNC ################
    ##########################################

    async def do_sync(
        self,
        user_id: str,
        strategy: SyncStrategy = SyncStrategy.NEW_FILES_ONLY,
        limit: int = 10,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> SyncResult:
        """Run one sync pass for a user.

        Args:
            user_id (str): Owner of the index.
            strategy (SyncStrategy): Which files to (re)index.
            limit (int): Maximum number of files to process.
            on_progress (ProgressCallback | None): Called after every finished file.
            cancel_event (asyncio.Event | None): When set, files not yet started are cancelled.

        Returns:
            SyncResult: Aggregate counts of the pass.

        Raises:
            Exception: If listing candidates from the content source fails.
        """
        self.logging.info("Starting %s sync for user '%s' (limit=%d)...", strategy.value, user_id, limit)

        indexed_ids = await self._index_store.do_fetch_file_ids(user_id)
        decision = await self._planner.plan(strategy, limit, indexed_ids, self._source_client.do_list_candidates)

        if not decision.files:
            self.logging.info("Nothing to sync for user '%s': %s", user_id, decision.message, color="green")
            return SyncResult(success=True, strategy=strategy, message=decision.message)

        state = _PassState(total_files=len(decision.files))
        sem = asyncio.Semaphore(self._concurrency)
        results = await asyncio.gather(
            *[
                self._sync_file(user_id, doc, sem, state, on_progress, cancel_event)
                for doc in decision.files
            ],
            return_exceptions=True,
        )
        # anything escaping _sync_file is counted as an error
        state.errors += sum(1 for r in results if isinstance(r, Exception))

        await self._index_store.do_mark_synced(user_id, datetime.now(timezone.utc))

        if on_progress:
            on_progress(state.to_progress(is_complete=True))

        message = (
            f"Synced {state.indexed} of {state.total_files} files: {state.embeddings} embeddings created, "
            f"{state.skipped} skipped, {state.errors} errors."
        )
        if state.cancelled:
            message += f" {state.cancelled} cancelled."
        self.logging.info("Sync complete for user '%s': %s", user_id, message)

        return SyncResult(
            success=state.errors < state.total_files,
            strategy=strategy,
            total_files=state.total_files,
            processed_files=state.indexed,
            embedding_count=state.embeddings,
            skipped_count=state.skipped,
            error_count=state.errors,
            cancelled_count=state.cancelled,
            message=message,
        )

    ##########################################
    ############### FILE SYNC ################
    ##########################################

    async def _sync_file(
        self,
        user_id: str,
        doc: DocumentMeta,
        sem: asyncio.Semaphore,
        state: _PassState,
        on_progress: ProgressCallback | None,
        cancel_event: asyncio.Event | None,
    ) -> FileOutcome:
        async with sem:
            if cancel_event is not None and cancel_event.is_set():
                state.cancelled += 1
                return FileOutcome.CANCELLED

            try:
                stored = await self._indexing_service.do_index_file(user_id, doc)
            except Exception as exc:
                self.logging.error("Sync failed for file id=%s ('%s'): %s", doc.file_id, doc.name, exc)
                state.errors += 1
                outcome = FileOutcome.FAILED
            else:
                if stored:
                    state.indexed += 1
                    state.embeddings += stored
                    outcome = FileOutcome.INDEXED
                else:
                    state.skipped += 1
                    outcome = FileOutcome.SKIPPED

            state.finished += 1
            if on_progress:
                on_progress(state.to_progress(current_file=doc.name))
            return outcome

    ##########################################
    ################ STATS ###################
    ##########################################

    async def do_fetch_sync_stats(self, user_id: str) -> SyncStats:
        documents = await self._index_store.do_fetch_documents(user_id)
        async with self._lock_registry.get_lock(user_id):
            chunks = await self._index_store.do_fetch_all_chunks(user_id)
        last_sync = await self._index_store.do_fetch_last_sync_time(user_id)

        indexed_files = len({chunk.file_id for chunk in chunks})
        return SyncStats(
            total_documents=len(documents),
            indexed_files=indexed_files,
            total_embeddings=len(chunks),
            average_embeddings_per_file=len(chunks) / indexed_files if indexed_files else 0.0,
            last_sync_time=last_sync,
        )

    async def do_fetch_indexed_files(self, user_id: str) -> list[IndexedFile]:
        """Summarize every indexed file, most recently processed first."""
        async with self._lock_registry.get_lock(user_id):
            chunks = await self._index_store.do_fetch_all_chunks(user_id)

        files: dict[str, IndexedFile] = {}
        for chunk in chunks:
            summary = files.get(chunk.file_id)
            if summary is None:
                files[chunk.file_id] = IndexedFile(
                    file_id=chunk.file_id,
                    file_name=chunk.file_name,
                    chunk_count=1,
                    total_content=len(chunk.content),
                    last_updated=chunk.metadata.processed_at,
                )
                continue
            summary.chunk_count += 1
            summary.total_content += len(chunk.content)
            if summary.last_updated is None or chunk.metadata.processed_at > summary.last_updated:
                summary.last_updated = chunk.metadata.processed_at

        return sorted(files.values(), key=lambda f: f.last_updated or datetime.min.replace(tzinfo=timezone.utc), reverse=True)
