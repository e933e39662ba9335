"""Decides which files a sync pass (re)indexes."""

from typing import Awaitable, Callable

from shared.helper.HelperConfig import HelperConfig
from shared.models.document import NATIVE_MIME_TYPES, OFFICE_MIME_TYPES, DocumentMeta
from shared.models.sync import SyncDecision, SyncStrategy

# (page_size, order_by, filter_expr) -> listed files
CandidateLister = Callable[[int, str, str], Awaitable[list[DocumentMeta]]]

ORDER_BY = "modifiedTime desc"
BASE_FILTER = "trashed=false"
FORCE_PAGE_FACTOR = 3
FORCE_PAGE_CAP = 100
NEW_FILES_PAGE_FACTOR = 5
NEW_FILES_PAGE_CAP = 200
PER_TYPE_PAGE_SIZE = 50

UP_TO_DATE_MESSAGE = "All recent files have already been indexed! Your Drive is up to date."


def supported_mime_types(include_office_formats: bool = False) -> tuple[str, ...]:
    if include_office_formats:
        return NATIVE_MIME_TYPES + OFFICE_MIME_TYPES
    return NATIVE_MIME_TYPES


def sort_by_recency(files: list[DocumentMeta]) -> list[DocumentMeta]:
    """Most recently modified first. Stable; files without a time go last."""
    dated = sorted((f for f in files if f.modified_time is not None), key=lambda f: f.modified_time, reverse=True)
    undated = [f for f in files if f.modified_time is None]
    return dated + undated


class SyncPlanner:
    """Selects the files of a sync pass according to a SyncStrategy."""

    def __init__(self, helper_config: HelperConfig, include_office_formats: bool | None = None) -> None:
        self.logging = helper_config.get_logger()
        if include_office_formats is None:
            include_office_formats = helper_config.get_bool_val("SYNC_INCLUDE_OFFICE_FORMATS", default=False)
        self._supported = supported_mime_types(include_office_formats)

    def is_supported(self, mime_type: str | None) -> bool:
        return mime_type in self._supported

    ##########################################
    ################ PLANNING ################
    ##########################################

    async def plan(
        self,
        strategy: SyncStrategy,
        limit: int,
        already_indexed_file_ids: set[str],
        candidate_lister: CandidateLister,
    ) -> SyncDecision:
        """Decide which files to process.

        Args:
            strategy (SyncStrategy): new_files_only or force_reindex.
            limit (int): Maximum number of files to return.
            already_indexed_file_ids (set[str]): Files with at least one stored chunk.
            candidate_lister (CandidateLister): Lists files from the content source.

        Returns:
            SyncDecision: The chosen files, most recently modified first.

        Raises:
            ValueError: If limit is not positive.
        """
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}.")

        if strategy == SyncStrategy.FORCE_REINDEX:
            return await self._plan_force_reindex(limit, already_indexed_file_ids, candidate_lister)
        return await self._plan_new_files_only(limit, already_indexed_file_ids, candidate_lister)

    async def _plan_force_reindex(
        self,
        limit: int,
        indexed_ids: set[str],
        candidate_lister: CandidateLister,
    ) -> SyncDecision:
        page_size = min(limit * FORCE_PAGE_FACTOR, FORCE_PAGE_CAP)
        candidates = _dedupe(await candidate_lister(page_size, ORDER_BY, BASE_FILTER))
        processable = [f for f in candidates if self.is_supported(f.mime_type)]
        files = sort_by_recency(processable)[:limit]

        self.logging.info(
            "Force reindex: %d candidates, %d processable, %d selected.",
            len(candidates), len(processable), len(files),
        )
        return SyncDecision(
            strategy=SyncStrategy.FORCE_REINDEX,
            files=files,
            total_seen=len(candidates),
            processable=len(processable),
            already_indexed=sum(1 for f in processable if f.file_id in indexed_ids),
            up_to_date=False,
            message=f"Reindexing {len(files)} files." if files else "No supported files found.",
        )

    async def _plan_new_files_only(
        self,
        limit: int,
        indexed_ids: set[str],
        candidate_lister: CandidateLister,
    ) -> SyncDecision:
        page_size = min(limit * NEW_FILES_PAGE_FACTOR, NEW_FILES_PAGE_CAP)
        candidates = _dedupe(await candidate_lister(page_size, ORDER_BY, BASE_FILTER))
        seen_ids = {f.file_id for f in candidates}
        processable = [f for f in candidates if self.is_supported(f.mime_type)]
        unprocessed = [f for f in processable if f.file_id not in indexed_ids]

        # broaden the search type by type when the recent files are mostly indexed
        if len(unprocessed) < limit:
            for mime_type in self._supported:
                if len(unprocessed) >= limit:
                    break
                type_filter = f"mimeType='{mime_type}' and {BASE_FILTER}"
                for doc in await candidate_lister(PER_TYPE_PAGE_SIZE, ORDER_BY, type_filter):
                    if doc.file_id in seen_ids:
                        continue
                    seen_ids.add(doc.file_id)
                    if not self.is_supported(doc.mime_type):
                        continue
                    processable.append(doc)
                    if doc.file_id not in indexed_ids:
                        unprocessed.append(doc)

        files = sort_by_recency(unprocessed)[:limit]
        already_indexed = len(processable) - len(unprocessed)
        self.logging.info(
            "New files only: %d seen, %d processable, %d already indexed, %d selected.",
            len(seen_ids), len(processable), already_indexed, len(files),
        )

        if not files:
            return SyncDecision(
                strategy=SyncStrategy.NEW_FILES_ONLY,
                total_seen=len(seen_ids),
                processable=len(processable),
                already_indexed=already_indexed,
                up_to_date=True,
                message=UP_TO_DATE_MESSAGE,
            )
        return SyncDecision(
            strategy=SyncStrategy.NEW_FILES_ONLY,
            files=files,
            total_seen=len(seen_ids),
            processable=len(processable),
            already_indexed=already_indexed,
            message=f"Found {len(files)} new files to index.",
        )


def _dedupe(files: list[DocumentMeta]) -> list[DocumentMeta]:
    seen: set[str] = set()
    unique: list[DocumentMeta] = []
    for f in files:
        if f.file_id not in seen:
            seen.add(f.file_id)
            unique.append(f)
    return unique
