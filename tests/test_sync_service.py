"""Tests for the sync orchestration."""

import asyncio

from services.drive_index_sync.SyncPlanner import UP_TO_DATE_MESSAGE, SyncPlanner
from services.drive_index_sync.SyncService import SyncService
from shared.models.sync import SyncStrategy
from tests.helpers import FakeEmbedClient, FakeSourceClient, make_document

LONG_TEXT = " ".join(f"This is sentence number {i} of a fairly long document." for i in range(100))
VALID_TEXT = "Quarterly planning notes for the design team."


def _service(helper_config, index_store, lock_registry, source, embed_client=None):
    return SyncService(
        helper_config=helper_config,
        source_client=source,
        embed_client=embed_client or FakeEmbedClient(),
        index_store=index_store,
        lock_registry=lock_registry,
        planner=SyncPlanner(helper_config=helper_config, include_office_formats=False),
    )


def _mixed_source():
    files = [make_document(f"f{i}", age_minutes=i) for i in range(4)]
    contents = {
        "f0": VALID_TEXT,
        "f1": "too short",
        # f2 has no content entry and is reported as unsupported
        "f3": "This text makes the provider EXPLODE every time.",
    }
    return FakeSourceClient(files, contents)


def test_sync_counts_outcomes_per_file(helper_config, index_store, lock_registry):
    """Skips and failures are counted without aborting the batch."""
    service = _service(helper_config, index_store, lock_registry, _mixed_source(), FakeEmbedClient(fail_on="EXPLODE"))

    result = asyncio.run(service.do_sync("user-1", SyncStrategy.NEW_FILES_ONLY, limit=10))

    assert result.success
    assert result.total_files == 4
    assert result.processed_files == 1
    assert result.embedding_count == 1
    assert result.skipped_count == 2
    assert result.error_count == 1
    assert result.cancelled_count == 0
    assert asyncio.run(index_store.do_fetch_file_ids("user-1")) == {"f0"}


def test_sync_records_documents_and_stats(helper_config, index_store, lock_registry):
    service = _service(helper_config, index_store, lock_registry, _mixed_source(), FakeEmbedClient(fail_on="EXPLODE"))
    asyncio.run(service.do_sync("user-1", SyncStrategy.NEW_FILES_ONLY, limit=10))

    stats = asyncio.run(service.do_fetch_sync_stats("user-1"))

    assert stats.total_documents == 4
    assert stats.indexed_files == 1
    assert stats.total_embeddings == 1
    assert stats.average_embeddings_per_file == 1.0
    assert stats.last_sync_time is not None


def test_second_new_files_pass_is_up_to_date(helper_config, index_store, lock_registry):
    source = FakeSourceClient(
        [make_document("a"), make_document("b", age_minutes=1)],
        {"a": VALID_TEXT, "b": VALID_TEXT},
    )
    service = _service(helper_config, index_store, lock_registry, source)

    first = asyncio.run(service.do_sync("user-1", SyncStrategy.NEW_FILES_ONLY, limit=5))
    second = asyncio.run(service.do_sync("user-1", SyncStrategy.NEW_FILES_ONLY, limit=5))

    assert first.processed_files == 2
    assert second.success
    assert second.total_files == 0
    assert second.message == UP_TO_DATE_MESSAGE


def test_force_reindex_replaces_stale_chunks(helper_config, index_store, lock_registry):
    source = FakeSourceClient([make_document("doc")], {"doc": LONG_TEXT})
    service = _service(helper_config, index_store, lock_registry, source)

    asyncio.run(service.do_sync("user-1", SyncStrategy.NEW_FILES_ONLY, limit=1))
    before = asyncio.run(index_store.do_fetch_all_chunks("user-1"))

    source.contents["doc"] = VALID_TEXT
    result = asyncio.run(service.do_sync("user-1", SyncStrategy.FORCE_REINDEX, limit=1))
    after = asyncio.run(index_store.do_fetch_all_chunks("user-1"))

    assert len(before) > 1
    assert [c.chunk_index for c in before] == list(range(len(before)))
    assert result.processed_files == 1
    assert len(after) == 1
    assert after[0].content == VALID_TEXT
    assert after[0].metadata.chunk_total == 1


def test_chunks_of_a_file_are_embedded_in_one_request(helper_config, index_store, lock_registry):
    embed_client = FakeEmbedClient()
    source = FakeSourceClient([make_document("doc")], {"doc": LONG_TEXT})
    service = _service(helper_config, index_store, lock_registry, source, embed_client)

    result = asyncio.run(service.do_sync("user-1", SyncStrategy.NEW_FILES_ONLY, limit=1))

    assert len(embed_client.requests) == 1
    assert len(embed_client.requests[0]) == result.embedding_count


def test_progress_is_reported_per_file(helper_config, index_store, lock_registry):
    service = _service(helper_config, index_store, lock_registry, _mixed_source(), FakeEmbedClient(fail_on="EXPLODE"))
    updates = []

    asyncio.run(service.do_sync("user-1", SyncStrategy.NEW_FILES_ONLY, limit=10, on_progress=updates.append))

    assert len(updates) == 5
    assert updates[-1].is_complete
    assert updates[-1].processed_files == 4
    assert [u.processed_files for u in updates[:-1]] == [1, 2, 3, 4]


def test_cancelled_sync_stores_nothing(helper_config, index_store, lock_registry):
    source = FakeSourceClient([make_document("a"), make_document("b")], {"a": VALID_TEXT, "b": VALID_TEXT})
    service = _service(helper_config, index_store, lock_registry, source)

    async def run():
        cancel_event = asyncio.Event()
        cancel_event.set()
        return await service.do_sync("user-1", SyncStrategy.NEW_FILES_ONLY, limit=5, cancel_event=cancel_event)

    result = asyncio.run(run())

    assert result.cancelled_count == 2
    assert result.processed_files == 0
    assert asyncio.run(index_store.do_fetch_file_ids("user-1")) == set()


def test_indexed_files_summary(helper_config, index_store, lock_registry):
    source = FakeSourceClient(
        [make_document("long", name="long.txt"), make_document("short", name="short.txt")],
        {"long": LONG_TEXT, "short": VALID_TEXT},
    )
    service = _service(helper_config, index_store, lock_registry, source)
    asyncio.run(service.do_sync("user-1", SyncStrategy.NEW_FILES_ONLY, limit=5))

    files = {f.file_id: f for f in asyncio.run(service.do_fetch_indexed_files("user-1"))}

    assert set(files) == {"long", "short"}
    assert files["long"].chunk_count > 1
    assert files["short"].chunk_count == 1
    assert files["short"].total_content == len(VALID_TEXT)
    assert files["long"].file_name == "long.txt"


def test_force_reindex_drops_chunks_of_files_now_too_short(helper_config, index_store, lock_registry):
    source = FakeSourceClient([make_document("doc")], {"doc": LONG_TEXT})
    service = _service(helper_config, index_store, lock_registry, source)
    asyncio.run(service.do_sync("user-1", SyncStrategy.NEW_FILES_ONLY, limit=1))

    source.contents["doc"] = "tiny"
    result = asyncio.run(service.do_sync("user-1", SyncStrategy.FORCE_REINDEX, limit=1))

    assert result.skipped_count == 1
    assert asyncio.run(index_store.do_fetch_file_ids("user-1")) == set()
    assert asyncio.run(index_store.do_fetch_all_chunks("user-1")) == []


def test_force_reindex_drops_chunks_of_files_now_unsupported(helper_config, index_store, lock_registry):
    source = FakeSourceClient(
        [make_document("doc"), make_document("kept", age_minutes=1)],
        {"doc": VALID_TEXT, "kept": VALID_TEXT},
    )
    service = _service(helper_config, index_store, lock_registry, source)
    asyncio.run(service.do_sync("user-1", SyncStrategy.NEW_FILES_ONLY, limit=2))

    del source.contents["doc"]
    asyncio.run(service.do_sync("user-1", SyncStrategy.FORCE_REINDEX, limit=2))

    assert asyncio.run(index_store.do_fetch_file_ids("user-1")) == {"kept"}
