"""Tests for the memory and SQLite index engines."""

import asyncio
from datetime import datetime, timezone

import pytest

from shared.clients.index.IndexStoreManager import IndexStoreManager
from shared.clients.index.memory.IndexStoreMemory import IndexStoreMemory
from shared.clients.index.sqlite.IndexStoreSqlite import IndexStoreSqlite
from shared.models.organization import ActivityMetadata, ClusterCategory, OrganizationActivity
from tests.helpers import make_chunk, make_document


@pytest.fixture(params=["memory", "sqlite"])
def store(request, helper_config, tmp_path, monkeypatch):
    if request.param == "sqlite":
        monkeypatch.setenv("INDEX_SQLITE_PATH", str(tmp_path / "index" / "test.sqlite3"))
        engine = IndexStoreSqlite(helper_config=helper_config)
    else:
        engine = IndexStoreMemory(helper_config=helper_config)
    asyncio.run(engine.boot())
    return engine


def _file_chunks(file_id: str, count: int, user_id: str = "user-1"):
    return [
        make_chunk(file_id, [float(i), 1.0], chunk_index=i, user_id=user_id, chunk_total=count)
        for i in range(count)
    ]


def test_replace_file_chunks_swaps_all_chunks(store):
    asyncio.run(store.do_replace_file_chunks("user-1", "a", _file_chunks("a", 3)))
    asyncio.run(store.do_replace_file_chunks("user-1", "a", _file_chunks("a", 1)))

    chunks = asyncio.run(store.do_fetch_all_chunks("user-1"))

    assert [(c.file_id, c.chunk_index) for c in chunks] == [("a", 0)]
    assert chunks[0].metadata.chunk_total == 1


def test_replace_with_empty_list_removes_file(store):
    asyncio.run(store.do_replace_file_chunks("user-1", "a", _file_chunks("a", 2)))
    asyncio.run(store.do_replace_file_chunks("user-1", "a", []))

    assert asyncio.run(store.do_fetch_file_ids("user-1")) == set()


def test_replace_rejects_gaps_and_foreign_chunks(store):
    gapped = [make_chunk("a", [1.0], chunk_index=0), make_chunk("a", [1.0], chunk_index=2)]
    with pytest.raises(ValueError):
        asyncio.run(store.do_replace_file_chunks("user-1", "a", gapped))

    with pytest.raises(ValueError):
        asyncio.run(store.do_replace_file_chunks("user-1", "a", _file_chunks("b", 1)))


def test_fetch_all_chunks_groups_by_file_in_order(store):
    asyncio.run(store.do_replace_file_chunks("user-1", "b", _file_chunks("b", 2)))
    asyncio.run(store.do_replace_file_chunks("user-1", "a", _file_chunks("a", 3)))
    asyncio.run(store.do_replace_file_chunks("user-2", "c", _file_chunks("c", 1, user_id="user-2")))

    chunks = asyncio.run(store.do_fetch_all_chunks("user-1"))

    by_file: dict[str, list[int]] = {}
    for chunk in chunks:
        by_file.setdefault(chunk.file_id, []).append(chunk.chunk_index)
    assert by_file == {"a": [0, 1, 2], "b": [0, 1]}
    assert asyncio.run(store.do_fetch_file_ids("user-1")) == {"a", "b"}
    assert chunks[0].vector == [0.0, 1.0]


def test_store_chunk_and_delete(store):
    for chunk in _file_chunks("a", 2):
        asyncio.run(store.do_store_chunk(chunk))

    removed = asyncio.run(store.do_delete_file_chunks("user-1", "a"))

    assert removed == 2
    assert asyncio.run(store.do_fetch_all_chunks("user-1")) == []


def test_documents_are_upserted(store):
    asyncio.run(store.do_upsert_document("user-1", make_document("a", name="first.txt")))
    asyncio.run(store.do_upsert_document("user-1", make_document("a", name="renamed.txt")))

    documents = asyncio.run(store.do_fetch_documents("user-1"))

    assert [(d.file_id, d.name, d.user_id) for d in documents] == [("a", "renamed.txt", "user-1")]


def test_activities_and_sync_time(store):
    activity = OrganizationActivity(
        user_id="user-1",
        cluster_name="Invoice Collection",
        folder_name="Invoice",
        files_moved=3,
        method="api",
        confidence=0.8,
        metadata=ActivityMetadata(category=ClusterCategory.DOCUMENTS, keywords=["invoice"], folder_id="f-1"),
        timestamp=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )
    synced_at = datetime(2024, 5, 2, 8, 30, tzinfo=timezone.utc)

    asyncio.run(store.do_log_organization_activity(activity))
    asyncio.run(store.do_mark_synced("user-1", synced_at))

    assert asyncio.run(store.do_fetch_organization_activities("user-1")) == [activity]
    assert asyncio.run(store.do_fetch_organization_activities("user-2")) == []
    assert asyncio.run(store.do_fetch_last_sync_time("user-1")) == synced_at
    assert asyncio.run(store.do_fetch_last_sync_time("user-2")) is None


def test_manager_selects_engine(helper_config, monkeypatch):
    monkeypatch.setenv("INDEX_ENGINE", "sqlite")
    assert isinstance(IndexStoreManager(helper_config=helper_config).get_store(), IndexStoreSqlite)

    monkeypatch.delenv("INDEX_ENGINE")
    assert IndexStoreManager(helper_config=helper_config).get_store().get_engine_name() == "memory"


def test_manager_rejects_unknown_engine(helper_config, monkeypatch):
    monkeypatch.setenv("INDEX_ENGINE", "cassandra")
    with pytest.raises(ValueError):
        IndexStoreManager(helper_config=helper_config)
