"""On-device cache and durable offline queue."""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta, timezone

from salescoach.domain.models import KnowledgeBase, QueuedRecording, SalesProcess
from salescoach.infrastructure.local import (
    FileKeyValueStore,
    FileOfflineQueue,
    LocalCatalogCache,
    LocalRecordingCache,
    MemoryKeyValueStore,
)
from tests.fakes import make_recording

QUEUED_AT = datetime(2026, 10, 18, 8, 0, tzinfo=timezone.utc)


def _queued(item_id: str, *, minutes: int = 0, audio: bytes = b"raw-audio") -> QueuedRecording:
    return QueuedRecording(
        id=item_id,
        placeholder_id=f"queued_{item_id}",
        user_id="rep-1",
        client_name=f"Client {item_id}",
        meeting_date=date(2026, 10, 17),
        queued_at=QUEUED_AT + timedelta(minutes=minutes),
        audio=audio,
    )


def test_file_store_survives_new_instance(tmp_path):
    FileKeyValueStore(tmp_path).set("recordings_rep-1", "[]")

    reopened = FileKeyValueStore(tmp_path)

    assert reopened.get("recordings_rep-1") == "[]"
    assert reopened.keys() == ["recordings_rep-1"]
    assert not list(tmp_path.glob("*.tmp"))


def test_file_store_delete_and_missing_key(tmp_path):
    store = FileKeyValueStore(tmp_path)
    store.set("knowledgeBase", "{}")
    store.delete("knowledgeBase")

    assert store.get("knowledgeBase") is None
    assert store.get("never-written") is None


def test_recording_cache_upsert_inserts_first_and_replaces_in_place():
    cache = LocalRecordingCache(MemoryKeyValueStore())
    older = make_recording("rec-1", score=50)
    newer = make_recording("rec-2", score=60)
    cache.upsert(older)
    cache.upsert(newer)

    updated = make_recording("rec-1", score=95)
    cache.upsert(updated)

    assert [r.id for r in cache.list("rep-1")] == ["rec-2", "rec-1"]
    assert cache.get("rep-1", "rec-1").score == 95


def test_recording_cache_is_per_owner():
    cache = LocalRecordingCache(MemoryKeyValueStore())
    cache.upsert(make_recording("rec-1", user_id="rep-1", score=70))
    cache.upsert(make_recording("rec-2", user_id="rep-2", score=80))

    assert sorted(cache.known_owners()) == ["rep-1", "rep-2"]
    assert cache.get("rep-1", "rec-2") is None
    assert cache.remove("rep-2", "rec-2") is True
    assert cache.remove("rep-2", "rec-2") is False


def test_recording_cache_uses_camel_case_wire_format():
    store = MemoryKeyValueStore()
    LocalRecordingCache(store).upsert(make_recording("rec-1", score=70))

    raw = store.get("recordings_rep-1")

    assert '"clientName": "Acme Corp"' in raw
    assert '"overallScore": 70.0' in raw


def test_recording_cache_tolerates_corrupt_entries():
    store = MemoryKeyValueStore()
    store.set("recordings_rep-1", "{not json")

    assert LocalRecordingCache(store).list("rep-1") == []


def test_catalog_cache_always_offers_default_process():
    cache = LocalCatalogCache(MemoryKeyValueStore())
    cache.upsert_process(SalesProcess(id="smb", name="SMB"))

    assert [p.id for p in cache.list_processes()] == ["standard", "smb"]

    cache.remove_process("standard")
    assert cache.get_process("standard") is not None


def test_catalog_cache_knowledge_base_defaults_to_empty():
    cache = LocalCatalogCache(MemoryKeyValueStore())
    assert cache.get_knowledge_base() == KnowledgeBase()

    cache.set_knowledge_base(KnowledgeBase(products=["Widget Pro"]))
    assert cache.get_knowledge_base().products == ["Widget Pro"]


def test_offline_queue_lists_oldest_first_with_payload(tmp_path):
    queue = FileOfflineQueue(tmp_path / "queue")

    async def scenario():
        await queue.add(_queued("b", minutes=5, audio=b"second"))
        await queue.add(_queued("a", minutes=0, audio=b"first"))
        return await queue.list(), await queue.size()

    items, size = asyncio.run(scenario())

    assert [item.id for item in items] == ["a", "b"]
    assert [item.audio for item in items] == [b"first", b"second"]
    assert size == 2


def test_offline_queue_update_keeps_audio(tmp_path):
    queue = FileOfflineQueue(tmp_path)

    async def scenario():
        item = await queue.add(_queued("a"))
        await queue.update(item.model_copy(update={"attempts": 2, "last_error": "Service unavailable"}))
        return await queue.list()

    (item,) = asyncio.run(scenario())

    assert item.attempts == 2
    assert item.last_error == "Service unavailable"
    assert item.audio == b"raw-audio"


def test_offline_queue_metadata_never_embeds_audio(tmp_path):
    queue = FileOfflineQueue(tmp_path)
    asyncio.run(queue.add(_queued("a", audio=b"secret-bytes")))

    metadata = (tmp_path / "a.json").read_text(encoding="utf-8")

    assert "secret-bytes" not in metadata
    assert '"placeholderId":"queued_a"' in metadata


def test_offline_queue_remove_and_skip_orphans(tmp_path):
    queue = FileOfflineQueue(tmp_path)

    async def scenario():
        await queue.add(_queued("a"))
        await queue.add(_queued("b", minutes=1))
        (tmp_path / "b.audio").unlink()
        await queue.remove("a")
        return await queue.list()

    assert asyncio.run(scenario()) == []
    assert not (tmp_path / "a.json").exists()


def test_file_cache_keeps_owners_with_similar_ids_apart(tmp_path):
    cache = LocalRecordingCache(FileKeyValueStore(tmp_path))
    cache.upsert(make_recording("rec-a", user_id="alice@corp.com", score=70))
    cache.upsert(make_recording("rec-b", user_id="alice_corp.com", score=40))

    reopened = LocalRecordingCache(FileKeyValueStore(tmp_path))

    assert [r.id for r in reopened.list("alice@corp.com")] == ["rec-a"]
    assert [r.id for r in reopened.list("alice_corp.com")] == ["rec-b"]
    assert sorted(reopened.known_owners()) == ["alice@corp.com", "alice_corp.com"]


def test_file_store_ignores_foreign_files(tmp_path):
    store = FileKeyValueStore(tmp_path)
    store.set("recordings_rep/1", "[]")
    (tmp_path / "not base64!.json").write_text("{}", encoding="utf-8")

    assert store.keys() == ["recordings_rep/1"]
