"""Dual-write persistence: fast local cache first, remote store best-effort.

Every call site goes through the two primitives below so reads and writes
share one availability policy:

* ``write_through`` commits locally (cannot fail observably), then attempts
  the remote write; a remote failure is logged and counted, never raised.
* ``read_with_fallback`` prefers the remote answer when it is reachable and
  acceptable (non-empty), otherwise serves the local copy. Recording reads
  then merge the remote answer with the cache, keeping the copy of each id
  that is further along its lifecycle.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar

from salescoach.application.interfaces import CatalogStoreInterface, RecordingStoreInterface
from salescoach.domain.defaults import DEFAULT_PROCESS_ID
from salescoach.domain.models import (
    KnowledgeBase,
    ManagerReview,
    Recording,
    RecordingStatus,
    SalesProcess,
    SyncReport,
)
from salescoach.infrastructure.local import LocalCatalogCache, LocalRecordingCache
from salescoach.telemetry import record_remote_failure

logger = logging.getLogger(__name__)

T = TypeVar("T")
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


_STAGE_ORDER = {
    RecordingStatus.UPLOADED: 0,
    RecordingStatus.TRANSCRIBING: 1,
    RecordingStatus.ANALYZING: 2,
    RecordingStatus.COMPLETED: 3,
    RecordingStatus.FAILED: 3,
}
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _aware(value: Optional[datetime]) -> datetime:
    if value is None:
        return _EPOCH
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _freshness(recording: Recording) -> tuple[int, datetime, datetime]:
    review = recording.manager_review
    return (
        _STAGE_ORDER[recording.status],
        _aware(recording.completed_at),
        _aware(review.reviewed_at if review else None),
    )


def _is_fresher(candidate: Recording, current: Recording) -> bool:
    """True when ``candidate`` is further along than ``current``; ties keep ``current``."""

    return _freshness(candidate) > _freshness(current)


async def write_through(
    local_write: Callable[[], object],
    remote_write: Callable[[], Awaitable[object]],
    *,
    operation: str,
) -> bool:
    """Apply ``local_write`` then try ``remote_write``; return whether the remote took it."""

    local_write()
    try:
        await remote_write()
    except Exception as exc:  # noqa: BLE001 - remote sync is best-effort
        logger.warning("Remote %s failed; local state kept: %s", operation, exc)
        record_remote_failure(operation)
        return False
    return True


async def read_with_fallback(
    remote_read: Callable[[], Awaitable[T]],
    local_read: Callable[[], T],
    *,
    operation: str,
    accept: Callable[[T], bool] = bool,
) -> T:
    """Return the remote value when reachable and accepted, else the local one."""

    try:
        value = await remote_read()
    except Exception as exc:  # noqa: BLE001 - fall back to the cache
        logger.warning("Remote %s failed; serving local copy: %s", operation, exc)
        record_remote_failure(operation)
    else:
        if accept(value):
            return value
    return local_read()


class RecordingRepository:
    """Recording reads/writes across the local cache and the remote store."""

    def __init__(
        self,
        cache: LocalRecordingCache,
        remote: RecordingStoreInterface,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._cache = cache
        self._remote = remote
        self._clock = clock

    @property
    def cache(self) -> LocalRecordingCache:
        return self._cache

    async def save(self, recording: Recording) -> bool:
        return await write_through(
            lambda: self._cache.upsert(recording),
            lambda: self._remote.upsert(recording),
            operation="upsert_recording",
        )

    def save_local(self, recording: Recording) -> None:
        """Cache-only write for records that must never reach the remote store."""

        self._cache.upsert(recording)

    def remove_local(self, owner_id: str, recording_id: str) -> bool:
        return self._cache.remove(owner_id, recording_id)

    def list_local(self, owner_id: str) -> list[Recording]:
        return self._cache.list(owner_id)

    def get_local(self, owner_id: str, recording_id: str) -> Optional[Recording]:
        return self._cache.get(owner_id, recording_id)

    async def list(self, owner_id: str) -> list[Recording]:
        """Remote history merged with the cache; the fresher copy of each id wins."""

        remote_recordings = await read_with_fallback(
            lambda: self._remote.list_for_owner(owner_id),
            list,
            operation="list_recordings",
        )
        return self._merge_into_cache(owner_id, remote_recordings)

    def _merge_into_cache(self, owner_id: str, remote_recordings: list[Recording]) -> list[Recording]:
        local = self._cache.list(owner_id)
        if not remote_recordings:
            return local

        merged = {recording.id: recording for recording in local}
        changed = False
        for remote in remote_recordings:
            cached = merged.get(remote.id)
            if cached is None or _is_fresher(remote, cached):
                merged[remote.id] = remote
                changed = True
        recordings = sorted(merged.values(), key=lambda r: _aware(r.uploaded_at), reverse=True)
        if changed:
            self._cache.replace_all(owner_id, recordings)
        return recordings

    async def get(self, owner_id: str, recording_id: str) -> Optional[Recording]:
        cached = self._cache.get(owner_id, recording_id)
        remote = await read_with_fallback(
            lambda: self._remote.get(owner_id, recording_id),
            lambda: None,
            operation="get_recording",
            accept=lambda value: value is not None,
        )
        if remote is None:
            return cached
        if cached is None or _is_fresher(remote, cached):
            self._cache.upsert(remote)
            return remote
        return cached

    async def delete(self, owner_id: str, recording_id: str) -> None:
        await write_through(
            lambda: self._cache.remove(owner_id, recording_id),
            lambda: self._remote.delete(owner_id, recording_id),
            operation="delete_recording",
        )

    async def add_review(
        self,
        owner_id: str,
        recording_id: str,
        review: ManagerReview,
    ) -> Optional[Recording]:
        """Attach (or replace) the manager review on a recording."""

        stamped = review.model_copy(update={"reviewed_at": self._clock()})
        updated: dict[str, Recording] = {}

        def local_write() -> None:
            current = self._cache.get(owner_id, recording_id)
            if current is None:
                return
            recording = current.model_copy(update={"manager_review": stamped})
            self._cache.upsert(recording)
            updated["recording"] = recording

        await write_through(
            local_write,
            lambda: self._remote.upsert_review(recording_id, stamped),
            operation="upsert_review",
        )
        return updated.get("recording")

    async def remove_review(self, owner_id: str, recording_id: str) -> None:
        def local_write() -> None:
            current = self._cache.get(owner_id, recording_id)
            if current is not None:
                self._cache.upsert(current.model_copy(update={"manager_review": None}))

        await write_through(
            local_write,
            lambda: self._remote.delete_review(recording_id),
            operation="delete_review",
        )

    async def has_remote_data(self, owner_id: str) -> bool:
        try:
            return await self._remote.has_recordings(owner_id)
        except Exception as exc:  # noqa: BLE001 - treated as "unknown"
            logger.warning("Remote count failed owner=%s: %s", owner_id, exc)
            record_remote_failure("count_recordings")
            return False

    async def sync_local_to_remote(
        self,
        owner_id: str,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> SyncReport:
        """Push every cached record (except queued placeholders) to the remote store."""

        recordings = [r for r in self._cache.list(owner_id) if not r.is_placeholder]
        report = SyncReport(total=len(recordings))
        for index, recording in enumerate(recordings, start=1):
            try:
                await self._remote.upsert(recording)
            except Exception as exc:  # noqa: BLE001 - counted in the report
                logger.warning("Sync of recording %s failed: %s", recording.id, exc)
                record_remote_failure("sync_recording")
                report.failed += 1
            else:
                report.success += 1
            if on_progress is not None:
                on_progress(index, report.total)
        return report


class CatalogRepository:
    """Sales processes and knowledge base across both stores."""

    def __init__(
        self,
        cache: LocalCatalogCache,
        remote: CatalogStoreInterface,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._cache = cache
        self._remote = remote
        self._clock = clock

    async def list_processes(self) -> list[SalesProcess]:
        return await read_with_fallback(
            self._remote.list_processes,
            self._cache.list_processes,
            operation="list_processes",
        )

    async def get_process(self, process_id: str) -> Optional[SalesProcess]:
        return await read_with_fallback(
            lambda: self._remote.get_process(process_id),
            lambda: self._cache.get_process(process_id),
            operation="get_process",
            accept=lambda value: value is not None,
        )

    async def save_process(self, process: SalesProcess, owner_id: str) -> SalesProcess:
        if process.created_at is None:
            process = process.model_copy(update={"created_at": self._clock(), "created_by": owner_id})
        await write_through(
            lambda: self._cache.upsert_process(process),
            lambda: self._remote.upsert_process(process, owner_id),
            operation="upsert_process",
        )
        return process

    async def delete_process(self, process_id: str) -> bool:
        if process_id == DEFAULT_PROCESS_ID:
            return False
        await write_through(
            lambda: self._cache.remove_process(process_id),
            lambda: self._remote.delete_process(process_id),
            operation="delete_process",
        )
        return True

    async def get_knowledge_base(self) -> KnowledgeBase:
        return await read_with_fallback(
            self._remote.get_active_knowledge_base,
            self._cache.get_knowledge_base,
            operation="get_knowledge_base",
            accept=lambda value: value is not None,
        )

    async def save_knowledge_base(self, knowledge_base: KnowledgeBase, owner_id: str) -> KnowledgeBase:
        stamped = knowledge_base.model_copy(
            update={"last_updated": self._clock(), "updated_by": owner_id}
        )
        await write_through(
            lambda: self._cache.set_knowledge_base(stamped),
            lambda: self._remote.save_knowledge_base(stamped, owner_id),
            operation="save_knowledge_base",
        )
        return stamped


__all__ = [
    "CatalogRepository",
    "RecordingRepository",
    "read_with_fallback",
    "write_through",
]
