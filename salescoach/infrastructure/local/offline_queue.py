"""Durable on-device queue for recordings captured while offline.

Each item is two files: ``<id>.json`` with the metadata and ``<id>.audio``
with the raw payload. File I/O runs in the threadpool so replaying a large
backlog never blocks the event loop.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from salescoach.application.interfaces import OfflineQueueInterface
from salescoach.domain.models import QueuedRecording

logger = logging.getLogger(__name__)


class FileOfflineQueue(OfflineQueueInterface):
    """Directory-backed implementation of the offline queue."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    def _meta_path(self, item_id: str) -> Path:
        return self._directory / f"{item_id}.json"

    def _audio_path(self, item_id: str) -> Path:
        return self._directory / f"{item_id}.audio"

    def _write_sync(self, item: QueuedRecording, *, include_audio: bool) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        if include_audio:
            self._audio_path(item.id).write_bytes(item.audio)
        meta_path = self._meta_path(item.id)
        tmp_path = meta_path.with_suffix(".json.tmp")
        tmp_path.write_text(item.model_dump_json(by_alias=True), encoding="utf-8")
        os.replace(tmp_path, meta_path)

    def _read_all_sync(self) -> List[QueuedRecording]:
        if not self._directory.exists():
            return []
        items: list[QueuedRecording] = []
        for meta_path in self._directory.glob("*.json"):
            try:
                item = QueuedRecording.model_validate_json(meta_path.read_text(encoding="utf-8"))
            except (OSError, ValidationError) as exc:
                logger.warning("Skipping unreadable queue entry %s: %s", meta_path.name, exc)
                continue
            audio_path = self._audio_path(item.id)
            if not audio_path.exists():
                logger.warning("Queue entry %s has no audio payload; skipping", item.id)
                continue
            item.audio = audio_path.read_bytes()
            items.append(item)
        items.sort(key=lambda queued: (queued.queued_at, queued.id))
        return items

    def _remove_sync(self, item_id: str) -> None:
        for path in (self._meta_path(item_id), self._audio_path(item_id)):
            if path.exists():
                path.unlink()

    async def add(self, item: QueuedRecording) -> QueuedRecording:
        await run_in_threadpool(self._write_sync, item, include_audio=True)
        logger.info("Queued recording %s for later upload", item.id)
        return item

    async def list(self) -> List[QueuedRecording]:
        return await run_in_threadpool(self._read_all_sync)

    async def update(self, item: QueuedRecording) -> None:
        # Only the metadata changes between attempts; the payload is immutable.
        await run_in_threadpool(self._write_sync, item, include_audio=False)

    async def remove(self, item_id: str) -> None:
        await run_in_threadpool(self._remove_sync, item_id)

    async def size(self) -> int:
        if not self._directory.exists():
            return 0
        return await run_in_threadpool(lambda: len(list(self._directory.glob("*.json"))))


__all__ = ["FileOfflineQueue"]
