"""Fast local cache mirroring known recording state.

Reads and writes are synchronous so views can render instantly. The cache is
a derived view: losing it costs latency, never data, because the remote
store can always repopulate it.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from salescoach.domain.defaults import DEFAULT_SALES_PROCESS, empty_knowledge_base
from salescoach.domain.models import KnowledgeBase, Recording, SalesProcess

logger = logging.getLogger(__name__)

_RECORDINGS_PREFIX = "recordings_"
_PROCESSES_KEY = "salesProcesses"
_KNOWLEDGE_BASE_KEY = "knowledgeBase"


class KeyValueStore(ABC):
    """Synchronous string key/value storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        ...


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store; contents vanish on restart."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileKeyValueStore(KeyValueStore):
    """One JSON file per key inside a directory; survives restarts.

    File names are the urlsafe base64 of the key, so distinct keys never
    share a file and ``keys()`` returns them unchanged.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @staticmethod
    def _encode(key: str) -> str:
        return base64.urlsafe_b64encode(key.encode("utf-8")).decode("ascii")

    @staticmethod
    def _decode(stem: str) -> Optional[str]:
        try:
            key = base64.urlsafe_b64decode(stem.encode("ascii")).decode("utf-8")
        except (binascii.Error, UnicodeError, ValueError):
            key = None
        if key is None or FileKeyValueStore._encode(key) != stem:
            logger.warning("Ignoring foreign file in cache directory: %s", stem)
            return None
        return key

    def _path(self, key: str) -> Path:
        return self._directory / f"{self._encode(key)}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        # Atomic replace through a sibling temp file.
        fd, tmp_name = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_name, self._path(key))
        finally:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)

    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def keys(self) -> list[str]:
        if not self._directory.exists():
            return []
        decoded = (self._decode(path.stem) for path in self._directory.glob("*.json"))
        return sorted(key for key in decoded if key is not None)


def _load_json_list(raw: Optional[str], key: str) -> list:
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding corrupt cache entry key=%s", key)
        return []
    return data if isinstance(data, list) else []


class LocalRecordingCache:
    """Per-owner recording lists, newest first."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @staticmethod
    def _key(owner_id: str) -> str:
        return f"{_RECORDINGS_PREFIX}{owner_id}"

    def list(self, owner_id: str) -> list[Recording]:
        key = self._key(owner_id)
        recordings: list[Recording] = []
        for item in _load_json_list(self._store.get(key), key):
            try:
                recordings.append(Recording.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping invalid cached recording owner=%s: %s", owner_id, exc)
        return recordings

    def get(self, owner_id: str, recording_id: str) -> Optional[Recording]:
        return next((r for r in self.list(owner_id) if r.id == recording_id), None)

    def replace_all(self, owner_id: str, recordings: Iterable[Recording]) -> None:
        payload = [recording.to_wire() for recording in recordings]
        self._store.set(self._key(owner_id), json.dumps(payload))

    def upsert(self, recording: Recording) -> None:
        """Replace the record with the same id in place, or insert it first."""

        recordings = self.list(recording.user_id)
        for index, existing in enumerate(recordings):
            if existing.id == recording.id:
                recordings[index] = recording
                break
        else:
            recordings.insert(0, recording)
        self.replace_all(recording.user_id, recordings)

    def remove(self, owner_id: str, recording_id: str) -> bool:
        recordings = self.list(owner_id)
        remaining = [r for r in recordings if r.id != recording_id]
        if len(remaining) == len(recordings):
            return False
        self.replace_all(owner_id, remaining)
        return True

    def known_owners(self) -> list[str]:
        return [
            key[len(_RECORDINGS_PREFIX):]
            for key in self._store.keys()
            if key.startswith(_RECORDINGS_PREFIX)
        ]


class LocalCatalogCache:
    """Cached sales processes and knowledge base."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def list_processes(self) -> list[SalesProcess]:
        processes: list[SalesProcess] = []
        for item in _load_json_list(self._store.get(_PROCESSES_KEY), _PROCESSES_KEY):
            try:
                processes.append(SalesProcess.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping invalid cached sales process: %s", exc)
        if not any(p.id == DEFAULT_SALES_PROCESS.id for p in processes):
            processes.insert(0, DEFAULT_SALES_PROCESS)
        return processes

    def get_process(self, process_id: str) -> Optional[SalesProcess]:
        return next((p for p in self.list_processes() if p.id == process_id), None)

    def _write_processes(self, processes: Iterable[SalesProcess]) -> None:
        payload = [process.to_wire() for process in processes]
        self._store.set(_PROCESSES_KEY, json.dumps(payload))

    def upsert_process(self, process: SalesProcess) -> None:
        processes = self.list_processes()
        for index, existing in enumerate(processes):
            if existing.id == process.id:
                processes[index] = process
                break
        else:
            processes.append(process)
        self._write_processes(processes)

    def remove_process(self, process_id: str) -> None:
        self._write_processes(p for p in self.list_processes() if p.id != process_id)

    def get_knowledge_base(self) -> KnowledgeBase:
        raw = self._store.get(_KNOWLEDGE_BASE_KEY)
        if not raw:
            return empty_knowledge_base()
        try:
            return KnowledgeBase.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding corrupt cached knowledge base: %s", exc)
            return empty_knowledge_base()

    def set_knowledge_base(self, knowledge_base: KnowledgeBase) -> None:
        self._store.set(_KNOWLEDGE_BASE_KEY, json.dumps(knowledge_base.to_wire()))


__all__ = [
    "FileKeyValueStore",
    "KeyValueStore",
    "LocalCatalogCache",
    "LocalRecordingCache",
    "MemoryKeyValueStore",
]
