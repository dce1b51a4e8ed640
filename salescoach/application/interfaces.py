from abc import ABC, abstractmethod
from typing import List, Optional

from salescoach.domain.models import (
    KnowledgeBase,
    ManagerReview,
    QueuedRecording,
    Recording,
    SalesProcess,
)


class RecordingStoreInterface(ABC):
    """Persistence contract for the remote authoritative recording store"""

    @abstractmethod
    async def upsert(self, recording: Recording) -> None:
        ...

    @abstractmethod
    async def list_for_owner(self, owner_id: str) -> List[Recording]:
        ...

    @abstractmethod
    async def get(self, owner_id: str, recording_id: str) -> Optional[Recording]:
        ...

    @abstractmethod
    async def delete(self, owner_id: str, recording_id: str) -> bool:
        ...

    @abstractmethod
    async def has_recordings(self, owner_id: str) -> bool:
        ...

    @abstractmethod
    async def upsert_review(self, recording_id: str, review: ManagerReview) -> None:
        ...

    @abstractmethod
    async def delete_review(self, recording_id: str) -> None:
        ...


class CatalogStoreInterface(ABC):
    """Persistence contract for sales processes and the knowledge base"""

    @abstractmethod
    async def list_processes(self) -> List[SalesProcess]:
        ...

    @abstractmethod
    async def get_process(self, process_id: str) -> Optional[SalesProcess]:
        ...

    @abstractmethod
    async def upsert_process(self, process: SalesProcess, owner_id: str) -> None:
        ...

    @abstractmethod
    async def delete_process(self, process_id: str) -> None:
        ...

    @abstractmethod
    async def get_active_knowledge_base(self) -> Optional[KnowledgeBase]:
        ...

    @abstractmethod
    async def save_knowledge_base(self, knowledge_base: KnowledgeBase, owner_id: str) -> None:
        ...


class OfflineQueueInterface(ABC):
    """Durable on-device staging area for recordings captured while offline"""

    @abstractmethod
    async def add(self, item: QueuedRecording) -> QueuedRecording:
        ...

    @abstractmethod
    async def list(self) -> List[QueuedRecording]:
        """Return queued items oldest first."""

    @abstractmethod
    async def update(self, item: QueuedRecording) -> None:
        ...

    @abstractmethod
    async def remove(self, item_id: str) -> None:
        ...

    @abstractmethod
    async def size(self) -> int:
        ...
