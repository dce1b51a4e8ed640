"""Replays captures that were queued while the device was offline."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from salescoach.application.interfaces import OfflineQueueInterface
from salescoach.domain.models import QueuedRecording, RecordingStatus
from salescoach.services.connectivity import ConnectivityMonitor
from salescoach.services.events import PipelineEvents
from salescoach.services.persistence import RecordingRepository
from salescoach.telemetry import record_replay

from .orchestrator import RecordingOrchestrator, placeholder_for

logger = logging.getLogger("salescoach.pipeline")

DEFAULT_MAX_ATTEMPTS = 3


@dataclass
class DrainReport:
    """Outcome counters for one pass over the queue."""

    uploaded: int = 0
    retrying: int = 0
    dropped: int = 0
    remaining: int = 0
    interrupted: bool = False


class OfflineQueueDrainer:
    """FIFO, one-at-a-time replay of the offline queue with a retry ceiling."""

    def __init__(
        self,
        queue: OfflineQueueInterface,
        orchestrator: RecordingOrchestrator,
        repository: RecordingRepository,
        connectivity: ConnectivityMonitor,
        events: PipelineEvents,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._queue = queue
        self._orchestrator = orchestrator
        self._repository = repository
        self._connectivity = connectivity
        self._events = events
        self._max_attempts = max_attempts
        self._lock = asyncio.Lock()
        # Uploaded items whose queue removal failed; they are never uploaded twice.
        self._uploaded: set[str] = set()

    def attach(self) -> None:
        """Drain automatically on every offline -> online transition."""

        self._connectivity.on_online(self._drain_on_reconnect)

    async def _drain_on_reconnect(self) -> None:
        await self.drain()

    @property
    def is_draining(self) -> bool:
        return self._lock.locked()

    async def drain(self) -> DrainReport:
        report = DrainReport()
        if not self._connectivity.is_online:
            self._events.debug("Still offline - skipping queue processing")
            report.remaining = await self._queue.size()
            return report

        async with self._lock:
            items = await self._queue.list()
            if not items:
                return report

            self._events.debug(f"Processing {len(items)} queued recordings")
            for item in items:
                if not self._connectivity.is_online:
                    self._events.debug("Connection lost - pausing queue processing")
                    report.interrupted = True
                    break
                await self._replay(item, report)

            report.remaining = await self._queue.size()
        return report

    async def _replay(self, item: QueuedRecording, report: DrainReport) -> None:
        if item.id in self._uploaded:
            await self._forget(item)
            return

        # Placeholder leaves the cache before the fresh record arrives.
        self._repository.remove_local(item.user_id, item.placeholder_id)
        self._events.debug(f"Uploading queued recording: {item.client_name}")

        try:
            await self._orchestrator.upload_now(
                item.audio,
                item.user_id,
                item.client_name,
                item.meeting_date,
                item.process_type,
            )
        except Exception as exc:  # noqa: BLE001 - recorded on the queue item
            await self._record_failure(item, str(exc) or type(exc).__name__, report)
            return

        self._uploaded.add(item.id)
        report.uploaded += 1
        record_replay("uploaded")
        self._events.debug(f"Successfully uploaded: {item.client_name}")
        await self._forget(item)

    async def _forget(self, item: QueuedRecording) -> None:
        """Drop an uploaded item from the queue; a failed removal is retried on the next drain."""

        try:
            await self._queue.remove(item.id)
        except Exception:
            logger.exception("Failed to remove uploaded recording %s from the offline queue", item.id)
            return
        self._uploaded.discard(item.id)

    async def _record_failure(self, item: QueuedRecording, message: str, report: DrainReport) -> None:
        attempts = item.attempts + 1
        self._events.debug(f"Failed to upload: {item.client_name} - {message}")

        if attempts >= self._max_attempts:
            await self._queue.remove(item.id)
            self._repository.save_local(
                placeholder_for(
                    item,
                    status=RecordingStatus.FAILED,
                    error=f"Upload failed after {attempts} attempts: {message}",
                )
            )
            report.dropped += 1
            record_replay("dropped")
            logger.warning("Dropped queued recording %s after %s attempts", item.id, attempts)
            self._events.debug(
                f"Removing from queue after {attempts} failed attempts: {item.client_name}"
            )
        else:
            updated = item.model_copy(update={"attempts": attempts, "last_error": message})
            await self._queue.update(updated)
            self._repository.save_local(placeholder_for(updated))
            report.retrying += 1
            record_replay("retry")

        self._events.recordings_changed(item.user_id)


__all__ = ["DEFAULT_MAX_ATTEMPTS", "DrainReport", "OfflineQueueDrainer"]
