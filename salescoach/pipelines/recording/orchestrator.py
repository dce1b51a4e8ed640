"""Recording pipeline orchestrator.

``submit`` is the only entry point for new captures. Online, it uploads
synchronously and hands the remaining stages to one background task per
recording; offline, it stages the capture in the durable queue and leaves a
placeholder in the local cache. The background task is the state machine:

    transcribing -> analyzing -> completed
          \\             \\
           +-> failed     +-> failed
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Coroutine, Mapping, Optional
from uuid import uuid4

from salescoach.application.interfaces import OfflineQueueInterface
from salescoach.config.settings import PipelineConfig
from salescoach.domain.models import (
    QUEUED_ID_PREFIX,
    QUEUED_MARKER,
    QueuedRecording,
    Recording,
    RecordingStatus,
)
from salescoach.services.coach_api import CoachApiClient, encode_audio
from salescoach.services.connectivity import ConnectivityMonitor
from salescoach.services.events import PipelineEvents
from salescoach.services.persistence import Clock, RecordingRepository, utc_now
from salescoach.telemetry import record_transition

from .analysis import AnalysisStage
from .transcription import Sleep, transcribe_audio

logger = logging.getLogger("salescoach.pipeline")

# Descriptive fields the upload endpoint may echo back for the new record.
_UPLOAD_FIELDS = ("userId", "clientName", "meetingDate", "duration", "processType", "uploadedAt")


def placeholder_for(
    item: QueuedRecording,
    *,
    status: RecordingStatus = RecordingStatus.UPLOADED,
    error: str = QUEUED_MARKER,
) -> Recording:
    """Synthesize the cache-only record that stands in for a queued capture."""

    return Recording(
        id=item.placeholder_id,
        user_id=item.user_id,
        client_name=item.client_name,
        meeting_date=item.meeting_date,
        status=status,
        process_type=item.process_type,
        uploaded_at=item.queued_at,
        error=error,
    )


def _error_text(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class RecordingOrchestrator:
    """Drives recordings from upload to a terminal state."""

    def __init__(
        self,
        client: CoachApiClient,
        repository: RecordingRepository,
        queue: OfflineQueueInterface,
        analysis: AnalysisStage,
        connectivity: ConnectivityMonitor,
        events: PipelineEvents,
        *,
        config: Optional[PipelineConfig] = None,
        clock: Clock = utc_now,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self._client = client
        self._repository = repository
        self._queue = queue
        self._analysis = analysis
        self._connectivity = connectivity
        self._events = events
        self._config = config or PipelineConfig()
        self._clock = clock
        self._sleep = sleep
        self._tasks: set[asyncio.Task] = set()

    @property
    def active_jobs(self) -> int:
        return len(self._tasks)

    async def submit(
        self,
        audio: bytes,
        owner_id: str,
        client_name: str,
        meeting_date: date,
        process_type: Optional[str] = None,
    ) -> Recording:
        """Start processing a finished capture.

        Returns the queued placeholder when offline, otherwise the freshly
        uploaded record in ``transcribing``. Upload failures propagate.
        """

        if not client_name or not client_name.strip():
            raise ValueError("Client name is required")
        process = process_type or self._config.default_process_type

        if not self._connectivity.is_online:
            return await self.enqueue(audio, owner_id, client_name, meeting_date, process)
        return await self.upload_now(audio, owner_id, client_name, meeting_date, process)

    async def enqueue(
        self,
        audio: bytes,
        owner_id: str,
        client_name: str,
        meeting_date: date,
        process_type: str,
    ) -> Recording:
        self._events.debug("Offline - adding to queue")
        item_id = uuid4().hex
        item = QueuedRecording(
            id=item_id,
            placeholder_id=f"{QUEUED_ID_PREFIX}{item_id}",
            user_id=owner_id,
            client_name=client_name,
            meeting_date=meeting_date,
            process_type=process_type,
            queued_at=self._clock(),
            audio=audio,
        )
        await self._queue.add(item)

        placeholder = placeholder_for(item)
        self._repository.save_local(placeholder)
        record_transition(placeholder.status.value)
        self._events.recordings_changed(owner_id)
        return placeholder

    async def upload_now(
        self,
        audio: bytes,
        owner_id: str,
        client_name: str,
        meeting_date: date,
        process_type: str,
    ) -> Recording:
        """Upload immediately and schedule the stage chain; never queues."""

        self._events.debug("Starting upload...")
        audio_b64 = encode_audio(audio)
        payload = await self._client.upload_recording(
            audio_b64,
            user_id=owner_id,
            client_name=client_name,
            meeting_date=meeting_date,
            process_type=process_type,
        )
        recording = self._recording_from_upload(
            payload,
            owner_id=owner_id,
            client_name=client_name,
            meeting_date=meeting_date,
            process_type=process_type,
        )

        self._repository.save_local(recording)
        record_transition(recording.status.value)
        self._events.debug(f"Starting transcription for {recording.id}")
        self._events.recordings_changed(owner_id)
        self._schedule(self._run_stages(recording, audio_b64))
        return recording

    def _recording_from_upload(
        self,
        payload: Mapping[str, Any],
        *,
        owner_id: str,
        client_name: str,
        meeting_date: date,
        process_type: str,
    ) -> Recording:
        data: dict[str, Any] = {
            "userId": owner_id,
            "clientName": client_name,
            "meetingDate": meeting_date,
            "processType": process_type,
            "uploadedAt": self._clock(),
        }
        data.update({key: payload[key] for key in _UPLOAD_FIELDS if payload.get(key)})
        data["id"] = str(payload["recordingId"])
        data["status"] = RecordingStatus.TRANSCRIBING
        return Recording.model_validate(data)

    def _schedule(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Recording pipeline task crashed", exc_info=exc)

    async def wait_idle(self) -> None:
        """Wait until every scheduled stage chain has finished."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run_stages(self, recording: Recording, audio_b64: str) -> None:
        # First remote write of the record runs here, off the submit path.
        await self._repository.save(recording)

        try:
            transcription = await transcribe_audio(
                self._client,
                audio_b64,
                poll_interval=self._config.poll_interval_seconds,
                max_attempts=self._config.max_poll_attempts,
                events=self._events,
                sleep=self._sleep,
            )
        except Exception as exc:  # noqa: BLE001 - every failure becomes a state
            self._events.debug(f"Transcription failed: {_error_text(exc)}")
            await self._transition(recording, RecordingStatus.FAILED, error=_error_text(exc))
            return

        self._events.debug("Transcription completed")
        recording = await self._transition(
            recording,
            RecordingStatus.ANALYZING,
            transcription=transcription,
        )

        try:
            analysis = await self._analysis.run(transcription.text, recording.process_type)
        except Exception as exc:  # noqa: BLE001 - every failure becomes a state
            self._events.debug(f"Analysis failed: {_error_text(exc)}")
            await self._transition(recording, RecordingStatus.FAILED, error=_error_text(exc))
            return

        self._events.debug("Analysis completed")
        await self._transition(
            recording,
            RecordingStatus.COMPLETED,
            analysis=analysis,
            completed_at=self._clock(),
        )

    async def _transition(
        self,
        recording: Recording,
        status: RecordingStatus,
        **changes: Any,
    ) -> Recording:
        data = recording.model_dump()
        data.update(changes)
        data["status"] = status
        if status is not RecordingStatus.FAILED:
            data["error"] = None
        updated = Recording.model_validate(data)

        await self._repository.save(updated)
        record_transition(status.value)
        logger.info("Recording %s -> %s", updated.id, status.value)
        self._events.recordings_changed(updated.user_id)
        return updated


__all__ = ["RecordingOrchestrator", "placeholder_for"]
