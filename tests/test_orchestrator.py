"""Recording orchestrator: submit paths and the stage state machine."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from salescoach.domain.models import QUEUED_ID_PREFIX, QUEUED_MARKER, RecordingStatus, SalesProcess
from salescoach.services.coach_api import UploadError

MEETING = date(2026, 10, 14)


def _run_submit(pipeline_factory, *, process_type=None, **factory_options):
    """Submit one capture, wait for the background chain, return (returned, final, pipeline)."""

    async def scenario():
        pipeline = pipeline_factory(**factory_options)
        try:
            returned = await pipeline.orchestrator.submit(
                b"audio-bytes",
                "rep-1",
                "Acme Corp",
                MEETING,
                process_type,
            )
            await pipeline.wait_idle()
            final = pipeline.recordings.get_local("rep-1", returned.id)
        finally:
            await pipeline.aclose()
        return returned, final, pipeline

    return asyncio.run(scenario())


def test_online_submit_reaches_completed(pipeline_factory, coach_service, recording_store):
    returned, final, _ = _run_submit(pipeline_factory)

    assert returned.id == "rec-1"
    assert returned.status is RecordingStatus.TRANSCRIBING
    assert returned.completed_at is None

    assert final.status is RecordingStatus.COMPLETED
    assert final.analysis is not None
    assert final.analysis.overall_score == 82
    assert final.error is None
    assert final.completed_at is not None
    assert final.transcription.text == coach_service.transcript_text
    assert final.duration == "2:30"

    assert [r.status for r in recording_store.upserts] == [
        RecordingStatus.TRANSCRIBING,
        RecordingStatus.ANALYZING,
        RecordingStatus.COMPLETED,
    ]


def test_online_submit_sends_expected_payloads(pipeline_factory, coach_service):
    _run_submit(pipeline_factory)

    upload = coach_service.upload_bodies[0]
    assert upload["audioData"] == "YXVkaW8tYnl0ZXM="
    assert upload["userId"] == "rep-1"
    assert upload["clientName"] == "Acme Corp"
    assert upload["meetingDate"] == "2026-10-14"
    assert upload["processType"] == "standard"

    analysis = coach_service.analysis_bodies[0]
    assert analysis["transcript"] == coach_service.transcript_text
    # Default rubric is not sent.
    assert analysis["processType"] is None
    assert "knowledgeBase" in analysis


def test_custom_process_is_sent_with_analysis(pipeline_factory, coach_service, catalog_store):
    catalog_store.processes["enterprise"] = SalesProcess(id="enterprise", name="Enterprise Deal Review")

    _, final, _ = _run_submit(pipeline_factory, process_type="enterprise")

    assert final.status is RecordingStatus.COMPLETED
    assert final.process_type == "enterprise"
    assert coach_service.analysis_bodies[0]["processType"]["id"] == "enterprise"


def test_offline_submit_queues_without_network(pipeline_factory, coach_service, offline_queue, recording_store):
    returned, cached, _ = _run_submit(pipeline_factory, online=False)

    assert coach_service.requests == []
    assert returned.status is RecordingStatus.UPLOADED
    assert returned.error == QUEUED_MARKER
    assert returned.id.startswith(QUEUED_ID_PREFIX)
    assert cached == returned

    items = list(offline_queue.items.values())
    assert len(items) == 1
    assert items[0].placeholder_id == returned.id
    assert items[0].audio == b"audio-bytes"
    assert items[0].attempts == 0
    # Placeholders never reach the remote store.
    assert recording_store.upserts == []


def test_upload_failure_propagates_and_creates_nothing(pipeline_factory, coach_service, offline_queue):
    coach_service.upload_status = 500
    coach_service.upload_error = "Storage quota exceeded"

    async def scenario():
        pipeline = pipeline_factory()
        try:
            with pytest.raises(UploadError, match="Storage quota exceeded"):
                await pipeline.orchestrator.submit(b"audio", "rep-1", "Acme Corp", MEETING)
            return pipeline.recordings.list_local("rep-1")
        finally:
            await pipeline.aclose()

    assert asyncio.run(scenario()) == []
    assert offline_queue.items == {}


def test_connection_drop_during_online_submit_is_not_queued(pipeline_factory, coach_service, offline_queue):
    coach_service.connection_down = True

    async def scenario():
        pipeline = pipeline_factory()
        try:
            with pytest.raises(UploadError, match="^Upload failed: "):
                await pipeline.orchestrator.submit(b"audio", "rep-1", "Acme Corp", MEETING)
        finally:
            await pipeline.aclose()

    asyncio.run(scenario())
    assert offline_queue.items == {}


def test_blank_client_name_is_rejected(pipeline_factory, coach_service):
    async def scenario():
        pipeline = pipeline_factory()
        try:
            with pytest.raises(ValueError):
                await pipeline.orchestrator.submit(b"audio", "rep-1", "   ", MEETING)
        finally:
            await pipeline.aclose()

    asyncio.run(scenario())
    assert coach_service.requests == []


def test_transcription_failure_is_terminal(pipeline_factory, coach_service):
    coach_service.poll_statuses = ["processing", "failed"]
    coach_service.poll_error = "Audio could not be decoded"

    _, final, _ = _run_submit(pipeline_factory)

    assert final.status is RecordingStatus.FAILED
    assert final.error == "Audio could not be decoded"
    assert final.analysis is None
    assert final.completed_at is None
    # Failure is reported without exhausting the remaining polls.
    assert coach_service.checks == 2
    assert coach_service.analysis_bodies == []


def test_transcription_timeout_has_distinct_message(pipeline_factory, coach_service):
    coach_service.poll_statuses = ["processing"]

    _, final, _ = _run_submit(pipeline_factory)

    assert final.status is RecordingStatus.FAILED
    assert final.error == "Transcription timeout - took longer than 6 minutes"
    assert coach_service.checks == 120
    assert coach_service.analysis_bodies == []


def test_analysis_rejection_preserves_message(pipeline_factory, coach_service):
    coach_service.analysis_status = 422
    coach_service.analysis_error = "Transcript too short to analyze"

    _, final, _ = _run_submit(pipeline_factory)

    assert final.status is RecordingStatus.FAILED
    assert final.error == "Transcript too short to analyze"
    assert final.analysis is None
    assert final.transcription is not None


def test_remote_outage_does_not_block_the_pipeline(pipeline_factory, recording_store):
    recording_store.fail = True

    _, final, _ = _run_submit(pipeline_factory)

    assert final.status is RecordingStatus.COMPLETED
    assert recording_store.records == {}


def test_polling_waits_the_configured_interval(pipeline_factory, coach_service):
    coach_service.poll_statuses = ["queued", "processing", "completed"]
    waits: list[float] = []

    async def recording_sleep(seconds: float) -> None:
        waits.append(seconds)

    _, final, _ = _run_submit(pipeline_factory, sleep=recording_sleep)

    assert final.status is RecordingStatus.COMPLETED
    assert waits == [3.0, 3.0, 3.0]


def test_progress_is_reported_to_observers(pipeline_factory):
    messages: list[str] = []
    changed: list[str] = []

    async def scenario():
        pipeline = pipeline_factory()
        pipeline.events.subscribe_debug(messages.append)
        pipeline.events.subscribe_changes(changed.append)
        try:
            await pipeline.orchestrator.submit(b"audio", "rep-1", "Acme Corp", MEETING)
            await pipeline.wait_idle()
        finally:
            await pipeline.aclose()

    asyncio.run(scenario())

    assert messages[0] == "Starting upload..."
    assert "Transcription completed" in messages
    assert messages[-1] == "Analysis completed"
    # Upload, analyzing and completed each notify observers.
    assert changed == ["rep-1", "rep-1", "rep-1"]


def test_failing_observer_does_not_break_the_pipeline(pipeline_factory):
    def broken(_message: str) -> None:
        raise RuntimeError("panel closed")

    async def scenario():
        pipeline = pipeline_factory()
        pipeline.events.subscribe_debug(broken)
        try:
            recording = await pipeline.orchestrator.submit(b"audio", "rep-1", "Acme Corp", MEETING)
            await pipeline.wait_idle()
            return pipeline.recordings.get_local("rep-1", recording.id)
        finally:
            await pipeline.aclose()

    assert asyncio.run(scenario()).status is RecordingStatus.COMPLETED
