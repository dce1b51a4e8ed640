"""Submit-then-poll transcription contract."""

from __future__ import annotations

import asyncio

import pytest

from salescoach.config.settings import CoachApiConfig
from salescoach.pipelines.recording import timeout_message, transcribe_audio
from salescoach.services.coach_api import (
    CoachApiClient,
    TranscriptionError,
    TranscriptionTimeoutError,
)
from salescoach.services.events import PipelineEvents
from tests.fakes import BASE_URL, FakeCoachService


def _transcribe(service: FakeCoachService, *, max_attempts: int = 120, events=None):
    waits: list[float] = []

    async def sleep(seconds: float) -> None:
        waits.append(seconds)

    async def scenario():
        client = CoachApiClient(CoachApiConfig(base_url=BASE_URL), transport=service.transport())
        try:
            return await transcribe_audio(
                client,
                "YXVkaW8=",
                poll_interval=3.0,
                max_attempts=max_attempts,
                events=events,
                sleep=sleep,
            )
        finally:
            await client.aclose()

    return asyncio.run(scenario()), waits


def test_returns_transcription_once_completed():
    service = FakeCoachService(poll_statuses=["queued", "processing", "completed"])

    transcription, waits = _transcribe(service)

    assert transcription.text == service.transcript_text
    assert transcription.duration == "2:30"
    assert transcription.confidence == pytest.approx(0.93)
    assert transcription.speakers[0].label == "Speaker A"
    assert waits == [3.0, 3.0, 3.0]
    assert service.paths().count("/api/check-transcription") == 3


def test_status_check_carries_transcript_id():
    service = FakeCoachService(poll_statuses=["completed"])

    _transcribe(service)

    check = [r for r in service.requests if r.url.path.endswith("/check-transcription")][0]
    assert check.method == "GET"
    assert check.url.params["id"] == "tx-1"


def test_error_status_raises_service_failure_immediately():
    service = FakeCoachService(poll_statuses=["error"], poll_error="Unsupported audio format")

    with pytest.raises(TranscriptionError, match="Unsupported audio format") as excinfo:
        _transcribe(service)

    assert not isinstance(excinfo.value, TranscriptionTimeoutError)
    assert service.checks == 1


def test_ceiling_raises_timeout():
    service = FakeCoachService(poll_statuses=["processing"])

    with pytest.raises(TranscriptionTimeoutError) as excinfo:
        _transcribe(service)

    assert str(excinfo.value) == "Transcription timeout - took longer than 6 minutes"
    assert service.checks == 120


def test_timeout_message_follows_configured_limits():
    assert timeout_message(3.0, 120) == "Transcription timeout - took longer than 6 minutes"
    assert timeout_message(5.0, 120) == "Transcription timeout - took longer than 10 minutes"


def test_status_checks_are_reported_as_debug_events():
    service = FakeCoachService(poll_statuses=["processing", "completed"])
    events = PipelineEvents()

    _transcribe(service, events=events)

    messages = [message for _, message in events.recent()]
    assert messages == [
        "Transcript ID: tx-1",
        "Status check 1: processing",
        "Status check 2: completed",
    ]
