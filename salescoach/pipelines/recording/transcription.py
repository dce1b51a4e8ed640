"""Transcription stage (Stage 02): submit once, then poll for the result."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from salescoach.domain.models import Transcription
from salescoach.services.coach_api import (
    CoachApiClient,
    TranscriptionError,
    TranscriptionTimeoutError,
)
from salescoach.services.events import PipelineEvents
from salescoach.telemetry import record_poll_count

logger = logging.getLogger("salescoach.pipeline")

Sleep = Callable[[float], Awaitable[None]]

_FAILED_STATUSES = frozenset({"failed", "error"})


def timeout_message(poll_interval: float, max_attempts: int) -> str:
    minutes = round(poll_interval * max_attempts / 60)
    return f"Transcription timeout - took longer than {minutes} minutes"


async def transcribe_audio(
    client: CoachApiClient,
    audio_b64: str,
    *,
    poll_interval: float,
    max_attempts: int,
    events: Optional[PipelineEvents] = None,
    sleep: Optional[Sleep] = None,
) -> Transcription:
    """Run the submit/poll contract and return the finished transcription.

    The wait happens before every status check, so a result is never
    requested sooner than one interval after submission.
    """

    sleeper = sleep or asyncio.sleep
    transcript_id = await client.start_transcription(audio_b64)
    if events is not None:
        events.debug(f"Transcript ID: {transcript_id}")

    for attempt in range(1, max_attempts + 1):
        await sleeper(poll_interval)
        result = await client.check_transcription(transcript_id)
        status = str(result.get("status", "")).lower()
        if events is not None:
            events.debug(f"Status check {attempt}: {status or 'unknown'}")

        if status == "completed":
            record_poll_count(attempt)
            return Transcription.model_validate(result)
        if status in _FAILED_STATUSES:
            record_poll_count(attempt)
            raise TranscriptionError(str(result.get("error") or "Transcription failed"))

    record_poll_count(max_attempts)
    logger.warning("Transcription %s still pending after %s checks", transcript_id, max_attempts)
    raise TranscriptionTimeoutError(timeout_message(poll_interval, max_attempts))


__all__ = ["Sleep", "timeout_message", "transcribe_audio"]
