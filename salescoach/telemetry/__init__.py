"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    QUEUE_REPLAYS,
    REMOTE_SYNC_FAILURES,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    STAGE_TRANSITIONS,
    TRANSCRIPTION_POLLS,
    observe_request,
    record_poll_count,
    record_remote_failure,
    record_replay,
    record_transition,
)

__all__ = [
    "ERROR_COUNTER",
    "QUEUE_REPLAYS",
    "REMOTE_SYNC_FAILURES",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "STAGE_TRANSITIONS",
    "TRANSCRIPTION_POLLS",
    "observe_request",
    "record_poll_count",
    "record_remote_failure",
    "record_replay",
    "record_transition",
]
