"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests processed",
    ("method", "route", "status"),
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ("method", "route"),
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

ERROR_COUNTER = Counter(
    "app_internal_errors_total",
    "Number of requests ending in internal server error responses",
    ("method", "route"),
)

STAGE_TRANSITIONS = Counter(
    "recording_stage_transitions_total",
    "Recording lifecycle transitions, labelled by the state entered",
    ("status",),
)

QUEUE_REPLAYS = Counter(
    "offline_queue_replays_total",
    "Offline queue replay attempts by outcome",
    ("outcome",),
)

REMOTE_SYNC_FAILURES = Counter(
    "remote_sync_failures_total",
    "Best-effort remote store operations that failed",
    ("operation",),
)

TRANSCRIPTION_POLLS = Histogram(
    "transcription_poll_attempts",
    "Number of status checks needed before a transcription finished",
    buckets=(1, 2, 5, 10, 20, 40, 80, 120),
)


def observe_request(
    method: str,
    route: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record metrics for a completed HTTP request."""

    safe_route = route or "unknown"
    safe_method = method or "UNKNOWN"
    observed_duration = duration_seconds if duration_seconds >= 0 else 0

    REQUEST_COUNT.labels(method=safe_method, route=safe_route, status=str(status_code)).inc()
    REQUEST_LATENCY.labels(method=safe_method, route=safe_route).observe(observed_duration)

    if status_code >= 500:
        ERROR_COUNTER.labels(method=safe_method, route=safe_route).inc()


def record_transition(status: str) -> None:
    STAGE_TRANSITIONS.labels(status=status).inc()


def record_replay(outcome: str) -> None:
    QUEUE_REPLAYS.labels(outcome=outcome).inc()


def record_remote_failure(operation: str) -> None:
    REMOTE_SYNC_FAILURES.labels(operation=operation).inc()


def record_poll_count(attempts: int) -> None:
    TRANSCRIPTION_POLLS.observe(attempts)
