"""Structured logging middleware for FastAPI requests."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("salescoach.middleware.structured")

OWNER_HEADER = "x-user-id"

COLOR_RESET = "\u001b[0m"
COLOR_GREEN = "\u001b[32m"
COLOR_CYAN = "\u001b[36m"
COLOR_YELLOW = "\u001b[33m"
COLOR_RED = "\u001b[31m"

_LOGGED_FIELDS = (
    ("timestamp", "timestamp"),
    ("method", "method"),
    ("url", "url"),
    ("status", "status_code"),
    ("duration_ms", "duration_ms"),
    ("user_id", "user_id"),
    ("recording_id", "recording_id"),
    ("online", "online"),
)


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Emit one colored line per request with owner, recording and connectivity."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start_time = time.perf_counter()
        log_payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "method": request.method,
            "url": str(request.url),
            "user_id": _resolve_owner(request),
        }

        try:
            response = await call_next(request)
        except Exception as exc:
            log_payload.update(_request_context(request))
            log_payload["status_code"] = 500
            log_payload["duration_ms"] = _elapsed_ms(start_time)
            log_payload["error"] = repr(exc)
            logger.exception(format_console_message(log_payload))
            raise

        log_payload.update(_request_context(request))
        log_payload["status_code"] = response.status_code
        log_payload["duration_ms"] = _elapsed_ms(start_time)
        logger.info(format_console_message(log_payload))
        return response


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


def _resolve_owner(request: Request) -> Optional[str]:
    owner = (request.headers.get(OWNER_HEADER) or "").strip()
    return owner[:128] or None


def _request_context(request: Request) -> dict[str, Any]:
    """Path and pipeline details that are only available after routing."""

    pipeline = getattr(request.app.state, "pipeline", None)
    return {
        "recording_id": request.path_params.get("recording_id"),
        "online": pipeline.connectivity.is_online if pipeline is not None else None,
    }


def format_console_message(payload: dict[str, Any]) -> str:
    """Return request metadata as ``key=value`` pairs wrapped in an ANSI color."""

    status = payload.get("status_code") or 0
    if 200 <= status < 300:
        color = COLOR_GREEN
    elif 400 <= status < 500:
        color = COLOR_YELLOW
    elif status >= 500:
        color = COLOR_RED
    else:
        color = COLOR_CYAN

    message = ", ".join(
        f"{name}={payload[key] if payload.get(key) is not None else '-'}"
        for name, key in _LOGGED_FIELDS
    )
    return f"{color}{message}{COLOR_RESET}"
