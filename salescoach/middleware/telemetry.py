"""Prometheus instrumentation for the HTTP surface."""

from __future__ import annotations

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from salescoach.telemetry import observe_request

# Scrape and liveness endpoints are not counted.
UNINSTRUMENTED_PATHS = frozenset({"/metrics", "/health"})


class TelemetryMiddleware(BaseHTTPMiddleware):
    """Count requests and observe latency per route template."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path in UNINSTRUMENTED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            # Route templates are only known once routing has run.
            observe_request(
                request.method,
                route_template(request),
                status_code,
                time.perf_counter() - started,
            )


def route_template(request: Request) -> str:
    """``/recordings/{recording_id}`` rather than the concrete path, when matched."""

    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path
