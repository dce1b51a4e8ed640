"""Application entry point and FastAPI app factory."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from logging.handlers import RotatingFileHandler
import sys
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.exc import SQLAlchemyError

from .config.dependencies import CoachPipeline, build_pipeline
from .config.settings import settings
from .controllers import catalog, debug, leaderboard, queue, recordings
from .middleware import StructuredLoggingMiddleware, TelemetryMiddleware

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Ensure structured middleware logs stream to stdout and file."""

    logging.getLogger().handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )

    log_path = Path(settings.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=1_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(file_handler)
    root_logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)

    middleware_logger = logging.getLogger("salescoach.middleware.structured")
    middleware_logger.handlers.clear()
    middleware_stdout = logging.StreamHandler(sys.stdout)
    middleware_stdout.setFormatter(logging.Formatter("%(message)s"))
    middleware_logger.addHandler(middleware_stdout)
    middleware_logger.setLevel(logging.INFO)
    middleware_logger.propagate = False

    pipeline_log_path = Path(settings.pipeline_log_file)
    pipeline_log_path.parent.mkdir(parents=True, exist_ok=True)
    pipeline_handler = RotatingFileHandler(
        pipeline_log_path,
        maxBytes=500_000,
        backupCount=5,
        encoding="utf-8",
    )
    pipeline_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
    )
    pipeline_logger = logging.getLogger("salescoach.pipeline")
    pipeline_logger.handlers.clear()
    pipeline_logger.addHandler(pipeline_handler)
    pipeline_logger.setLevel(logging.INFO)

    noisy_loggers = [
        "botocore",
        "boto3",
        "httpx",
        "httpcore",
        "sqlalchemy.engine",
    ]
    for name in noisy_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


def create_app(pipeline: Optional[CoachPipeline] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Passing ``pipeline`` skips table creation, the connectivity probe and
    engine disposal; the caller owns those resources.
    """

    _configure_logging()

    owns_pipeline = pipeline is None
    active_pipeline = pipeline or build_pipeline(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        description="Sales coach recording processing pipeline API",
    )
    app.state.pipeline = active_pipeline
    app.state.probe_task = None

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(StructuredLoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.include_router(recordings.router)
    app.include_router(queue.router)
    app.include_router(leaderboard.router)
    app.include_router(catalog.router)
    app.include_router(debug.router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint."""

        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "status": "operational",
        }

    @app.get("/health", include_in_schema=False)
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""

        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "connectivity": "online" if active_pipeline.connectivity.is_online else "offline",
        }

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose application metrics for Prometheus scraping."""

        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    @app.on_event("startup")
    async def startup_event() -> None:
        if not owns_pipeline:
            return

        if settings.create_tables_on_startup:
            from .database import init_models

            try:
                await init_models()
            except (SQLAlchemyError, OSError) as exc:
                # The remote store is best-effort; the local cache keeps serving.
                logger.warning("Could not create remote tables: %s", exc)

        connectivity_cfg = settings.connectivity
        if connectivity_cfg.probe_enabled:
            app.state.probe_task = asyncio.create_task(
                active_pipeline.connectivity.probe_forever(
                    connectivity_cfg.probe_url or settings.coach_api.base_url,
                    interval=connectivity_cfg.probe_interval_seconds,
                    timeout=connectivity_cfg.probe_timeout_seconds,
                )
            )

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        probe_task = app.state.probe_task
        if probe_task is not None:
            probe_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await probe_task

        if not owns_pipeline:
            return

        await active_pipeline.aclose()

        from .database import dispose_engine

        await dispose_engine()

    return app


if __name__ == "__main__":
    uvicorn.run(
        "salescoach.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
