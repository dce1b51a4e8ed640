"""Shared pytest fixtures."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

# Keep log files out of the working tree; settings read these at import.
_LOG_DIR = tempfile.mkdtemp(prefix="salescoach-logs-")
os.environ.setdefault("LOG_FILE", os.path.join(_LOG_DIR, "app.log"))
os.environ.setdefault("PIPELINE_LOG_FILE", os.path.join(_LOG_DIR, "pipeline.log"))

import pytest  # noqa: E402

from tests.fakes import (  # noqa: E402
    FakeCoachService,
    InMemoryCatalogStore,
    InMemoryRecordingStore,
    MemoryOfflineQueue,
    build_test_pipeline,
)


@pytest.fixture
def coach_service() -> FakeCoachService:
    return FakeCoachService()


@pytest.fixture
def recording_store() -> InMemoryRecordingStore:
    return InMemoryRecordingStore()


@pytest.fixture
def catalog_store() -> InMemoryCatalogStore:
    return InMemoryCatalogStore()


@pytest.fixture
def offline_queue() -> MemoryOfflineQueue:
    return MemoryOfflineQueue()


@pytest.fixture
def pipeline_factory(coach_service, recording_store, catalog_store, offline_queue):
    """Build a pipeline over the in-memory fakes."""

    def factory(**overrides):
        options = {
            "coach_service": coach_service,
            "recording_store": recording_store,
            "catalog_store": catalog_store,
            "queue": offline_queue,
        }
        options.update(overrides)
        return build_test_pipeline(**options)

    return factory
