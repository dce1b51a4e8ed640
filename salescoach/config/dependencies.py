"""Wiring of the recording pipeline for one application instance."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from salescoach.application.interfaces import (
    CatalogStoreInterface,
    OfflineQueueInterface,
    RecordingStoreInterface,
)
from salescoach.infrastructure.local import (
    FileKeyValueStore,
    FileOfflineQueue,
    KeyValueStore,
    LocalCatalogCache,
    LocalRecordingCache,
)
from salescoach.pipelines.recording import (
    AnalysisStage,
    Analyzer,
    BedrockAnalyzer,
    HttpAnalyzer,
    OfflineQueueDrainer,
    RecordingOrchestrator,
)
from salescoach.pipelines.recording.transcription import Sleep
from salescoach.services.coach_api import CoachApiClient
from salescoach.services.connectivity import ConnectivityMonitor
from salescoach.services.events import PipelineEvents
from salescoach.services.llm_client import BedrockLlmClient
from salescoach.services.persistence import (
    CatalogRepository,
    Clock,
    RecordingRepository,
    utc_now,
)

from .settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class CoachPipeline:
    """Everything a request handler needs, scoped to one app instance."""

    settings: Settings
    events: PipelineEvents
    connectivity: ConnectivityMonitor
    client: CoachApiClient
    recordings: RecordingRepository
    catalog: CatalogRepository
    queue: OfflineQueueInterface
    orchestrator: RecordingOrchestrator
    drainer: OfflineQueueDrainer

    async def wait_idle(self) -> None:
        """Wait for reconnect drains and background stage chains."""

        await self.connectivity.wait_listeners()
        await self.orchestrator.wait_idle()

    async def aclose(self) -> None:
        await self.wait_idle()
        await self.client.aclose()


def _build_analyzer(settings: Settings, client: CoachApiClient) -> Analyzer:
    if settings.analysis.backend == "bedrock":
        logger.info("Scoring transcripts with Bedrock model %s", settings.bedrock.model_id)
        return BedrockAnalyzer(BedrockLlmClient(settings.bedrock))
    return HttpAnalyzer(client)


def build_pipeline(
    settings: Settings,
    *,
    recording_store: Optional[RecordingStoreInterface] = None,
    catalog_store: Optional[CatalogStoreInterface] = None,
    kv_store: Optional[KeyValueStore] = None,
    queue: Optional[OfflineQueueInterface] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    analyzer: Optional[Analyzer] = None,
    online: bool = True,
    sleep: Optional[Sleep] = None,
    clock: Clock = utc_now,
) -> CoachPipeline:
    """Assemble the pipeline; every collaborator can be swapped for tests."""

    if recording_store is None or catalog_store is None:
        from salescoach.database import session_scope
        from salescoach.infrastructure.persistence import (
            SQLAlchemyCatalogStore,
            SQLAlchemyRecordingStore,
        )

        recording_store = recording_store or SQLAlchemyRecordingStore(session_scope)
        catalog_store = catalog_store or SQLAlchemyCatalogStore(session_scope)

    store = kv_store or FileKeyValueStore(settings.local.cache_dir)
    events = PipelineEvents(history_size=settings.pipeline.debug_history_size)
    connectivity = ConnectivityMonitor(online=online)
    client = CoachApiClient(settings.coach_api, transport=transport)

    recordings = RecordingRepository(LocalRecordingCache(store), recording_store, clock=clock)
    catalog = CatalogRepository(LocalCatalogCache(store), catalog_store, clock=clock)
    offline_queue = queue or FileOfflineQueue(settings.local.queue_dir)

    analysis = AnalysisStage(
        analyzer or _build_analyzer(settings, client),
        catalog,
        events=events,
        default_process_id=settings.pipeline.default_process_type,
    )
    orchestrator = RecordingOrchestrator(
        client,
        recordings,
        offline_queue,
        analysis,
        connectivity,
        events,
        config=settings.pipeline,
        clock=clock,
        sleep=sleep,
    )
    drainer = OfflineQueueDrainer(
        offline_queue,
        orchestrator,
        recordings,
        connectivity,
        events,
        max_attempts=settings.pipeline.max_replay_attempts,
    )
    drainer.attach()

    return CoachPipeline(
        settings=settings,
        events=events,
        connectivity=connectivity,
        client=client,
        recordings=recordings,
        catalog=catalog,
        queue=offline_queue,
        orchestrator=orchestrator,
        drainer=drainer,
    )


__all__ = ["CoachPipeline", "build_pipeline"]
