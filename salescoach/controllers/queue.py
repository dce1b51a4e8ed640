"""Offline queue and connectivity endpoints."""

from typing import List

from fastapi import APIRouter

from salescoach.controllers.dependencies import PipelineDep
from salescoach.views import (
    ConnectivityResponse,
    ConnectivityUpdate,
    DrainResponse,
    QueueItemResponse,
)

router = APIRouter(tags=["queue"])


async def _connectivity_state(pipeline: PipelineDep) -> ConnectivityResponse:
    return ConnectivityResponse(
        online=pipeline.connectivity.is_online,
        draining=pipeline.drainer.is_draining,
        queued=await pipeline.queue.size(),
        active_jobs=pipeline.orchestrator.active_jobs,
    )


@router.get("/queue", response_model=List[QueueItemResponse])
async def list_queue(pipeline: PipelineDep) -> List[QueueItemResponse]:
    """Captures waiting for connectivity, oldest first."""

    return [QueueItemResponse.from_item(item) for item in await pipeline.queue.list()]


@router.post("/queue/drain", response_model=DrainResponse)
async def drain_queue(pipeline: PipelineDep) -> DrainResponse:
    """Replay the queue now instead of waiting for the next reconnect."""

    report = await pipeline.drainer.drain()
    return DrainResponse.from_report(report)


@router.get("/connectivity", response_model=ConnectivityResponse)
async def get_connectivity(pipeline: PipelineDep) -> ConnectivityResponse:
    return await _connectivity_state(pipeline)


@router.put("/connectivity", response_model=ConnectivityResponse)
async def set_connectivity(payload: ConnectivityUpdate, pipeline: PipelineDep) -> ConnectivityResponse:
    """Flip the online signal; going online starts a queue drain in the background."""

    pipeline.connectivity.set_online(payload.online)
    return await _connectivity_state(pipeline)
