"""Diagnostics endpoints backing the pipeline debug panel."""

from typing import List

from fastapi import APIRouter, Query

from salescoach.controllers.dependencies import PipelineDep
from salescoach.pipelines.recording import RecordingPipeline
from salescoach.views import DebugEventResponse, PipelineStageResponse

router = APIRouter(prefix="/debug", tags=["debug"])


@router.get("/events", response_model=List[DebugEventResponse])
async def recent_events(
    pipeline: PipelineDep,
    limit: int = Query(50, ge=1, le=1000),
) -> List[DebugEventResponse]:
    """Most recent pipeline progress lines, oldest first."""

    return [
        DebugEventResponse(timestamp=timestamp, message=message)
        for timestamp, message in pipeline.events.recent(limit)
    ]


@router.get("/stages", response_model=List[PipelineStageResponse])
async def pipeline_stages() -> List[PipelineStageResponse]:
    return [
        PipelineStageResponse(order=stage.order, name=stage.name, module=stage.module, summary=stage.summary)
        for stage in RecordingPipeline.describe()
    ]
