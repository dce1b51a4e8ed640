"""Recording endpoints.

For a stage-by-stage map see
`salescoach.pipelines.recording.flow.RecordingPipeline`. POST `/recordings`
performs:

1. Validation of the uploaded capture and its metadata.
2. Upload (online) or offline queueing with a placeholder record.
3. Transcription and analysis in a background task; progress is visible
   through GET `/recordings` and `/debug/events`.
"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, Response, UploadFile, status

from salescoach.controllers.dependencies import OwnerDep, PipelineDep
from salescoach.domain.models import Recording, SyncReport, UserStats
from salescoach.pipelines.recording import read_audio_bytes, resolve_content_type
from salescoach.services.coach_api import UploadError
from salescoach.services.leaderboard import compute_user_stats
from salescoach.views import ManagerReviewRequest, RemoteStatusResponse

router = APIRouter(prefix="/recordings", tags=["recordings"])

logger = logging.getLogger(__name__)

_CLIENT_NAME_FORM = Form(..., alias="clientName", min_length=1)
_MEETING_DATE_FORM = Form(..., alias="meetingDate")
_PROCESS_TYPE_FORM = Form(None, alias="processType")
_AUDIO_FILE_UPLOAD = File(...)


@router.post("/", response_model=Recording, status_code=status.HTTP_201_CREATED)
async def submit_recording(
    owner_id: OwnerDep,
    pipeline: PipelineDep,
    client_name: str = _CLIENT_NAME_FORM,
    meeting_date: date = _MEETING_DATE_FORM,
    process_type: Optional[str] = _PROCESS_TYPE_FORM,
    audio_file: UploadFile = _AUDIO_FILE_UPLOAD,
) -> Recording:
    """Submit a finished capture; returns the queued placeholder when offline."""

    resolve_content_type(audio_file)
    audio_bytes = await read_audio_bytes(audio_file)

    try:
        return await pipeline.orchestrator.submit(
            audio_bytes,
            owner_id,
            client_name,
            meeting_date,
            process_type or None,
        )
    except UploadError as exc:
        logger.warning("Upload failed owner=%s: %s", owner_id, exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc


@router.get("/", response_model=List[Recording])
async def list_recordings(owner_id: OwnerDep, pipeline: PipelineDep) -> List[Recording]:
    return await pipeline.recordings.list(owner_id)


@router.get("/stats", response_model=UserStats)
async def user_stats(owner_id: OwnerDep, pipeline: PipelineDep) -> UserStats:
    """Totals, average score and recent improvement for the caller."""

    return compute_user_stats(pipeline.recordings.list_local(owner_id))


@router.get("/sync", response_model=RemoteStatusResponse)
async def remote_status(owner_id: OwnerDep, pipeline: PipelineDep) -> RemoteStatusResponse:
    return RemoteStatusResponse(
        has_remote_data=await pipeline.recordings.has_remote_data(owner_id),
        local_recordings=len(pipeline.recordings.list_local(owner_id)),
    )


@router.post("/sync", response_model=SyncReport)
async def sync_recordings(owner_id: OwnerDep, pipeline: PipelineDep) -> SyncReport:
    """Push every cached recording to the remote store."""

    report = await pipeline.recordings.sync_local_to_remote(owner_id)
    logger.info(
        "Synced recordings owner=%s success=%s failed=%s total=%s",
        owner_id,
        report.success,
        report.failed,
        report.total,
    )
    return report


@router.get("/{recording_id}", response_model=Recording)
async def get_recording(recording_id: str, owner_id: OwnerDep, pipeline: PipelineDep) -> Recording:
    recording = await pipeline.recordings.get(owner_id, recording_id)
    if recording is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recording not found",
        )
    return recording


@router.delete("/{recording_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recording(recording_id: str, owner_id: OwnerDep, pipeline: PipelineDep) -> Response:
    await pipeline.recordings.delete(owner_id, recording_id)
    pipeline.events.recordings_changed(owner_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{recording_id}/review", response_model=Recording)
async def put_review(
    recording_id: str,
    payload: ManagerReviewRequest,
    owner_id: OwnerDep,
    pipeline: PipelineDep,
) -> Recording:
    """Attach or replace the manager review of a recording."""

    recording = await pipeline.recordings.add_review(owner_id, recording_id, payload.to_review())
    if recording is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recording not found",
        )
    pipeline.events.recordings_changed(owner_id)
    return recording


@router.delete("/{recording_id}/review", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review(recording_id: str, owner_id: OwnerDep, pipeline: PipelineDep) -> Response:
    await pipeline.recordings.remove_review(owner_id, recording_id)
    pipeline.events.recordings_changed(owner_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
