"""Schemas describing the offline queue and connectivity state."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import Field

from salescoach.domain.models import CamelModel, QueuedRecording
from salescoach.pipelines.recording import DrainReport


class QueueItemResponse(CamelModel):
    """Queued capture without its audio payload."""

    id: str
    placeholder_id: str
    user_id: str
    client_name: str
    meeting_date: date
    process_type: str
    queued_at: datetime
    attempts: int
    last_error: Optional[str] = None
    size_bytes: int = 0

    @classmethod
    def from_item(cls, item: QueuedRecording) -> "QueueItemResponse":
        return cls(
            **item.model_dump(exclude={"audio"}),
            size_bytes=len(item.audio),
        )


class DrainResponse(CamelModel):
    uploaded: int = 0
    retrying: int = 0
    dropped: int = 0
    remaining: int = 0
    interrupted: bool = False

    @classmethod
    def from_report(cls, report: DrainReport) -> "DrainResponse":
        return cls(
            uploaded=report.uploaded,
            retrying=report.retrying,
            dropped=report.dropped,
            remaining=report.remaining,
            interrupted=report.interrupted,
        )


class ConnectivityUpdate(CamelModel):
    online: bool = Field(..., description="New connectivity state")


class ConnectivityResponse(CamelModel):
    online: bool
    draining: bool
    queued: int
    active_jobs: int
