"""Diagnostics schemas."""

from datetime import datetime

from salescoach.domain.models import CamelModel


class DebugEventResponse(CamelModel):
    timestamp: datetime
    message: str


class PipelineStageResponse(CamelModel):
    order: int
    name: str
    module: str
    summary: str
