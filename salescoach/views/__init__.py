"""Pydantic schemas used as views in the MVC architecture."""

from .debug import DebugEventResponse, PipelineStageResponse
from .leaderboard import RankResponse
from .queue import ConnectivityResponse, ConnectivityUpdate, DrainResponse, QueueItemResponse
from .recordings import ManagerReviewRequest, RemoteStatusResponse

__all__ = [
    "ConnectivityResponse",
    "ConnectivityUpdate",
    "DebugEventResponse",
    "DrainResponse",
    "ManagerReviewRequest",
    "PipelineStageResponse",
    "QueueItemResponse",
    "RankResponse",
    "RemoteStatusResponse",
]
