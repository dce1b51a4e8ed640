"""Service layer helpers for external integrations and shared policies."""

from .coach_api import (
    AnalysisError,
    CoachApiClient,
    TranscriptionError,
    TranscriptionTimeoutError,
    UploadError,
    encode_audio,
)
from .connectivity import ConnectivityMonitor
from .events import PipelineEvents
from .leaderboard import build_leaderboard, compute_user_stats, get_user_rank
from .persistence import CatalogRepository, RecordingRepository, read_with_fallback, write_through

__all__ = [
    "AnalysisError",
    "CatalogRepository",
    "CoachApiClient",
    "ConnectivityMonitor",
    "PipelineEvents",
    "RecordingRepository",
    "TranscriptionError",
    "TranscriptionTimeoutError",
    "UploadError",
    "build_leaderboard",
    "compute_user_stats",
    "encode_audio",
    "get_user_rank",
    "read_with_fallback",
    "write_through",
]
