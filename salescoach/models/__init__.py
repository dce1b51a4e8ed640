"""SQLAlchemy models for the remote authoritative store."""

from .base import Base
from .catalog import KnowledgeBaseRow, SalesProcessRow  # noqa: F401
from .manager_review import ManagerReviewRow  # noqa: F401
from .recording import RecordingRow  # noqa: F401

__all__ = [
    "Base",
    "KnowledgeBaseRow",
    "ManagerReviewRow",
    "RecordingRow",
    "SalesProcessRow",
]
