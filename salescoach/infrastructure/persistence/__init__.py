"""Remote authoritative store backed by SQLAlchemy."""

from .repositories_sqlalchemy import (
    RemoteStoreError,
    SQLAlchemyCatalogStore,
    SQLAlchemyRecordingStore,
    recording_from_row,
    recording_to_values,
)

__all__ = [
    "RemoteStoreError",
    "SQLAlchemyCatalogStore",
    "SQLAlchemyRecordingStore",
    "recording_from_row",
    "recording_to_values",
]
