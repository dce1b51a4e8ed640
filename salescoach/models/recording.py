"""SQLAlchemy model for recordings."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Index, String, Text
from sqlalchemy.orm import relationship

from .base import Base, JsonColumnType


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecordingRow(Base):
    __tablename__ = "recordings"
    __table_args__ = (
        Index("idx_recordings_user_status", "user_id", "status"),
        Index("idx_recordings_user_date", "user_id", "uploaded_at"),
    )

    id = Column(String(64), primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    client_name = Column(Text, nullable=False)
    meeting_date = Column(Date, nullable=False)
    duration = Column(String(16), nullable=False, default="0:00")
    status = Column(String(16), nullable=False, index=True)
    process_type = Column(String(128), nullable=False, default="standard")

    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    transcription = Column(JsonColumnType, nullable=True)
    analysis = Column(JsonColumnType, nullable=True)
    error_message = Column(Text, nullable=True)

    review = relationship(
        "ManagerReviewRow",
        uselist=False,
        back_populates="recording",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


__all__ = ["RecordingRow", "utc_now"]
