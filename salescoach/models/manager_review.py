"""SQLAlchemy model for manager reviews (one per recording)."""

from __future__ import annotations

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import Base, JsonColumnType
from .recording import utc_now


class ManagerReviewRow(Base):
    __tablename__ = "manager_reviews"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_manager_reviews_rating"),
    )

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    recording_id = Column(
        ForeignKey("recordings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    reviewer_id = Column(String(128), nullable=False, index=True)
    reviewer_name = Column(Text, nullable=False)
    rating = Column(Integer, nullable=False)
    comments = Column(Text, nullable=False)
    key_takeaways = Column(JsonColumnType, nullable=True)
    action_items = Column(JsonColumnType, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    recording = relationship("RecordingRow", back_populates="review")


__all__ = ["ManagerReviewRow"]
