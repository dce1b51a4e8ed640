"""Request/response schemas for the recordings endpoints."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from salescoach.domain.models import CamelModel, ManagerReview


class ManagerReviewRequest(CamelModel):
    """Review submitted by a manager for a completed recording."""

    reviewer_id: str = Field(..., min_length=1)
    reviewer_name: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5, description="Star rating from 1 to 5")
    comments: str = ""
    key_takeaways: Optional[List[str]] = None
    action_items: Optional[List[str]] = None

    def to_review(self) -> ManagerReview:
        return ManagerReview.model_validate(self.model_dump())


class RemoteStatusResponse(CamelModel):
    has_remote_data: bool
    local_recordings: int
