"""Domain entities for recordings, coaching catalogs and rankings.

Attributes are snake_case; the wire and cache representation is camelCase
(``model_dump(by_alias=True)``) so records written by other clients of the
same endpoints stay readable.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

QUEUED_ID_PREFIX = "queued_"
QUEUED_MARKER = "Queued for upload when online"


class CamelModel(BaseModel):
    """Base model accepting both snake_case and camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RecordingStatus(str, Enum):
    UPLOADED = "uploaded"
    TRANSCRIBING = "transcribing"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"


class SpeakerSummary(CamelModel):
    id: str
    label: str
    segments: int = 0


class Transcription(CamelModel):
    """Speech-to-text result attached once transcription succeeds."""

    text: str = ""
    duration: str = "0:00"
    confidence: float = 0.0
    speakers: List[SpeakerSummary] = Field(default_factory=list)


class ProcessStepResult(CamelModel):
    name: str
    completed: bool = False
    quality: float = 0
    feedback: str = ""
    examples: Optional[List[str]] = None
    missed_opportunities: Optional[List[str]] = None


class CallMetrics(CamelModel):
    talk_listen_ratio: str = ""
    questions_asked: int = 0
    objections: int = 0
    call_to_actions: int = 0
    rapport_moments: Optional[int] = None
    value_statements: Optional[int] = None


class KeyMoment(CamelModel):
    timestamp: str = ""
    description: str = ""
    type: Literal["positive", "negative", "neutral", "turning_point"] = "neutral"
    impact: str = ""
    quote: Optional[str] = None


class PredictedOutcome(CamelModel):
    likelihood: Literal["high", "medium", "low"]
    reasoning: str = ""
    next_steps: str = ""


class SentimentMoment(CamelModel):
    timestamp: str = ""
    description: str = ""
    quote: str = ""
    impact: Optional[str] = None


class SentimentAnalysis(CamelModel):
    overall: Literal["positive", "neutral", "negative"] = "neutral"
    overall_score: float = 0
    client_sentiment: Literal["positive", "neutral", "negative"] = "neutral"
    rep_sentiment: Literal["positive", "neutral", "negative"] = "neutral"
    sentiment_shift: str = ""
    emotional_highs: List[SentimentMoment] = Field(default_factory=list)
    emotional_lows: List[SentimentMoment] = Field(default_factory=list)
    empathy_moments: List[SentimentMoment] = Field(default_factory=list)


class RecordingAnalysis(CamelModel):
    """Structured scoring produced by the analysis stage."""

    overall_score: float = 0
    process_steps: List[ProcessStepResult] = Field(default_factory=list)
    metrics: CallMetrics = Field(default_factory=CallMetrics)
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    key_moments: List[KeyMoment] = Field(default_factory=list)
    coaching_priorities: List[str] = Field(default_factory=list)
    predicted_outcome: Optional[PredictedOutcome] = None
    sentiment: Optional[SentimentAnalysis] = None

    @model_validator(mode="after")
    def clamp_score(self) -> "RecordingAnalysis":
        self.overall_score = max(0.0, min(100.0, float(self.overall_score)))
        return self

    @property
    def all_steps_completed(self) -> bool:
        return all(step.completed for step in self.process_steps)


class ManagerReview(CamelModel):
    """Human review attached to a completed recording (one per recording)."""

    reviewer_id: str
    reviewer_name: str
    rating: int = Field(..., ge=1, le=5)
    comments: str
    key_takeaways: Optional[List[str]] = None
    action_items: Optional[List[str]] = None
    reviewed_at: Optional[datetime] = None


class Recording(CamelModel):
    """One audio-capture-to-analysis unit of work."""

    id: str
    user_id: str
    client_name: str = Field(..., min_length=1)
    meeting_date: date
    duration: str = "0:00"
    status: RecordingStatus = RecordingStatus.UPLOADED
    process_type: str = "standard"
    uploaded_at: datetime
    completed_at: Optional[datetime] = None
    transcription: Optional[Transcription] = None
    analysis: Optional[RecordingAnalysis] = None
    manager_review: Optional[ManagerReview] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def check_lifecycle(self) -> "Recording":
        if self.analysis is not None and self.status is not RecordingStatus.COMPLETED:
            raise ValueError("analysis is only present on completed recordings")
        if self.completed_at is not None and self.status is not RecordingStatus.COMPLETED:
            raise ValueError("completed_at is only set on completed recordings")
        return self

    @property
    def is_placeholder(self) -> bool:
        return self.id.startswith(QUEUED_ID_PREFIX)

    @property
    def score(self) -> float:
        return self.analysis.overall_score if self.analysis else 0.0


class QueuedRecording(CamelModel):
    """Recording staged on-device because no network was available at submit."""

    id: str
    placeholder_id: str
    user_id: str
    client_name: str
    meeting_date: date
    process_type: str = "standard"
    queued_at: datetime
    attempts: int = 0
    last_error: Optional[str] = None
    audio: bytes = Field(default=b"", exclude=True, repr=False)


class SalesProcessStep(CamelModel):
    name: str
    description: str = ""
    key_behaviors: List[str] = Field(default_factory=list)


class SalesProcess(CamelModel):
    """Scoring rubric selected by a recording's process type."""

    id: str
    name: str
    steps: List[SalesProcessStep] = Field(default_factory=list)
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class KnowledgeBase(CamelModel):
    """Company context handed to the analysis stage."""

    company_info: str = ""
    products: List[str] = Field(default_factory=list)
    common_objections: List[str] = Field(default_factory=list)
    best_practices: List[str] = Field(default_factory=list)
    industry_context: str = ""
    last_updated: Optional[datetime] = None
    updated_by: Optional[str] = None


class LeaderboardEntry(CamelModel):
    user_id: str
    user_name: str
    total_recordings: int = 0
    average_score: int = 0
    completion_rate: int = 0
    improvement: int = 0
    total_call_time: int = 0
    rank: int = 0


class UserStats(CamelModel):
    total_recordings: int = 0
    average_score: int = 0
    completion_rate: int = 0
    improvement: int = 0


class SyncReport(CamelModel):
    success: int = 0
    failed: int = 0
    total: int = 0


__all__ = [
    "QUEUED_ID_PREFIX",
    "QUEUED_MARKER",
    "CallMetrics",
    "CamelModel",
    "KeyMoment",
    "KnowledgeBase",
    "LeaderboardEntry",
    "ManagerReview",
    "PredictedOutcome",
    "ProcessStepResult",
    "QueuedRecording",
    "Recording",
    "RecordingAnalysis",
    "RecordingStatus",
    "SalesProcess",
    "SalesProcessStep",
    "SentimentAnalysis",
    "SentimentMoment",
    "SpeakerSummary",
    "SyncReport",
    "Transcription",
    "UserStats",
]
