"""Shared type definitions for the interview core."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SessionStatus = Literal["active", "paused", "completed", "abandoned"]
Speaker = Literal["ai", "candidate", "admin"]
ScoreCategory = Literal["communication", "technical", "behavioral", "problem-solving", "overall"]
ExperienceTier = Literal["entry", "mid", "senior", "lead", "executive"]
Sentiment = Literal["positive", "negative", "neutral"]

TERMINAL_STATUSES = frozenset({"completed", "abandoned"})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_duration(seconds: float) -> str:
    """Render a duration as ``m:ss``."""

    total = max(0, int(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}"


class CandidateProfile(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    position: str = Field(min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    experience: ExperienceTier = "mid"
    phone: Optional[str] = Field(default=None, max_length=20)
    resume: Optional[str] = None

    @field_validator("name", "position")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().lower() if value else value


class TurnMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    sentiment: Sentiment = "neutral"
    keywords: List[str] = Field(default_factory=list)
    word_count: int = 0
    confidence: Optional[float] = None
    score: Optional[float] = None


class ConversationTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    speaker: Speaker
    message: str
    timestamp: datetime = Field(default_factory=utcnow)
    audio_ref: Optional[str] = None
    video_ref: Optional[str] = None
    metadata: Optional[TurnMetadata] = None


class Features(BaseModel):
    """Lexical features extracted from a single candidate answer."""

    model_config = ConfigDict(frozen=True)

    keywords: List[str]
    sentiment: Sentiment
    specificity: float = Field(ge=0.0, le=1.0)
    technical_terms: List[str]
    has_examples: bool
    word_count: int
    char_length: int
    enthusiasm_count: int = 0
    avg_sentence_words: float = 0.0


class ScoreRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: ScoreCategory
    score: float = Field(ge=1.0, le=10.0)
    feedback: str = Field(default="", max_length=1000)
    factors: Dict[str, float] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utcnow)


class SessionFlags(BaseModel):
    requires_human_review: bool = False
    technical_issues: bool = False
    admin_intervention: bool = False


class Session(BaseModel):
    """Durable interview record owned by the session registry."""

    session_id: str
    candidate: CandidateProfile
    persona: str
    status: SessionStatus = "active"
    start_time: datetime = Field(default_factory=utcnow)
    end_time: Optional[datetime] = None
    history: List[ConversationTurn] = Field(default_factory=list)
    scores: List[ScoreRecord] = Field(default_factory=list)
    final_score: Optional[float] = None
    recommendations: str = ""
    flags: SessionFlags = Field(default_factory=SessionFlags)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def duration_seconds(self, now: Optional[datetime] = None) -> float:
        end = self.end_time or now or utcnow()
        return (end - self.start_time).total_seconds()

    def formatted_duration(self, now: Optional[datetime] = None) -> str:
        return format_duration(self.duration_seconds(now))


class SessionStartResult(BaseModel):
    session_id: str
    welcome_text: str
    audio_ref: Optional[str] = None
    video_ref: Optional[str] = None
    persona: str


class TurnResult(BaseModel):
    session_id: str
    reply_text: str
    audio_ref: Optional[str] = None
    video_ref: Optional[str] = None
    turn_score: float
    current_score: Optional[float] = None
    conversation_length: int = 0


class EndResult(BaseModel):
    session_id: str
    closing_text: str
    audio_ref: Optional[str] = None
    video_ref: Optional[str] = None
    final_score: Optional[float] = None
    duration_formatted: str
    recommendations: str = ""
    total_messages: int = 0


class SessionSnapshot(BaseModel):
    session: Session
    duration_formatted: str
    turn_count: int


class SessionSummary(BaseModel):
    session_id: str
    candidate_name: str
    position: str
    persona: str
    status: SessionStatus
    start_time: datetime
    turn_count: int
    current_score: Optional[float] = None

    @classmethod
    def from_session(cls, session: Session) -> "SessionSummary":
        return cls(
            session_id=session.session_id,
            candidate_name=session.candidate.name,
            position=session.candidate.position,
            persona=session.persona,
            status=session.status,
            start_time=session.start_time,
            turn_count=len(session.history),
            current_score=session.final_score,
        )


__all__ = [
    "CandidateProfile",
    "ConversationTurn",
    "EndResult",
    "ExperienceTier",
    "Features",
    "ScoreCategory",
    "ScoreRecord",
    "Session",
    "SessionFlags",
    "SessionSnapshot",
    "SessionStartResult",
    "SessionStatus",
    "SessionSummary",
    "Speaker",
    "TERMINAL_STATUSES",
    "TurnMetadata",
    "TurnResult",
    "format_duration",
    "utcnow",
]
