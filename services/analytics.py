"""Per-session analytics derived from the stored transcript and scores."""
from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from interview.scoring import final_score, round1
from interview.types import Session, SessionFlags, SessionStatus


class MessageCounts(BaseModel):
    total: int = 0
    ai: int = 0
    candidate: int = 0
    admin: int = 0


class SessionAnalytics(BaseModel):  # Read model for dashboards and reports
    session_id: str
    candidate_name: str
    position: str
    persona: str
    status: SessionStatus
    duration_seconds: float
    duration_formatted: str
    message_counts: MessageCounts
    average_response_length: float = 0.0
    topics_covered: List[str] = Field(default_factory=list)
    sentiment_counts: Dict[str, int] = Field(default_factory=dict)
    score_breakdown: Dict[str, float] = Field(default_factory=dict)
    score_timeline: List[float] = Field(default_factory=list)
    final_score: Optional[float] = None
    passed: Optional[bool] = None
    recommendations: str = ""
    flags: SessionFlags = Field(default_factory=SessionFlags)


def build_analytics(session: Session, *, pass_threshold: float = 7.0) -> SessionAnalytics:
    counts = MessageCounts(total=len(session.history))
    sentiments = {"positive": 0, "negative": 0, "neutral": 0}
    topics: List[str] = []
    lengths: List[int] = []
    for turn in session.history:
        setattr(counts, turn.speaker, getattr(counts, turn.speaker) + 1)
        if turn.speaker != "candidate":
            continue
        lengths.append(len(turn.message))
        if turn.metadata is not None:
            sentiments[turn.metadata.sentiment] += 1
            topics.extend(k for k in turn.metadata.keywords if k not in topics)

    by_category: Dict[str, List[float]] = defaultdict(list)
    for record in session.scores:
        by_category[record.category].append(record.score)
    breakdown = {category: round1(sum(values) / len(values)) for category, values in by_category.items()}

    score = session.final_score if session.is_terminal else final_score(session.scores)
    return SessionAnalytics(
        session_id=session.session_id,
        candidate_name=session.candidate.name,
        position=session.candidate.position,
        persona=session.persona,
        status=session.status,
        duration_seconds=round(session.duration_seconds(), 1),
        duration_formatted=session.formatted_duration(),
        message_counts=counts,
        average_response_length=round1(sum(lengths) / len(lengths)) if lengths else 0.0,
        topics_covered=topics,
        sentiment_counts=sentiments,
        score_breakdown=breakdown,
        score_timeline=[r.score for r in session.scores if r.category == "overall"],
        final_score=score,
        passed=None if score is None else score >= pass_threshold,
        recommendations=session.recommendations,
        flags=session.flags,
    )


__all__ = ["MessageCounts", "SessionAnalytics", "build_analytics"]
