"""Persistence contract consumed by the interview core."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from pydantic import BaseModel

from interview.scoring import round1
from interview.types import ConversationTurn, ScoreRecord, Session, SessionFlags, SessionSummary


class StoreStats(BaseModel):  # Aggregate counters across stored sessions
    total: int = 0
    active: int = 0
    paused: int = 0
    completed: int = 0
    abandoned: int = 0
    average_score: Optional[float] = None
    average_duration_seconds: Optional[float] = None


class PersistenceStore(Protocol):
    """Durable interview records. Every method raises ``PersistenceError`` on failure."""

    def create(self, session: Session) -> None:
        ...

    def find(self, session_id: str) -> Optional[Session]:
        ...

    def append_turn(self, session_id: str, turn: ConversationTurn) -> None:
        ...

    def append_score(self, session_id: str, record: ScoreRecord) -> None:
        ...

    def update_status(
        self,
        session_id: str,
        status: str,
        *,
        end_time: Optional[datetime] = None,
        final_score: Optional[float] = None,
        recommendations: Optional[str] = None,
        flags: Optional[SessionFlags] = None,
    ) -> None:
        ...

    def list_sessions(self, *, statuses: Optional[Sequence[str]] = None, limit: int = 100) -> List[SessionSummary]:
        ...

    def stats(self) -> StoreStats:
        ...


def summarize(rows: Iterable[Tuple[str, Optional[float], datetime, Optional[datetime]]]) -> StoreStats:
    """Aggregate (status, final_score, start_time, end_time) rows the same way for every store."""

    counts = {"active": 0, "paused": 0, "completed": 0, "abandoned": 0}
    scored: List[float] = []
    durations: List[float] = []
    total = 0
    for status, score, start_time, end_time in rows:
        total += 1
        counts[status] = counts.get(status, 0) + 1
        if status != "completed":
            continue
        if score is not None:
            scored.append(score)
        if end_time is not None:
            durations.append((end_time - start_time).total_seconds())
    return StoreStats(
        total=total,
        average_score=round1(sum(scored) / len(scored)) if scored else None,
        average_duration_seconds=round(sum(durations) / len(durations), 1) if durations else None,
        **counts,
    )


__all__ = ["PersistenceStore", "StoreStats", "summarize"]
