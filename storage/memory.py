"""In-process session store for tests and ephemeral deployments."""
from __future__ import annotations

import threading
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from interview.errors import PersistenceError
from interview.types import ConversationTurn, ScoreRecord, Session, SessionFlags, SessionSummary

from .base import StoreStats, summarize


class InMemorySessionStore:  # Dict-backed PersistenceStore
    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def _require(self, session_id: str) -> Session:
        stored = self._sessions.get(session_id)
        if stored is None:
            raise PersistenceError(f"Session {session_id} missing from store", details={"session_id": session_id})
        return stored

    def create(self, session: Session) -> None:
        with self._lock:
            if session.session_id in self._sessions:
                raise PersistenceError(f"Session {session.session_id} already stored")
            self._sessions[session.session_id] = session.model_copy(deep=True)

    def find(self, session_id: str) -> Optional[Session]:
        with self._lock:
            stored = self._sessions.get(session_id)
            return stored.model_copy(deep=True) if stored is not None else None

    def append_turn(self, session_id: str, turn: ConversationTurn) -> None:
        with self._lock:
            self._require(session_id).history.append(turn)

    def append_score(self, session_id: str, record: ScoreRecord) -> None:
        with self._lock:
            self._require(session_id).scores.append(record)

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
        with self._lock:
            stored = self._require(session_id)
            stored.status = status  # type: ignore[assignment]
            if end_time is not None:
                stored.end_time = end_time
            if final_score is not None:
                stored.final_score = final_score
            if recommendations is not None:
                stored.recommendations = recommendations
            if flags is not None:
                stored.flags = flags.model_copy()

    def list_sessions(self, *, statuses: Optional[Sequence[str]] = None, limit: int = 100) -> List[SessionSummary]:
        with self._lock:
            sessions = [s for s in self._sessions.values() if not statuses or s.status in statuses]
            summaries = [SessionSummary.from_session(s) for s in sessions]
        summaries.sort(key=lambda s: s.start_time, reverse=True)
        return summaries[:limit]

    def stats(self) -> StoreStats:
        with self._lock:
            rows = [(s.status, s.final_score, s.start_time, s.end_time) for s in self._sessions.values()]
        return summarize(rows)


__all__ = ["InMemorySessionStore"]
