"""Process-wide map of live interview sessions."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

from .errors import SessionNotFound
from .session import InterviewSession
from .types import SessionSummary

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Owns every live :class:`InterviewSession`.

    Create and evict take ``_lock``; lookups read the dict directly, which is
    safe because individual dict operations are atomic. Work on a session
    is serialized by the session itself, so callers never hold the registry
    lock while talking to providers.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, InterviewSession] = {}
        self._lock = threading.Lock()

    def create(self, session_id: str, factory: Callable[[], InterviewSession]) -> InterviewSession:
        with self._lock:
            if session_id in self._sessions:
                raise ValueError(f"Session already registered: {session_id}")
            session = factory()
            self._sessions[session_id] = session
        logger.debug("Registered session %s", session_id)
        return session

    def get(self, session_id: str) -> InterviewSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(f"Session {session_id} not found", details={"session_id": session_id})
        return session

    def find(self, session_id: str) -> Optional[InterviewSession]:
        return self._sessions.get(session_id)

    def list_active(self) -> List[SessionSummary]:
        sessions = list(self._sessions.values())
        summaries = []
        for session in sessions:
            snapshot = session.snapshot().session
            if not snapshot.is_terminal:
                summary = SessionSummary.from_session(snapshot)
                summaries.append(summary.model_copy(update={"current_score": session.current_score()}))
        return sorted(summaries, key=lambda s: s.start_time, reverse=True)

    def evict(self, session_id: str) -> Optional[InterviewSession]:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.debug("Evicted session %s", session_id)
        return session

    def evict_terminal(self) -> int:
        with self._lock:
            finished = [sid for sid, session in self._sessions.items() if session.record.is_terminal]
            for sid in finished:
                del self._sessions[sid]
        return len(finished)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions


__all__ = ["SessionRegistry"]
