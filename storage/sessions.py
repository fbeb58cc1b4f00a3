"""SQLite-backed interview session store."""
from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from interview.errors import PersistenceError
from interview.types import (
    CandidateProfile,
    ConversationTurn,
    ScoreRecord,
    Session,
    SessionFlags,
    SessionSummary,
    TurnMetadata,
)

from .base import StoreStats, summarize
from .migrate import migrate
from .sqlite import get_conn

logger = logging.getLogger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SqliteSessionStore:  # Durable session, turn and score rows
    def __init__(self, path: Path) -> None:
        self._path = str(path)
        with self._guard("migrate"):
            migrate(self._path)

    @contextmanager
    def _guard(self, op: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as exc:
            logger.error("SQLite %s failed: %s", op, exc)
            raise PersistenceError(f"Store unavailable during {op}", details={"op": op, "error": str(exc)}) from exc

    def create(self, session: Session) -> None:
        candidate = session.candidate
        with self._guard("create"), get_conn(self._path) as conn:
            conn.execute(
                """
                INSERT INTO interview_sessions
                  (session_id, candidate_name, position, email, experience, phone, resume, persona,
                   status, start_time, end_time, final_score, recommendations, flags_json)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session.session_id,
                    candidate.name,
                    candidate.position,
                    candidate.email,
                    candidate.experience,
                    candidate.phone,
                    candidate.resume,
                    session.persona,
                    session.status,
                    _iso(session.start_time),
                    _iso(session.end_time),
                    session.final_score,
                    session.recommendations,
                    session.flags.model_dump_json(),
                ),
            )

    def append_turn(self, session_id: str, turn: ConversationTurn) -> None:
        with self._guard("append_turn"), get_conn(self._path) as conn:
            conn.execute(
                """
                INSERT INTO conversation_turns
                  (session_id, speaker, message, timestamp, audio_ref, video_ref, metadata_json)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session_id,
                    turn.speaker,
                    turn.message,
                    _iso(turn.timestamp),
                    turn.audio_ref,
                    turn.video_ref,
                    turn.metadata.model_dump_json() if turn.metadata else None,
                ),
            )

    def append_score(self, session_id: str, record: ScoreRecord) -> None:
        with self._guard("append_score"), get_conn(self._path) as conn:
            conn.execute(
                """
                INSERT INTO score_records (session_id, category, score, feedback, factors_json, timestamp)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    session_id,
                    record.category,
                    record.score,
                    record.feedback,
                    json.dumps(record.factors),
                    _iso(record.timestamp),
                ),
            )

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
        assignments = ["status = ?"]
        params: List[object] = [status]
        if end_time is not None:
            assignments.append("end_time = ?")
            params.append(_iso(end_time))
        if final_score is not None:
            assignments.append("final_score = ?")
            params.append(final_score)
        if recommendations is not None:
            assignments.append("recommendations = ?")
            params.append(recommendations)
        if flags is not None:
            assignments.append("flags_json = ?")
            params.append(flags.model_dump_json())
        params.append(session_id)
        with self._guard("update_status"), get_conn(self._path) as conn:
            cur = conn.execute(
                f"UPDATE interview_sessions SET {', '.join(assignments)} WHERE session_id = ?",
                params,
            )
            if cur.rowcount == 0:
                raise PersistenceError(f"Session {session_id} missing from store", details={"op": "update_status"})

    def find(self, session_id: str) -> Optional[Session]:
        with self._guard("find"), get_conn(self._path) as conn:
            row = conn.execute("SELECT * FROM interview_sessions WHERE session_id = ?", (session_id,)).fetchone()
            if row is None:
                return None
            turns = conn.execute(
                "SELECT * FROM conversation_turns WHERE session_id = ? ORDER BY id", (session_id,)
            ).fetchall()
            scores = conn.execute(
                "SELECT * FROM score_records WHERE session_id = ? ORDER BY id", (session_id,)
            ).fetchall()
        return Session(
            session_id=row["session_id"],
            candidate=CandidateProfile(
                name=row["candidate_name"],
                position=row["position"],
                email=row["email"],
                experience=row["experience"],
                phone=row["phone"],
                resume=row["resume"],
            ),
            persona=row["persona"],
            status=row["status"],
            start_time=_parse(row["start_time"]),
            end_time=_parse(row["end_time"]),
            final_score=row["final_score"],
            recommendations=row["recommendations"],
            flags=SessionFlags.model_validate_json(row["flags_json"]),
            history=[
                ConversationTurn(
                    speaker=t["speaker"],
                    message=t["message"],
                    timestamp=_parse(t["timestamp"]),
                    audio_ref=t["audio_ref"],
                    video_ref=t["video_ref"],
                    metadata=TurnMetadata.model_validate_json(t["metadata_json"]) if t["metadata_json"] else None,
                )
                for t in turns
            ],
            scores=[
                ScoreRecord(
                    category=s["category"],
                    score=s["score"],
                    feedback=s["feedback"],
                    factors=json.loads(s["factors_json"]),
                    timestamp=_parse(s["timestamp"]),
                )
                for s in scores
            ],
        )

    def list_sessions(self, *, statuses: Optional[Sequence[str]] = None, limit: int = 100) -> List[SessionSummary]:
        query = """
            SELECT s.session_id, s.candidate_name, s.position, s.persona, s.status, s.start_time, s.final_score,
                   (SELECT COUNT(*) FROM conversation_turns t WHERE t.session_id = s.session_id) AS turn_count
            FROM interview_sessions s
        """
        params: List[object] = []
        if statuses:
            query += f" WHERE s.status IN ({', '.join('?' for _ in statuses)})"
            params.extend(statuses)
        query += " ORDER BY s.start_time DESC LIMIT ?"
        params.append(limit)
        with self._guard("list_sessions"), get_conn(self._path) as conn:
            rows = conn.execute(query, params).fetchall()
        return [
            SessionSummary(
                session_id=row["session_id"],
                candidate_name=row["candidate_name"],
                position=row["position"],
                persona=row["persona"],
                status=row["status"],
                start_time=_parse(row["start_time"]),
                turn_count=row["turn_count"],
                current_score=row["final_score"],
            )
            for row in rows
        ]

    def stats(self) -> StoreStats:
        with self._guard("stats"), get_conn(self._path) as conn:
            rows = conn.execute("SELECT status, final_score, start_time, end_time FROM interview_sessions").fetchall()
        return summarize(
            (row["status"], row["final_score"], _parse(row["start_time"]), _parse(row["end_time"])) for row in rows
        )


__all__ = ["SqliteSessionStore"]
