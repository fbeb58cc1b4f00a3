"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS interview_sessions (
  session_id TEXT PRIMARY KEY,
  candidate_name TEXT NOT NULL,
  position TEXT NOT NULL,
  email TEXT,
  experience TEXT NOT NULL,
  phone TEXT,
  resume TEXT,
  persona TEXT NOT NULL,
  status TEXT NOT NULL,
  start_time TEXT NOT NULL,
  end_time TEXT,
  final_score REAL,
  recommendations TEXT NOT NULL DEFAULT '',
  flags_json TEXT NOT NULL DEFAULT '{}'
);
""",
    """
CREATE TABLE IF NOT EXISTS conversation_turns (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  session_id TEXT NOT NULL REFERENCES interview_sessions(session_id) ON DELETE CASCADE,
  speaker TEXT NOT NULL,
  message TEXT NOT NULL,
  timestamp TEXT NOT NULL,
  audio_ref TEXT,
  video_ref TEXT,
  metadata_json TEXT
);
""",
    """
CREATE TABLE IF NOT EXISTS score_records (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  session_id TEXT NOT NULL REFERENCES interview_sessions(session_id) ON DELETE CASCADE,
  category TEXT NOT NULL,
  score REAL NOT NULL,
  feedback TEXT NOT NULL,
  factors_json TEXT NOT NULL,
  timestamp TEXT NOT NULL
);
""",
    "CREATE INDEX IF NOT EXISTS idx_turns_session ON conversation_turns(session_id, id);",
    "CREATE INDEX IF NOT EXISTS idx_scores_session ON score_records(session_id, id);",
    "CREATE INDEX IF NOT EXISTS idx_sessions_status ON interview_sessions(status, start_time);",
]


def migrate(db_path: str = "data/interview.db") -> None:
    """Apply schema migrations to the SQLite database."""

    directory = os.path.dirname(db_path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    from config.settings import settings

    migrate(settings.DB_PATH)
