"""Lightweight CLI helpers for inspecting stored interviews."""
from __future__ import annotations

import argparse
import sqlite3
from pathlib import Path
from typing import Optional

from config.settings import settings
from providers.content_store import ContentStore


def tail_sessions(limit: int = 20, db_path: Optional[str] = None) -> None:
    conn = sqlite3.connect(db_path or settings.DB_PATH)
    try:
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT start_time, session_id, candidate_name, position, persona, status, final_score, flags_json
            FROM interview_sessions
            ORDER BY start_time DESC
            LIMIT ?
            """,
            (limit,),
        )
        for row in cursor.fetchall():
            ts, session_id, name, position, persona, status, score, flags = row
            shown = "-" if score is None else f"{score:.1f}"
            print(f"[{ts}] {session_id} {name} ({position}) persona={persona} status={status} score={shown} flags={flags}")
    finally:
        conn.close()


def tail_scores(limit: int = 20, db_path: Optional[str] = None) -> None:
    conn = sqlite3.connect(db_path or settings.DB_PATH)
    try:
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT timestamp, session_id, category, score, feedback
            FROM score_records
            ORDER BY id DESC
            LIMIT ?
            """,
            (limit,),
        )
        for row in cursor.fetchall():
            ts, session_id, category, score, feedback = row
            print(f"[{ts}] {session_id} {category}={score:.1f} feedback={feedback or '-'}")
    finally:
        conn.close()


def purge_content(max_age_hours: float, content_dir: Optional[str] = None) -> int:
    store = ContentStore(Path(content_dir or settings.CONTENT_DIR), settings.CONTENT_URL_PREFIX)
    removed = store.cleanup(max_age_hours * 3600)
    print(f"Removed {removed} artifacts older than {max_age_hours:g}h from {store.root}")
    return removed


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-sessions", type=int, help="Show the latest interview sessions")
    parser.add_argument("--tail-scores", type=int, help="Show the latest per-answer scores")
    parser.add_argument("--db", help="SQLite database path (defaults to DB_PATH)")
    parser.add_argument("--purge-content", type=float, metavar="HOURS", help="Delete generated media older than HOURS")
    parser.add_argument("--content-dir", help="Content directory (defaults to CONTENT_DIR)")
    args = parser.parse_args(argv)

    if args.tail_sessions:
        tail_sessions(args.tail_sessions, args.db)
    if args.tail_scores:
        tail_scores(args.tail_scores, args.db)
    if args.purge_content is not None:
        purge_content(args.purge_content, args.content_dir)


if __name__ == "__main__":
    main()
