"""Transcript exports (JSON, CSV, PDF)."""
from __future__ import annotations

import csv
import io
import json
from typing import Literal, Tuple

from interview.types import Session

from .analytics import SessionAnalytics
from .report_pdf import generate_transcript_pdf

ExportFormat = Literal["json", "csv", "pdf"]

CSV_COLUMNS = ("Speaker", "Message", "Timestamp", "Score")


def export_json(session: Session, analytics: SessionAnalytics) -> bytes:
    payload = {
        "session": session.model_dump(mode="json"),
        "analytics": analytics.model_dump(mode="json"),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


def export_csv(session: Session) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_COLUMNS)
    for turn in session.history:
        score = turn.metadata.score if turn.metadata is not None and turn.metadata.score is not None else ""
        writer.writerow([turn.speaker, turn.message, turn.timestamp.isoformat(), score])
    return buffer.getvalue().encode("utf-8")


def export_session(session: Session, analytics: SessionAnalytics, fmt: ExportFormat) -> Tuple[bytes, str, str]:
    """Return ``(body, media_type, filename)`` for the requested format."""

    stem = f"interview-{session.session_id}"
    if fmt == "json":
        return export_json(session, analytics), "application/json", f"{stem}.json"
    if fmt == "csv":
        return export_csv(session), "text/csv", f"{stem}.csv"
    if fmt == "pdf":
        return generate_transcript_pdf(session, analytics), "application/pdf", f"{stem}.pdf"
    raise ValueError(f"Unsupported export format: {fmt}")


__all__ = ["CSV_COLUMNS", "ExportFormat", "export_csv", "export_json", "export_session"]
