from __future__ import annotations  # Styled PDF rendering for interview transcripts

import os
from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from interview.types import ConversationTurn, Session

from .analytics import SessionAnalytics

DEJAVU_SANS = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"  # System font
DEJAVU_SANS_BOLD = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"  # System font

ACCENT = (45, 115, 245)  # Palette accent
TEXT = (34, 34, 34)  # Primary text color
MUTED = (100, 100, 100)  # Secondary text color
RULE = (230, 230, 230)  # Divider color
SOFT_ACCENT_BG = (243, 248, 255)  # Highlight background

SPEAKER_LABELS = {"ai": "Interviewer", "candidate": "Candidate", "admin": "Admin"}


def _format_datetime(value: Optional[datetime]) -> str:  # Format timestamp for display
    if not value:
        return "-"
    return value.strftime("%d %b %Y, %I:%M %p").lstrip("0").replace(" 0", " ")


def _effective_width(pdf: FPDF) -> float:  # Compute effective page width
    return float(pdf.w) - float(pdf.l_margin) - float(pdf.r_margin)


def _score_value(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{value:.1f}/10"


class ReportPDF(FPDF):  # PDF with custom header/footer styling
    def __init__(self, *args: Any, accent: Tuple[int, int, int] = ACCENT, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.accent = accent
        self.header_title = "Interview Report"
        self.font_regular = "Helvetica"
        self.font_bold = "Helvetica"
        self.supports_unicode = False

    def use_system_fonts(self) -> None:  # Switch to DejaVu when installed
        if not (os.path.exists(DEJAVU_SANS) and os.path.exists(DEJAVU_SANS_BOLD)):
            return
        self.add_font("DejaVu", "", DEJAVU_SANS)
        self.add_font("DejaVu", "B", DEJAVU_SANS_BOLD)
        self.font_regular = "DejaVu"
        self.font_bold = "DejaVu"
        self.supports_unicode = True

    def prepare(self, text: Any) -> str:  # Sanitize text for non-unicode fonts
        value = "" if text is None else str(text)
        if self.supports_unicode:
            return value
        cleaned = value.replace("•", "-").replace("’", "'").replace("—", "-")
        return cleaned.encode("latin-1", "ignore").decode("latin-1")

    def header(self) -> None:  # Render header banner
        usable = _effective_width(self)
        if self.page_no() == 1:
            self.set_font(self.font_bold, "B", 16)
            lines = self.multi_cell(usable, 8, self.prepare(self.header_title), dry_run=True, output="LINES")
            banner = 6 + len(lines) * 8 + 4
            self.set_fill_color(*self.accent)
            self.rect(0, 0, self.w, banner, style="F")
            self.set_text_color(255, 255, 255)
            self.set_xy(self.l_margin, 6)
            self.multi_cell(usable, 8, self.prepare(self.header_title))
            self.set_text_color(*TEXT)
            self.ln(4)
        else:
            self.set_text_color(80, 80, 80)
            self.set_xy(self.l_margin, 8)
            self.set_font(self.font_bold, "B", 12)
            self.multi_cell(usable, 6, self.prepare(self.header_title))
            mark = self.get_y()
            self.set_draw_color(*self.accent)
            self.set_line_width(0.4)
            self.line(self.l_margin, mark + 1, self.w - self.r_margin, mark + 1)
            self.set_text_color(*TEXT)
            self.ln(4)

    def footer(self) -> None:  # Render footer with pagination
        self.set_y(-12)
        self.set_draw_color(*RULE)
        self.set_line_width(0.2)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.set_text_color(120, 120, 120)
        self.set_font(self.font_regular, "", 9)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="R")


def _section_title(pdf: ReportPDF, title: str) -> None:  # Render styled section title
    pdf.set_text_color(*TEXT)
    pdf.set_x(pdf.l_margin)
    pdf.set_font(pdf.font_bold, "B", 13)
    pdf.cell(0, 9, pdf.prepare(title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_draw_color(*RULE)
    pdf.set_line_width(0.2)
    y = pdf.get_y()
    pdf.line(pdf.l_margin, y, pdf.l_margin + _effective_width(pdf), y)
    pdf.ln(2)


def _meta_block(pdf: ReportPDF, rows: List[Tuple[str, str]]) -> None:  # Draw two-column metadata
    col = _effective_width(pdf) / 2.0
    for idx in range(0, len(rows), 2):
        left = rows[idx]
        right = rows[idx + 1] if idx + 1 < len(rows) else ("", "")
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 10)
        pdf.cell(col, 6, pdf.prepare(left[0]), new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, 6, pdf.prepare(right[0]), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*TEXT)
        pdf.set_font(pdf.font_bold, "B", 11)
        pdf.cell(col, 6, pdf.prepare(left[1]), new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.cell(col, 6, pdf.prepare(right[1]), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(2)


def _render_score_table(pdf: ReportPDF, analytics: SessionAnalytics) -> None:  # Category averages
    widths = [_effective_width(pdf) * 0.6, _effective_width(pdf) * 0.4]
    pdf.set_x(pdf.l_margin)
    pdf.set_fill_color(*ACCENT)
    pdf.set_text_color(255, 255, 255)
    pdf.set_font(pdf.font_bold, "B", 10)
    pdf.cell(widths[0], 8, "Category", fill=True)
    pdf.cell(widths[1], 8, "Average", fill=True)
    pdf.ln(8)
    pdf.set_text_color(*TEXT)
    if not analytics.score_breakdown:
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 10)
        pdf.multi_cell(_effective_width(pdf), 6, "No scores recorded for this session.")
        pdf.set_text_color(*TEXT)
        pdf.ln(4)
        return
    pdf.set_font(pdf.font_regular, "", 10)
    for idx, (category, value) in enumerate(sorted(analytics.score_breakdown.items())):
        fill = idx % 2 == 0
        if fill:
            pdf.set_fill_color(247, 250, 255)
        pdf.set_x(pdf.l_margin)
        pdf.cell(widths[0], 7, pdf.prepare(category.title()), fill=fill)
        pdf.cell(widths[1], 7, _score_value(value), fill=fill)
        pdf.ln(7)
    pdf.ln(2)


def _render_final_score(pdf: ReportPDF, score: Optional[float]) -> None:
    pdf.set_fill_color(*SOFT_ACCENT_BG)
    pdf.rect(pdf.l_margin, pdf.get_y(), _effective_width(pdf), 16, style="F")
    pdf.set_xy(pdf.l_margin + 6, pdf.get_y() + 4)
    pdf.set_text_color(*MUTED)
    pdf.set_font(pdf.font_regular, "", 10)
    pdf.cell(_effective_width(pdf) - 12, 6, "Final Score")
    pdf.set_xy(pdf.l_margin, pdf.get_y() - 2)
    pdf.set_text_color(*ACCENT)
    pdf.set_font(pdf.font_bold, "B", 14)
    pdf.cell(_effective_width(pdf) - 6, 8, _score_value(score), align="R")
    pdf.ln(12)
    pdf.set_text_color(*TEXT)


def _render_turn(pdf: ReportPDF, turn: ConversationTurn) -> None:  # One transcript entry
    width = _effective_width(pdf)
    label = SPEAKER_LABELS.get(turn.speaker, turn.speaker)
    stamp = turn.timestamp.strftime("%H:%M:%S")
    if turn.metadata is not None and turn.metadata.score is not None:
        stamp += f"  |  score {_score_value(turn.metadata.score)}"
    pdf.set_x(pdf.l_margin)
    pdf.set_text_color(*(ACCENT if turn.speaker == "ai" else TEXT))
    pdf.set_font(pdf.font_bold, "B", 10)
    pdf.cell(width, 6, pdf.prepare(f"{label}  ({stamp})"), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_text_color(60, 60, 60)
    pdf.set_font(pdf.font_regular, "", 10)
    pdf.multi_cell(width, 5.5, pdf.prepare(turn.message))
    pdf.set_draw_color(*RULE)
    pdf.line(pdf.l_margin, pdf.get_y() + 1, pdf.l_margin + width, pdf.get_y() + 1)
    pdf.ln(3)


def _render_transcript(pdf: ReportPDF, turns: Sequence[ConversationTurn]) -> None:
    if not turns:
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 10)
        pdf.multi_cell(_effective_width(pdf), 6, "No transcript entries recorded for this session.")
        pdf.set_text_color(*TEXT)
        return
    for turn in turns:
        _render_turn(pdf, turn)


def generate_transcript_pdf(session: Session, analytics: SessionAnalytics) -> bytes:  # Build PDF payload
    pdf = ReportPDF()
    pdf.use_system_fonts()
    pdf.alias_nb_pages()
    pdf.header_title = f"{session.candidate.position} - {session.candidate.name} - Interview Report"
    pdf.set_margins(15, 22, 15)
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    _section_title(pdf, "Session Overview")
    _meta_block(
        pdf,
        [
            ("Session ID", session.session_id),
            ("Status", session.status.title()),
            ("Candidate", session.candidate.name),
            ("Position", session.candidate.position),
            ("Started", _format_datetime(session.start_time)),
            ("Duration", analytics.duration_formatted),
            ("Messages", str(analytics.message_counts.total)),
            ("Avg. answer length", f"{analytics.average_response_length:.1f} chars"),
        ],
    )

    _section_title(pdf, "Scores")
    _render_score_table(pdf, analytics)
    _render_final_score(pdf, analytics.final_score)

    if analytics.recommendations:
        _section_title(pdf, "Recommendations")
        pdf.set_x(pdf.l_margin)
        pdf.set_font(pdf.font_regular, "", 11)
        pdf.multi_cell(_effective_width(pdf), 6, pdf.prepare(analytics.recommendations))
        pdf.ln(2)

    _section_title(pdf, "Transcript")
    _render_transcript(pdf, session.history)

    return bytes(pdf.output())


__all__ = ["generate_transcript_pdf"]
