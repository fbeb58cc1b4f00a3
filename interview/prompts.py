"""Prompt builders for the interviewer's welcome, follow-up and closing lines."""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .personas import PersonaConfig
from .types import CandidateProfile, ConversationTurn, Features

_ROLES = {"ai": "assistant", "candidate": "user", "admin": "user"}


def context_messages(turns: Sequence[ConversationTurn]) -> List[Dict[str, str]]:
    """Map transcript turns onto chat roles; admin notes are tagged for the model."""

    messages: List[Dict[str, str]] = []
    for turn in turns:
        content = turn.message if turn.speaker != "admin" else f"[Interviewer note] {turn.message}"
        messages.append({"role": _ROLES[turn.speaker], "content": content})
    return messages


def welcome_prompt(candidate: CandidateProfile, persona: PersonaConfig) -> str:
    return (
        f"Generate a warm, professional welcome message for {candidate.name}, who is interviewing "
        f"for the {candidate.position} position ({candidate.experience} level). Introduce yourself "
        f"as {persona.name}, explain the interview format briefly and ask an opening question "
        "about their background. Keep it under 100 words."
    )


def reply_prompt(
    candidate: CandidateProfile,
    answer: str,
    features: Features,
    topics: Optional[Sequence[str]] = None,
) -> str:
    guidance: List[str] = []
    if features.char_length < 50:
        guidance.append("The answer was brief; encourage the candidate to elaborate.")
    if features.specificity < 0.5:
        guidance.append("Ask for a specific example from their experience.")
    if features.technical_terms:
        guidance.append(
            "They mentioned " + ", ".join(features.technical_terms[:5]) + "; probe their depth with one of these."
        )
    if topics:
        guidance.append("Topics already covered: " + ", ".join(topics[:10]) + ". Move the conversation forward.")

    lines = [
        f"Candidate: {candidate.name}, applying for {candidate.position} ({candidate.experience} level).",
        f'Their latest answer: "{answer}"',
        f"Answer sentiment: {features.sentiment}.",
    ]
    lines.extend(guidance)
    lines.append("Respond naturally in under 100 words with one follow-up question.")
    return "\n".join(lines)


def closing_prompt(candidate: CandidateProfile, final_score: Optional[float]) -> str:
    score = f"{final_score:.1f}/10" if final_score is not None else "not yet scored"
    return (
        f"Generate a professional closing message for {candidate.name}'s interview for the "
        f"{candidate.position} position. Their overall interview score was {score}. Thank them, "
        "explain that the team will follow up within 2-3 business days and invite final questions. "
        "Do not reveal the score. Keep it under 80 words."
    )


__all__ = ["closing_prompt", "context_messages", "reply_prompt", "welcome_prompt"]
