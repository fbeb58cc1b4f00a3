"""Interviewer personas: voice, avatar and tone per identity."""
from __future__ import annotations

import re
from typing import Dict, List, Literal

from pydantic import BaseModel, ConfigDict

PersonaId = Literal["sarah-professional-hr", "john-technical-lead", "priya-senior-hr", "david-executive"]

DEFAULT_PERSONA: PersonaId = "sarah-professional-hr"


class PersonaConfig(BaseModel):  # Interviewer identity
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    role: str
    voice_id: str
    presenter_id: str
    tone: str
    background: str = "office-environment"


PERSONAS: Dict[str, PersonaConfig] = {
    "sarah-professional-hr": PersonaConfig(
        id="sarah-professional-hr",
        name="Sarah",
        role="HR Professional",
        voice_id="professional-female-sarah",
        presenter_id="d-AQH1v5hqH8J",
        tone="friendly, warm and professional, with eight years of technical recruiting behind you",
    ),
    "john-technical-lead": PersonaConfig(
        id="john-technical-lead",
        name="John",
        role="Technical Lead",
        voice_id="professional-male-john",
        presenter_id="d-JohnTechLead123",
        tone="direct and curious about technical depth, probing design decisions and trade-offs",
    ),
    "priya-senior-hr": PersonaConfig(
        id="priya-senior-hr",
        name="Priya",
        role="Senior HR Manager",
        voice_id="professional-female-priya",
        presenter_id="d-PriyaSeniorHR456",
        tone="calm and structured, focused on behaviour, collaboration and culture fit",
    ),
    "david-executive": PersonaConfig(
        id="david-executive",
        name="David",
        role="Executive",
        voice_id="professional-male-david",
        presenter_id="d-DavidExecutive789",
        tone="concise and strategic, interested in impact, ownership and leadership",
        background="executive-office",
    ),
}


def get_persona(persona_id: str | None) -> PersonaConfig:
    """Return the persona for ``persona_id``, defaulting to Sarah for unknown ids."""

    if persona_id and persona_id in PERSONAS:
        return PERSONAS[persona_id]
    return PERSONAS[DEFAULT_PERSONA]


def is_valid_persona(persona_id: str) -> bool:
    return persona_id in PERSONAS


def list_personas() -> List[PersonaConfig]:
    return list(PERSONAS.values())


def system_prompt(persona: PersonaConfig) -> str:
    return (
        f"You are {persona.name}, a {persona.role} conducting a live video interview. "
        f"Your manner is {persona.tone}. "
        "Ask open-ended questions, follow up on interesting points and probe for specific examples. "
        "Assess both technical and soft skills, adapt to the candidate's experience level "
        "and keep every reply conversational and under 100 words. "
        "Never mention that you are an AI or an automated system."
    )


def clip_message(text: str, max_chars: int) -> str:
    """Clip ``text`` to ``max_chars``, preferring the last full sentence."""

    text = (text or "").strip()
    if len(text) <= max_chars:
        return text
    head = text[:max_chars]
    parts = re.split(r"(?<=[.!?])\s+", head)
    if len(parts) > 1:
        return " ".join(parts[:-1]).strip()
    return head.rstrip()


__all__ = [
    "DEFAULT_PERSONA",
    "PERSONAS",
    "PersonaConfig",
    "PersonaId",
    "clip_message",
    "get_persona",
    "is_valid_persona",
    "list_personas",
    "system_prompt",
]
