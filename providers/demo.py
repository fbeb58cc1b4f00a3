"""Deterministic stand-ins used when no vendor backend can answer.

Every generator is a pure function of its request so repeated runs in demo
mode produce identical transcripts.
"""
from __future__ import annotations

import zlib
from typing import Sequence

from .avatar import AvatarRequest
from .generation import GenerationRequest
from .speech import RecognitionRequest, SynthesisRequest

FALLBACK_REPLIES = (
    "That's very interesting! Can you tell me more about that?",
    "I see. How did that experience shape your approach to similar situations?",
    "That's a great point. What would you say was the most challenging part of that?",
    "Interesting perspective. How do you think that applies to this role?",
    "That sounds like valuable experience. What did you learn from that situation?",
)

CLOSING_TEXT = (
    "Thank you for your time today. We'll review your interview and get back to you "
    "within 2-3 business days. Do you have any questions for me?"
)

DEMO_TRANSCRIPTS = (
    "I have over 5 years of experience in software development, primarily working with JavaScript and React.",
    "In my previous role, I led a team of 6 developers and successfully delivered a major e-commerce platform.",
    "I'm passionate about creating user-friendly applications and solving complex technical challenges.",
    "I believe my experience with cloud technologies and agile methodologies would be valuable for this position.",
    "I'm excited about the opportunity to work with your team and contribute to innovative projects.",
)

_PERSONA_SLUGS = {
    "sarah-professional-hr": "sarah",
    "john-technical-lead": "john",
    "priya-senior-hr": "priya",
    "david-executive": "david",
}


def _pick(options: Sequence[str], seed: bytes) -> str:
    return options[zlib.crc32(seed) % len(options)]


def _slug(persona_id: str) -> str:
    return _PERSONA_SLUGS.get(persona_id, "sarah")


def welcome_text(candidate_name: str, position: str, persona_name: str = "Sarah") -> str:
    return (
        f"Hello {candidate_name}! I'm {persona_name}, and I'll be conducting your interview today "
        f"for the {position} position. Thank you for joining us. Could you start by telling me "
        "a little about yourself and your background?"
    )


def demo_generation(request: GenerationRequest) -> str:
    if request.purpose == "welcome":
        return welcome_text(request.candidate_name or "there", request.position or "open", request.persona_name)
    if request.purpose == "closing":
        return CLOSING_TEXT
    return _pick(FALLBACK_REPLIES, request.prompt.encode("utf-8"))


def demo_synthesis(request: SynthesisRequest) -> str:
    return f"https://demo-audio.elevenlabs.com/{_slug(request.persona_id)}-interview.mp3"


def demo_recognition(request: RecognitionRequest) -> str:
    return _pick(DEMO_TRANSCRIPTS, request.audio)


def demo_avatar(request: AvatarRequest) -> str:
    return f"https://demo-videos.heygen.com/{_slug(request.persona_id)}-interview.mp4"


__all__ = [
    "CLOSING_TEXT",
    "DEMO_TRANSCRIPTS",
    "FALLBACK_REPLIES",
    "demo_avatar",
    "demo_generation",
    "demo_recognition",
    "demo_synthesis",
    "welcome_text",
]
