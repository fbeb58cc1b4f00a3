"""Pydantic schemas for the interview API."""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from interview.types import CandidateProfile, ExperienceTier, SessionSummary


class StartReq(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    position: str = Field(min_length=1, max_length=100)
    email: Optional[str] = None
    experience: ExperienceTier = "mid"
    phone: Optional[str] = None
    resume: Optional[str] = None
    persona: Optional[str] = None

    def profile(self) -> CandidateProfile:
        return CandidateProfile(
            name=self.name,
            position=self.position,
            email=self.email,
            experience=self.experience,
            phone=self.phone,
            resume=self.resume,
        )


class TurnReq(BaseModel):
    text: str = Field(max_length=20000)
    audio_ref: Optional[str] = None
    turn_token: Optional[str] = Field(default=None, max_length=128)


class InterveneReq(BaseModel):
    message: str = Field(min_length=1, max_length=5000)


class RecognizeReq(BaseModel):
    audio_base64: str
    content_type: str = "audio/webm"
    session_id: Optional[str] = None


class ActiveResp(BaseModel):
    sessions: List[SessionSummary] = Field(default_factory=list)
    count: int = 0


class PersonaResp(BaseModel):
    id: str
    name: str
    role: str
    voice_id: str


class HealthResp(BaseModel):
    status: str = "ok"
    demo_mode: bool = False
    active_sessions: int = 0
    providers: List[Dict] = Field(default_factory=list)


class ErrorBody(BaseModel):
    code: str
    message: str
    retryable: bool = False
    details: Dict = Field(default_factory=dict)
