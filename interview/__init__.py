"""Interview core: answer analysis, scoring, memory and the session model.

The session state machine and registry live in ``interview.session`` and
``interview.registry``; they depend on the provider adapters and are
imported from there directly.
"""
from .analyzer import ResponseAnalyzer, analyze
from .errors import (
    DuplicateTurn,
    EmptyResponse,
    InterviewError,
    InvalidStateTransition,
    PersistenceError,
    ProviderExhausted,
    SessionBusy,
    SessionNotActive,
    SessionNotFound,
)
from .memory import ConversationMemory
from .scoring import ScoringEngine, final_score
from .types import CandidateProfile, ConversationTurn, Features, ScoreRecord, Session

__all__ = [
    "CandidateProfile",
    "ConversationMemory",
    "ConversationTurn",
    "DuplicateTurn",
    "EmptyResponse",
    "Features",
    "InterviewError",
    "InvalidStateTransition",
    "PersistenceError",
    "ProviderExhausted",
    "ResponseAnalyzer",
    "ScoreRecord",
    "ScoringEngine",
    "Session",
    "SessionBusy",
    "SessionNotActive",
    "SessionNotFound",
    "analyze",
    "final_score",
]
