"""Typed errors surfaced by the interview core."""
from __future__ import annotations

from typing import Any, Dict, Optional


class InterviewError(RuntimeError):
    """Base class for errors returned to callers of the interview core.

    Attributes:
        code: stable identifier used by the transport layer.
        message: human readable description.
        retryable: whether retrying the same call may succeed.
    """

    code = "INTERVIEW_ERROR"
    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(f"[{self.code}] {message}")


class SessionNotFound(InterviewError):
    code = "SESSION_NOT_FOUND"


class SessionNotActive(InterviewError):
    code = "SESSION_NOT_ACTIVE"


class InvalidStateTransition(InterviewError):
    code = "INVALID_STATE_TRANSITION"


class SessionBusy(InterviewError):
    code = "SESSION_BUSY"
    retryable = True


class DuplicateTurn(InterviewError):
    """The answer for this turn token was recorded but its reply never was."""

    code = "DUPLICATE_TURN"


class EmptyResponse(InterviewError):
    code = "EMPTY_RESPONSE"


class ProviderExhausted(InterviewError):
    """All backends and the demo generator failed for a capability."""

    code = "PROVIDER_EXHAUSTED"
    retryable = True


class PersistenceError(InterviewError):
    """The interview record store is unavailable."""

    code = "PERSISTENCE_ERROR"
    retryable = True


__all__ = [
    "DuplicateTurn",
    "EmptyResponse",
    "InterviewError",
    "InvalidStateTransition",
    "PersistenceError",
    "ProviderExhausted",
    "SessionBusy",
    "SessionNotActive",
    "SessionNotFound",
]
