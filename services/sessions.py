"""Service facade the transport layer talks to."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Type
from uuid import uuid4

import httpx
from pydantic import BaseModel

from config.providers import load_provider_config
from config.settings import Settings, settings as default_settings
from interview.errors import (
    InterviewError,
    InvalidStateTransition,
    SessionNotActive,
    SessionNotFound,
)
from interview.personas import get_persona
from interview.registry import SessionRegistry
from interview.session import InterviewSession
from interview.types import (
    CandidateProfile,
    ConversationTurn,
    EndResult,
    Session,
    SessionSnapshot,
    SessionStartResult,
    SessionSummary,
    TurnResult,
)
from observability import log_event
from providers.content_store import ContentStore
from providers.factory import ProviderSuite, build_providers
from providers.speech import RecognitionRequest
from storage.base import PersistenceStore, StoreStats
from storage.memory import InMemorySessionStore
from storage.sessions import SqliteSessionStore

from .analytics import SessionAnalytics, build_analytics
from .export import ExportFormat, export_session

logger = logging.getLogger(__name__)

AUDIO_SUFFIXES = {
    "audio/webm": ".webm",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/mpeg": ".mp3",
    "audio/mp4": ".m4a",
    "audio/ogg": ".ogg",
}


class RecognitionResult(BaseModel):
    text: str
    audio_ref: str
    backend: str
    degraded: bool = False


class InterviewService:
    """Single entry point for starting, running and reviewing interviews.

    Live sessions are held by the registry; once a session is completed or
    abandoned its final record is in the store and it is evicted, so reads
    fall back to the store.
    """

    def __init__(
        self,
        *,
        providers: ProviderSuite,
        store: PersistenceStore,
        content: ContentStore,
        settings: Optional[Settings] = None,
        registry: Optional[SessionRegistry] = None,
    ) -> None:
        self.providers = providers
        self.store = store
        self.content = content
        self.settings = settings or default_settings
        self.registry = registry or SessionRegistry()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start_session(self, profile: CandidateProfile, persona: Optional[str] = None) -> SessionStartResult:
        chosen = get_persona(persona or self.settings.PERSONA_DEFAULT)
        record = Session(session_id=str(uuid4()), candidate=profile, persona=chosen.id)
        self.store.create(record)
        session = self.registry.create(
            record.session_id,
            lambda: InterviewSession(record, providers=self.providers, store=self.store, settings=self.settings),
        )
        try:
            return session.start()
        except Exception:
            # A session that never said hello is not left registered as active.
            self._discard(session)
            raise

    def submit_turn(
        self,
        session_id: str,
        text: str,
        audio_ref: Optional[str] = None,
        turn_token: Optional[str] = None,
    ) -> TurnResult:
        return self._live(session_id, SessionNotActive).submit_turn(text, audio_ref=audio_ref, turn_token=turn_token)

    def end_session(self, session_id: str) -> EndResult:
        result = self._live(session_id, InvalidStateTransition).end()
        self.registry.evict(session_id)
        return result

    def pause_session(self, session_id: str) -> SessionSnapshot:
        self._live(session_id, InvalidStateTransition).pause()
        return self.get_session(session_id)

    def resume_session(self, session_id: str) -> SessionSnapshot:
        self._live(session_id, InvalidStateTransition).resume()
        return self.get_session(session_id)

    def abandon_session(self, session_id: str) -> SessionSnapshot:
        session = self._live(session_id, InvalidStateTransition)
        session.abandon()
        snapshot = session.snapshot()
        self.registry.evict(session_id)
        log_event("session_ended", session_id, status="abandoned", score=snapshot.session.final_score)
        return snapshot

    def intervene(self, session_id: str, message: str) -> ConversationTurn:
        return self._live(session_id, SessionNotActive).intervene(message)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_session(self, session_id: str) -> SessionSnapshot:
        session = self.registry.find(session_id)
        if session is not None:
            return session.snapshot()
        stored = self.store.find(session_id)
        if stored is None:
            raise SessionNotFound(f"Session {session_id} not found", details={"session_id": session_id})
        return SessionSnapshot(
            session=stored,
            duration_formatted=stored.formatted_duration(),
            turn_count=len(stored.history),
        )

    def list_active(self) -> List[SessionSummary]:
        return self.registry.list_active()

    def list_sessions(self, statuses: Optional[List[str]] = None, limit: int = 100) -> List[SessionSummary]:
        return self.store.list_sessions(statuses=statuses, limit=limit)

    def transcript(self, session_id: str) -> List[ConversationTurn]:
        return list(self.get_session(session_id).session.history)

    def analytics(self, session_id: str) -> SessionAnalytics:
        return build_analytics(self.get_session(session_id).session, pass_threshold=self.settings.PASS_THRESHOLD)

    def export(self, session_id: str, fmt: ExportFormat = "json") -> Tuple[bytes, str, str]:
        session = self.get_session(session_id).session
        return export_session(session, build_analytics(session, pass_threshold=self.settings.PASS_THRESHOLD), fmt)

    def stats(self) -> StoreStats:
        return self.store.stats()

    def provider_health(self) -> List[dict]:
        return self.providers.health()

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------
    def recognize_speech(
        self,
        audio: bytes,
        content_type: str = "audio/webm",
        session_id: Optional[str] = None,
    ) -> RecognitionResult:
        """Store the candidate's recording and transcribe it."""

        if not audio:
            raise ValueError("audio payload is empty")
        suffix = AUDIO_SUFFIXES.get(content_type.split(";")[0].strip().lower(), ".bin")
        audio_ref = self.content.save(audio, kind="recordings", suffix=suffix)
        artifact = self.providers.recognition.invoke(
            RecognitionRequest(audio=audio, content_type=content_type),
            session_id=session_id,
        )
        return RecognitionResult(
            text=artifact.value,
            audio_ref=audio_ref,
            backend=artifact.backend,
            degraded=artifact.degraded,
        )

    def cleanup_content(self, max_age_s: float = 24 * 60 * 60) -> int:
        return self.content.cleanup(max_age_s)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _live(self, session_id: str, when_finished: Type[InterviewError]) -> InterviewSession:
        session = self.registry.find(session_id)
        if session is not None:
            return session
        stored = self.store.find(session_id)
        if stored is None:
            raise SessionNotFound(f"Session {session_id} not found", details={"session_id": session_id})
        raise when_finished(f"Session is {stored.status}", details={"session_id": session_id, "status": stored.status})

    def _discard(self, session: InterviewSession) -> None:
        try:
            session.abandon()
        except InterviewError as exc:
            logger.warning("Could not abandon failed session %s: %s", session.session_id, exc)
        self.registry.evict(session.session_id)


def build_store(settings: Settings) -> PersistenceStore:
    if settings.STORE_BACKEND == "memory":
        return InMemorySessionStore()
    if settings.STORE_BACKEND == "sqlite":
        return SqliteSessionStore(Path(settings.DB_PATH))
    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")


def build_service(settings: Optional[Settings] = None, *, client: Optional[httpx.Client] = None) -> InterviewService:
    """Wire the service from settings: provider routes, store and content directory."""

    cfg = settings or default_settings
    provider_config = load_provider_config(
        Path(cfg.PROVIDERS_CONFIG),
        demo_mode=True if cfg.DEMO_MODE_ENABLED else None,
    )
    content = ContentStore(Path(cfg.CONTENT_DIR), cfg.CONTENT_URL_PREFIX)
    providers = build_providers(provider_config, settings=cfg, store=content, client=client)
    return InterviewService(providers=providers, store=build_store(cfg), content=content, settings=cfg)


__all__ = ["InterviewService", "RecognitionResult", "build_service", "build_store"]
