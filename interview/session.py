"""Per-interview state machine driving the capability adapters."""
from __future__ import annotations

import logging
import threading
from collections import OrderedDict, deque
from typing import TYPE_CHECKING, Any, Deque, Dict, Optional, Tuple

from config.settings import Settings, settings as default_settings
from observability import log_event, span
from providers.avatar import AvatarRequest
from providers.base import Artifact
from providers.factory import ProviderSuite
from providers.generation import GenerationRequest
from providers.speech import SynthesisRequest

from .analyzer import ResponseAnalyzer
from .errors import (
    DuplicateTurn,
    EmptyResponse,
    InvalidStateTransition,
    PersistenceError,
    SessionBusy,
    SessionNotActive,
)
from .memory import ConversationMemory
from .personas import PersonaConfig, clip_message, get_persona, system_prompt
from .prompts import closing_prompt, context_messages, reply_prompt, welcome_prompt
from .scoring import ScoringEngine, final_score
from .types import (
    ConversationTurn,
    EndResult,
    ScoreRecord,
    Session,
    SessionSnapshot,
    SessionStartResult,
    SessionStatus,
    TurnMetadata,
    TurnResult,
    utcnow,
)

if TYPE_CHECKING:
    from storage.base import PersistenceStore

logger = logging.getLogger(__name__)

_TRANSITIONS: Dict[str, Tuple[str, str]] = {
    "pause": ("active", "paused"),
    "resume": ("paused", "active"),
}


class InterviewSession:
    """One candidate interview.

    ``_turn_lock`` admits a single in-flight operation that talks to the
    adapters (start, submit_turn); a second caller gets :class:`SessionBusy`
    instead of queueing. ``_state_lock`` guards the record itself and is
    only held for in-memory mutations and the store writes that go with
    them, never across an adapter call. ``end`` and ``abandon`` set the
    cancel event so a turn that is waiting on a vendor stops polling, and
    whatever that turn produces afterwards is dropped.
    """

    def __init__(
        self,
        record: Session,
        *,
        providers: ProviderSuite,
        store: "PersistenceStore",
        settings: Optional[Settings] = None,
        analyzer: Optional[ResponseAnalyzer] = None,
        scoring: Optional[ScoringEngine] = None,
    ) -> None:
        self.record = record
        self._providers = providers
        self._store = store
        self._settings = settings or default_settings
        self._analyzer = analyzer or ResponseAnalyzer()
        self._scoring = scoring or ScoringEngine()
        self.persona: PersonaConfig = get_persona(record.persona)
        self.memory = ConversationMemory(
            record.history,
            recent_turns=self._settings.RECENT_CONTEXT_TURNS,
            window=self._settings.MEMORY_WINDOW,
        )
        self.events: Deque[Dict[str, Any]] = deque(maxlen=200)

        self._turn_lock = threading.Lock()
        self._state_lock = threading.RLock()
        self._cancel = threading.Event()
        self._ending = False
        self._turn_results: "OrderedDict[str, Optional[TurnResult]]" = OrderedDict()

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------
    @property
    def session_id(self) -> str:
        return self.record.session_id

    @property
    def status(self) -> SessionStatus:
        return self.record.status

    def current_score(self) -> Optional[float]:
        with self._state_lock:
            if self.record.is_terminal:
                return self.record.final_score
            return final_score(self.record.scores)

    def snapshot(self) -> SessionSnapshot:
        with self._state_lock:
            copy = self.record.model_copy(deep=True)
        return SessionSnapshot(session=copy, duration_formatted=copy.formatted_duration(), turn_count=len(copy.history))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def start(self) -> SessionStartResult:
        if not self._turn_lock.acquire(blocking=False):
            raise SessionBusy("Session is already starting", details={"session_id": self.session_id})
        try:
            self._require_active()
            cancel = self._cancel
            candidate = self.record.candidate
            text = self._generate(
                GenerationRequest(
                    purpose="welcome",
                    prompt=welcome_prompt(candidate, self.persona),
                    system_prompt=system_prompt(self.persona),
                    persona_name=self.persona.name,
                    candidate_name=candidate.name,
                    position=candidate.position,
                ),
                cancel,
            )
            audio_ref, video_ref = self._speak(text, cancel)
            self._ensure_live()
            with self._state_lock:
                self._ensure_live()
                self._record_ai_turn(ConversationTurn(speaker="ai", message=text, audio_ref=audio_ref, video_ref=video_ref))
            log_event(
                "session_started",
                self.session_id,
                persona=self.persona.id,
                candidate=candidate.name,
                position=candidate.position,
            )
            return SessionStartResult(
                session_id=self.session_id,
                welcome_text=text,
                audio_ref=audio_ref,
                video_ref=video_ref,
                persona=self.persona.id,
            )
        finally:
            self._turn_lock.release()

    def submit_turn(
        self,
        text: str,
        audio_ref: Optional[str] = None,
        turn_token: Optional[str] = None,
    ) -> TurnResult:
        cached = self._cached_turn(turn_token)
        if cached is not None:
            return cached
        if not self._turn_lock.acquire(blocking=False):
            raise SessionBusy("Another turn is in flight", details={"session_id": self.session_id})
        try:
            cached = self._cached_turn(turn_token)
            if cached is not None:
                return cached
            if turn_token and turn_token in self._turn_results:
                # Scored already, but pause/end/abandon cut off the reply.
                raise DuplicateTurn(
                    "Answer was already recorded for this turn token",
                    details={"session_id": self.session_id, "turn_token": turn_token},
                )
            return self._run_turn(text, audio_ref, turn_token)
        finally:
            self._turn_lock.release()

    def _run_turn(self, text: str, audio_ref: Optional[str], turn_token: Optional[str]) -> TurnResult:
        self._require_active()
        cancel = self._cancel
        answer = clip_message(text or "", self._settings.MAX_MESSAGE_CHARS)
        if not answer:
            raise EmptyResponse("Candidate response is empty", details={"session_id": self.session_id})

        features = self._analyzer.analyze(answer)
        prior = self.memory.entries()
        scored = self._scoring.score(features, prior)
        candidate_turn = ConversationTurn(
            speaker="candidate",
            message=answer,
            audio_ref=audio_ref,
            metadata=TurnMetadata(
                sentiment=features.sentiment,
                keywords=list(features.keywords),
                word_count=features.word_count,
                score=scored.value,
            ),
        )
        record = scored.to_record("overall")

        with self._state_lock:
            self._require_active()
            # Persist before the in-memory append so a failed write leaves nothing to undo.
            self._store.append_turn(self.session_id, candidate_turn)
            self.memory.append(candidate_turn, features)
            self.record.scores.append(record)
            running = final_score(self.record.scores)
            self._best_effort("append_score", self._store.append_score, self.session_id, record)
            if turn_token:
                self._remember(turn_token, None)
            topics = self.memory.topics_covered()
            recent = self.memory.recent_context()

        log_event(
            "turn_scored",
            self.session_id,
            score=scored.value,
            running=running,
            keywords=len(features.keywords),
            technical=len(features.technical_terms),
        )

        reply = self._generate(
            GenerationRequest(
                purpose="reply",
                prompt=reply_prompt(self.record.candidate, answer, features, topics),
                system_prompt=system_prompt(self.persona),
                context=context_messages(recent[:-1]),
                persona_name=self.persona.name,
                candidate_name=self.record.candidate.name,
                position=self.record.candidate.position,
            ),
            cancel,
        )
        self._ensure_live()
        reply_audio, reply_video = self._speak(reply, cancel)

        with self._state_lock:
            self._ensure_live()
            self._record_ai_turn(
                ConversationTurn(speaker="ai", message=reply, audio_ref=reply_audio, video_ref=reply_video)
            )
            result = TurnResult(
                session_id=self.session_id,
                reply_text=reply,
                audio_ref=reply_audio,
                video_ref=reply_video,
                turn_score=scored.value,
                current_score=running,
                conversation_length=len(self.record.history),
            )
            if turn_token:
                self._remember(turn_token, result)
        return result

    def end(self) -> EndResult:
        with self._state_lock:
            if self._ending:
                raise SessionBusy("Session is already ending", details={"session_id": self.session_id})
            if self.record.status not in ("active", "paused"):
                raise InvalidStateTransition(
                    f"Cannot end a {self.record.status} session", details={"session_id": self.session_id}
                )
            self._ending = True
            self._cancel.set()
            score = final_score(self.record.scores)

        try:
            closing = self._generate(
                GenerationRequest(
                    purpose="closing",
                    prompt=closing_prompt(self.record.candidate, score),
                    system_prompt=system_prompt(self.persona),
                    persona_name=self.persona.name,
                    candidate_name=self.record.candidate.name,
                    position=self.record.candidate.position,
                    final_score=score,
                ),
                cancel=None,
            )
            audio_ref, video_ref = self._speak(closing, cancel=None)

            with self._state_lock:
                if self.record.is_terminal:
                    raise SessionNotActive(
                        f"Session was {self.record.status} while ending", details={"session_id": self.session_id}
                    )
                # Scores recorded by a turn that raced this call still count.
                score = final_score(self.record.scores)
                end_time = utcnow()
                recommendations = self._recommend(score)
                flags = self.record.flags.model_copy(
                    update={"requires_human_review": self._needs_review(score) or self.record.flags.requires_human_review}
                )
                self._store.update_status(
                    self.session_id,
                    "completed",
                    end_time=end_time,
                    final_score=score,
                    recommendations=recommendations,
                    flags=flags,
                )
                self.record.status = "completed"
                self.record.end_time = end_time
                self.record.final_score = score
                self.record.recommendations = recommendations
                self.record.flags = flags
                self._record_ai_turn(
                    ConversationTurn(speaker="ai", message=closing, audio_ref=audio_ref, video_ref=video_ref)
                )
                duration = self.record.formatted_duration()
                total = len(self.record.history)
        finally:
            with self._state_lock:
                self._ending = False

        log_event("session_ended", self.session_id, status="completed", score=score, duration=duration)
        return EndResult(
            session_id=self.session_id,
            closing_text=closing,
            audio_ref=audio_ref,
            video_ref=video_ref,
            final_score=score,
            duration_formatted=duration,
            recommendations=recommendations,
            total_messages=total,
        )

    def pause(self) -> Session:
        return self._transition("pause")

    def resume(self) -> Session:
        return self._transition("resume")

    def abandon(self) -> Session:
        with self._state_lock:
            if self.record.is_terminal:
                raise InvalidStateTransition(
                    f"Cannot abandon a {self.record.status} session", details={"session_id": self.session_id}
                )
            self._cancel.set()
            previous = self.record.status
            end_time = utcnow()
            score = final_score(self.record.scores)
            self._store.update_status(self.session_id, "abandoned", end_time=end_time, final_score=score)
            self.record.status = "abandoned"
            self.record.end_time = end_time
            self.record.final_score = score
            snapshot = self.record.model_copy(deep=True)
        log_event("status_changed", self.session_id, status="abandoned", previous=previous)
        return snapshot

    def intervene(self, message: str) -> ConversationTurn:
        """Insert an admin turn; it becomes context for the next reply."""

        note = clip_message(message or "", self._settings.MAX_MESSAGE_CHARS)
        if not note:
            raise EmptyResponse("Intervention message is empty", details={"session_id": self.session_id})
        with self._state_lock:
            if self.record.is_terminal:
                raise SessionNotActive(
                    f"Session is {self.record.status}", details={"session_id": self.session_id}
                )
            turn = ConversationTurn(speaker="admin", message=note)
            flags = self.record.flags.model_copy(update={"admin_intervention": True})
            self._store.append_turn(self.session_id, turn)
            self._store.update_status(self.session_id, self.record.status, flags=flags)
            self.memory.append(turn)
            self.record.flags = flags
        log_event("admin_intervention", self.session_id, status=self.record.status)
        return turn

    def add_score(self, record: ScoreRecord) -> None:
        """Attach an externally produced score (e.g. a human grader's)."""

        with self._state_lock:
            if self.record.is_terminal:
                raise SessionNotActive(
                    f"Score is frozen for a {self.record.status} session", details={"session_id": self.session_id}
                )
            self._store.append_score(self.session_id, record)
            self.record.scores.append(record)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _transition(self, action: str) -> Session:
        source, target = _TRANSITIONS[action]
        with self._state_lock:
            if self.record.status != source or self._ending:
                raise InvalidStateTransition(
                    f"Cannot {action} a {self.record.status} session",
                    details={"session_id": self.session_id, "expected": source},
                )
            self._store.update_status(self.session_id, target)
            self.record.status = target  # type: ignore[assignment]
            snapshot = self.record.model_copy(deep=True)
        log_event("status_changed", self.session_id, status=target, previous=source)
        return snapshot

    def _require_active(self) -> None:
        with self._state_lock:
            if self.record.status != "active" or self._ending:
                raise SessionNotActive(
                    f"Session is {self.record.status}", details={"session_id": self.session_id}
                )
            if self._cancel.is_set():
                self._cancel = threading.Event()

    def _ensure_live(self) -> None:
        """Drop late results once the session stopped being active."""

        if self._cancel.is_set() or self.record.status != "active":
            log_event("turn_discarded", self.session_id, status=self.record.status)
            raise SessionNotActive(
                f"Session is {self.record.status}", details={"session_id": self.session_id}
            )

    def _generate(self, request: GenerationRequest, cancel: Optional[threading.Event]) -> str:
        with span(self.events, "generation", purpose=request.purpose):
            artifact = self._providers.generation.invoke(request, cancel=cancel, session_id=self.session_id)
        self._note(artifact, cancel)
        return artifact.value

    def _speak(self, text: str, cancel: Optional[threading.Event]) -> Tuple[Optional[str], Optional[str]]:
        with span(self.events, "synthesis"):
            audio = self._providers.synthesis.invoke(
                SynthesisRequest(text=text, voice_id=self.persona.voice_id, persona_id=self.persona.id),
                cancel=cancel,
                session_id=self.session_id,
            )
        self._note(audio, cancel)
        with span(self.events, "avatar"):
            video = self._providers.avatar.invoke(
                AvatarRequest(
                    text=text,
                    audio_ref=audio.value,
                    persona_id=self.persona.id,
                    presenter_id=self.persona.presenter_id,
                    voice_id=self.persona.voice_id,
                ),
                cancel=cancel,
                session_id=self.session_id,
            )
        self._note(video, cancel)
        return audio.value, video.value

    def _note(self, artifact: Artifact, cancel: Optional[threading.Event]) -> None:
        if not artifact.degraded:
            return
        with self._state_lock:
            # A fallback forced by end/abandon is not a vendor failure.
            if (cancel is not None and cancel.is_set()) or self.record.is_terminal:
                return
            if not self.record.flags.technical_issues:
                self.record.flags = self.record.flags.model_copy(update={"technical_issues": True})

    def _record_ai_turn(self, turn: ConversationTurn) -> None:
        self.memory.append(turn)
        self._best_effort("append_turn", self._store.append_turn, self.session_id, turn)

    def _best_effort(self, what: str, func, *args: Any) -> None:
        try:
            func(*args)
        except PersistenceError as exc:
            log_event("persistence_warning", self.session_id, level=logging.WARNING, op=what, error=exc.message)

    def _cached_turn(self, token: Optional[str]) -> Optional[TurnResult]:
        if not token:
            return None
        with self._state_lock:
            return self._turn_results.get(token)

    def _remember(self, token: str, result: Optional[TurnResult]) -> None:
        limit = self._settings.TURN_TOKEN_CACHE
        if limit <= 0:
            return
        self._turn_results[token] = result
        while len(self._turn_results) > limit:
            self._turn_results.popitem(last=False)

    def _needs_review(self, score: Optional[float]) -> bool:
        if score is None:
            return True
        return self._settings.REVIEW_THRESHOLD <= score < self._settings.PASS_THRESHOLD

    def _recommend(self, score: Optional[float]) -> str:
        name = self.record.candidate.name
        if score is None:
            verdict = f"Insufficient responses from {name} to make a recommendation."
        elif score >= self._settings.PASS_THRESHOLD:
            verdict = f"Recommend advancing {name} to the next round."
        elif score >= self._settings.REVIEW_THRESHOLD:
            verdict = f"Borderline performance from {name}; a human reviewer should decide."
        else:
            verdict = f"Not recommended to advance {name} at this time."
        strengths = self.memory.strengths()
        if strengths:
            verdict += " Strengths: " + ", ".join(strengths[:5]) + "."
        if self.record.flags.technical_issues:
            verdict += " Some media could not be generated during the interview."
        return verdict


__all__ = ["InterviewSession"]
