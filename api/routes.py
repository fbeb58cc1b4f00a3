"""FastAPI routes for interview session control."""
from __future__ import annotations

import base64
import binascii
import threading
from contextlib import contextmanager
from typing import Iterator, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from api.schemas import (
    ActiveResp,
    ErrorBody,
    HealthResp,
    InterveneReq,
    PersonaResp,
    RecognizeReq,
    StartReq,
    TurnReq,
)
from interview.errors import (
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
from interview.personas import list_personas
from interview.types import ConversationTurn, EndResult, SessionSnapshot, SessionStartResult, TurnResult
from services.analytics import SessionAnalytics
from services.sessions import InterviewService, RecognitionResult, build_service
from storage.base import StoreStats

router = APIRouter(prefix="/api/interviews")

_STATUS_CODES = (
    (SessionNotFound, 404),
    (SessionBusy, 409),
    (DuplicateTurn, 409),
    (SessionNotActive, 409),
    (InvalidStateTransition, 409),
    (EmptyResponse, 422),
    (PersistenceError, 503),
    (ProviderExhausted, 503),
)

_service: Optional[InterviewService] = None
_service_lock = threading.Lock()


def get_service() -> InterviewService:
    global _service
    with _service_lock:
        if _service is None:
            _service = build_service()
    return _service


def _http_error(exc: InterviewError) -> HTTPException:
    status = next((code for cls, code in _STATUS_CODES if isinstance(exc, cls)), 500)
    body = ErrorBody(code=exc.code, message=exc.message, retryable=exc.retryable, details=exc.details)
    return HTTPException(status_code=status, detail=body.model_dump())


@contextmanager
def _errors() -> Iterator[None]:
    try:
        yield
    except InterviewError as exc:
        raise _http_error(exc) from exc


@router.post("/start", response_model=SessionStartResult, status_code=201)
def start(req: StartReq, service: InterviewService = Depends(get_service)) -> SessionStartResult:
    with _errors():
        return service.start_session(req.profile(), req.persona)


@router.get("/active", response_model=ActiveResp)
def active(service: InterviewService = Depends(get_service)) -> ActiveResp:
    sessions = service.list_active()
    return ActiveResp(sessions=sessions, count=len(sessions))


@router.get("/stats", response_model=StoreStats)
def stats(service: InterviewService = Depends(get_service)) -> StoreStats:
    with _errors():
        return service.stats()


@router.get("/personas", response_model=List[PersonaResp])
def personas() -> List[PersonaResp]:
    return [PersonaResp(id=p.id, name=p.name, role=p.role, voice_id=p.voice_id) for p in list_personas()]


@router.get("/health", response_model=HealthResp)
def health(service: InterviewService = Depends(get_service)) -> HealthResp:
    providers = service.provider_health()
    return HealthResp(
        demo_mode=any(p.get("demo_mode") for p in providers),
        active_sessions=len(service.registry),
        providers=providers,
    )


@router.post("/speech/recognize", response_model=RecognitionResult)
def recognize(req: RecognizeReq, service: InterviewService = Depends(get_service)) -> RecognitionResult:
    try:
        audio = base64.b64decode(req.audio_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=400, detail="audio_base64 is not valid base64") from exc
    if not audio:
        raise HTTPException(status_code=400, detail="audio payload is empty")
    with _errors():
        return service.recognize_speech(audio, req.content_type, session_id=req.session_id)


@router.get("/{session_id}", response_model=SessionSnapshot)
def get_session(session_id: str, service: InterviewService = Depends(get_service)) -> SessionSnapshot:
    with _errors():
        return service.get_session(session_id)


@router.post("/{session_id}/turn", response_model=TurnResult)
def turn(session_id: str, req: TurnReq, service: InterviewService = Depends(get_service)) -> TurnResult:
    with _errors():
        return service.submit_turn(session_id, req.text, audio_ref=req.audio_ref, turn_token=req.turn_token)


@router.post("/{session_id}/end", response_model=EndResult)
def end(session_id: str, service: InterviewService = Depends(get_service)) -> EndResult:
    with _errors():
        return service.end_session(session_id)


@router.post("/{session_id}/pause", response_model=SessionSnapshot)
def pause(session_id: str, service: InterviewService = Depends(get_service)) -> SessionSnapshot:
    with _errors():
        return service.pause_session(session_id)


@router.post("/{session_id}/resume", response_model=SessionSnapshot)
def resume(session_id: str, service: InterviewService = Depends(get_service)) -> SessionSnapshot:
    with _errors():
        return service.resume_session(session_id)


@router.post("/{session_id}/abandon", response_model=SessionSnapshot)
def abandon(session_id: str, service: InterviewService = Depends(get_service)) -> SessionSnapshot:
    with _errors():
        return service.abandon_session(session_id)


@router.post("/{session_id}/intervene", response_model=ConversationTurn)
def intervene(session_id: str, req: InterveneReq, service: InterviewService = Depends(get_service)) -> ConversationTurn:
    with _errors():
        return service.intervene(session_id, req.message)


@router.get("/{session_id}/transcript", response_model=List[ConversationTurn])
def transcript(session_id: str, service: InterviewService = Depends(get_service)) -> List[ConversationTurn]:
    with _errors():
        return service.transcript(session_id)


@router.get("/{session_id}/analytics", response_model=SessionAnalytics)
def analytics(session_id: str, service: InterviewService = Depends(get_service)) -> SessionAnalytics:
    with _errors():
        return service.analytics(session_id)


@router.get("/{session_id}/export")
def export(
    session_id: str,
    format: Literal["json", "csv", "pdf"] = Query(default="json"),
    service: InterviewService = Depends(get_service),
) -> Response:
    with _errors():
        payload, media_type, filename = service.export(session_id, format)
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return Response(content=payload, media_type=media_type, headers=headers)
