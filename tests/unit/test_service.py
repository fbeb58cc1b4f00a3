import pytest

from interview.errors import InvalidStateTransition, ProviderExhausted, SessionNotActive, SessionNotFound
from interview.types import CandidateProfile
from providers.base import ProviderAdapter
from services.sessions import InterviewService, build_service, build_store
from storage.memory import InMemorySessionStore
from storage.sessions import SqliteSessionStore

PROFILE = CandidateProfile(name="Ana", position="Engineer")


def test_unknown_persona_falls_back_to_default(service):
    started = service.start_session(PROFILE, "nobody")
    assert started.persona == "sarah-professional-hr"
    assert len(service.registry) == 1


def test_finished_sessions_are_read_from_store(service):
    started = service.start_session(PROFILE)
    service.end_session(started.session_id)
    assert started.session_id not in service.registry
    snapshot = service.get_session(started.session_id)
    assert snapshot.session.status == "completed"
    assert snapshot.turn_count == 2
    with pytest.raises(InvalidStateTransition):
        service.pause_session(started.session_id)
    with pytest.raises(SessionNotActive):
        service.intervene(started.session_id, "hello?")
    assert [s.status for s in service.list_sessions()] == ["completed"]


def test_unknown_session_raises(service):
    with pytest.raises(SessionNotFound):
        service.get_session("ghost")
    with pytest.raises(SessionNotFound):
        service.end_session("ghost")


def test_failed_start_is_abandoned(make_suite, content_store, test_settings):
    def broken(request):
        raise RuntimeError("no text at all")

    suite = make_suite()
    suite = suite.model_copy(update={"generation": ProviderAdapter("generation", [], broken)})
    store = InMemorySessionStore()
    service = InterviewService(providers=suite, store=store, content=content_store, settings=test_settings)
    with pytest.raises(ProviderExhausted):
        service.start_session(PROFILE)
    assert len(service.registry) == 0
    assert [s.status for s in store.list_sessions()] == ["abandoned"]


def test_start_crash_does_not_leave_active_session(make_suite, fake_backend, content_store, test_settings):
    suite = make_suite(generation=[fake_backend("llm", error=TypeError("bug"))])
    store = InMemorySessionStore()
    service = InterviewService(providers=suite, store=store, content=content_store, settings=test_settings)
    with pytest.raises(TypeError):
        service.start_session(PROFILE)
    assert len(service.registry) == 0
    assert [s.status for s in store.list_sessions()] == ["abandoned"]


def test_recognize_speech_stores_recording(service, content_store):
    result = service.recognize_speech(b"RIFF....", "audio/wav; codecs=1")
    assert result.audio_ref.endswith(".wav")
    assert content_store.path_for(result.audio_ref).exists()
    with pytest.raises(ValueError):
        service.recognize_speech(b"")


def test_build_store_by_backend(test_settings, tmp_path):
    assert isinstance(build_store(test_settings), InMemorySessionStore)
    sqlite_settings = test_settings.model_copy(update={"STORE_BACKEND": "sqlite", "DB_PATH": str(tmp_path / "x.db")})
    assert isinstance(build_store(sqlite_settings), SqliteSessionStore)
    with pytest.raises(ValueError):
        build_store(test_settings.model_copy(update={"STORE_BACKEND": "redis"}))


def test_build_service_in_demo_mode(test_settings, tmp_path):
    settings = test_settings.model_copy(
        update={"DEMO_MODE_ENABLED": True, "PROVIDERS_CONFIG": str(tmp_path / "missing.yaml")}
    )
    service = build_service(settings)
    started = service.start_session(PROFILE)
    assert "Ana" in started.welcome_text
    assert started.video_ref.startswith("https://demo-videos.heygen.com/")
    assert service.get_session(started.session_id).session.flags.technical_issues is False
