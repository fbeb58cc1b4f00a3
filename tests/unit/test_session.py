import threading

import pytest

from interview.errors import (
    DuplicateTurn,
    EmptyResponse,
    InvalidStateTransition,
    PersistenceError,
    SessionBusy,
    SessionNotActive,
)
from interview.session import InterviewSession
from interview.types import CandidateProfile, ScoreRecord, Session
from storage.memory import InMemorySessionStore

SCENARIO_B = "I led a team of 5 engineers, for example on Project X, using React and AWS."


class FlakyStore(InMemorySessionStore):
    """Memory store whose writes can be switched off per operation."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_candidate_turns = False
        self.fail_scores = False

    def append_turn(self, session_id, turn):
        if self.fail_candidate_turns and turn.speaker == "candidate":
            raise PersistenceError("disk full")
        super().append_turn(session_id, turn)

    def append_score(self, session_id, record):
        if self.fail_scores:
            raise PersistenceError("disk full")
        super().append_score(session_id, record)


@pytest.fixture
def make_session(fake_suite, test_settings):
    def _make(store=None, suite=None, **profile):
        store = store if store is not None else InMemorySessionStore()
        candidate = CandidateProfile(**{"name": "Ana", "position": "Engineer", **profile})
        record = Session(session_id="s-1", candidate=candidate, persona="sarah-professional-hr")
        store.create(record)
        return InterviewSession(record, providers=suite or fake_suite, store=store, settings=test_settings)

    return _make


def test_start_records_welcome_turn(make_session):
    session = make_session()
    result = session.start()
    assert session.status == "active"
    assert len(session.record.history) == 1
    assert session.record.history[0].speaker == "ai"
    assert session.record.history[0].message == result.welcome_text
    assert result.audio_ref == "/uploads/audio/audio_fake.mp3"
    assert result.video_ref == "/uploads/video/video_fake.mp4"


def test_scored_turn_appends_candidate_and_reply(make_session):
    session = make_session()
    session.start()
    result = session.submit_turn(SCENARIO_B)
    assert 7.0 <= result.turn_score <= 10.0
    assert result.current_score == result.turn_score
    assert result.conversation_length == 3
    speakers = [turn.speaker for turn in session.record.history]
    assert speakers == ["ai", "candidate", "ai"]
    candidate = session.record.history[1]
    assert candidate.metadata.score == result.turn_score
    assert "team" in candidate.metadata.keywords
    assert [r.category for r in session.record.scores] == ["overall"]


@pytest.mark.parametrize("text", ["", "   ", None])
def test_empty_answer_is_rejected(make_session, text):
    session = make_session()
    session.start()
    with pytest.raises(EmptyResponse):
        session.submit_turn(text)
    assert len(session.record.history) == 1
    assert session.record.scores == []


def test_long_answer_is_clipped(make_session, test_settings):
    session = make_session()
    session.start()
    session.submit_turn("word " * 2000)
    assert len(session.record.history[1].message) <= test_settings.MAX_MESSAGE_CHARS


def test_end_averages_overall_scores(make_session):
    store = InMemorySessionStore()
    session = make_session(store=store)
    session.start()
    session.add_score(ScoreRecord(category="overall", score=6.0))
    session.add_score(ScoreRecord(category="overall", score=8.0))
    result = session.end()
    assert result.final_score == 7.0
    assert session.status == "completed"
    assert session.record.end_time is not None
    assert result.recommendations
    assert session.record.history[-1].message == result.closing_text
    stored = store.find("s-1")
    assert stored.status == "completed"
    assert stored.final_score == 7.0
    assert stored.end_time is not None


def test_end_without_scores_flags_review(make_session):
    session = make_session()
    session.start()
    result = session.end()
    assert result.final_score is None
    assert session.record.flags.requires_human_review is True
    assert "Insufficient" in result.recommendations


def test_borderline_score_requires_review(make_session):
    session = make_session()
    session.start()
    session.add_score(ScoreRecord(category="overall", score=6.0))
    session.end()
    assert session.record.flags.requires_human_review is True


def test_concurrent_turns_one_is_busy(make_session, make_suite, fake_backend):
    llm = fake_backend("gated-llm", ["Tell me more."])
    suite = make_suite(generation=[llm])
    session = make_session(suite=suite)
    session.start()

    gate = threading.Event()
    llm.gate = gate
    results = []
    worker = threading.Thread(target=lambda: results.append(session.submit_turn("I like Python a lot")))
    worker.start()
    assert llm.entered.wait(5)
    with pytest.raises(SessionBusy):
        session.submit_turn("Second answer at the same time")
    gate.set()
    worker.join(5)
    assert len(results) == 1
    assert [t.speaker for t in session.record.history] == ["ai", "candidate", "ai"]


def test_turn_token_replays_result(service):
    started = service.start_session(CandidateProfile(name="Ana", position="Engineer"))
    llm = service.providers.generation.backends[0]
    first = service.submit_turn(started.session_id, SCENARIO_B, turn_token="t-1")
    calls = len(llm.calls)
    again = service.submit_turn(started.session_id, SCENARIO_B, turn_token="t-1")
    assert again == first
    assert len(llm.calls) == calls
    assert service.get_session(started.session_id).turn_count == 3


def test_pause_resume_and_turns(make_session):
    session = make_session()
    session.start()
    assert session.pause().status == "paused"
    with pytest.raises(SessionNotActive):
        session.submit_turn("Still here")
    with pytest.raises(InvalidStateTransition):
        session.pause()
    assert session.resume().status == "active"
    session.submit_turn("Back again with more about my project")


def test_paused_session_can_end(make_session):
    session = make_session()
    session.start()
    session.pause()
    session.end()
    assert session.status == "completed"


def test_terminal_sessions_reject_transitions(make_session):
    session = make_session()
    session.start()
    session.end()
    with pytest.raises(InvalidStateTransition):
        session.pause()
    with pytest.raises(InvalidStateTransition):
        session.resume()
    with pytest.raises(InvalidStateTransition):
        session.end()
    with pytest.raises(InvalidStateTransition):
        session.abandon()
    with pytest.raises(SessionNotActive):
        session.add_score(ScoreRecord(category="overall", score=5.0))


def test_abandon_freezes_score(make_session):
    store = InMemorySessionStore()
    session = make_session(store=store)
    session.start()
    session.submit_turn(SCENARIO_B)
    snapshot = session.abandon()
    assert snapshot.status == "abandoned"
    assert snapshot.final_score == session.record.scores[0].score
    assert store.find("s-1").status == "abandoned"


def test_late_reply_is_discarded_after_abandon(make_session, make_suite, fake_backend):
    llm = fake_backend("gated-llm", ["Tell me more."])
    session = make_session(suite=make_suite(generation=[llm]))
    session.start()

    llm.gate = threading.Event()
    errors = []

    def run():
        try:
            session.submit_turn("My answer about the project")
        except SessionNotActive as exc:
            errors.append(exc)

    worker = threading.Thread(target=run)
    worker.start()
    assert llm.entered.wait(5)
    session.abandon()
    llm.gate.set()
    worker.join(5)
    assert len(errors) == 1
    # The candidate answer was recorded; the reply never was.
    assert [t.speaker for t in session.record.history] == ["ai", "candidate"]


def test_intervention_becomes_reply_context(make_session, make_suite, fake_backend):
    store = InMemorySessionStore()
    llm = fake_backend("llm", ["Noted."])
    session = make_session(store=store, suite=make_suite(generation=[llm]))
    session.start()
    session.intervene("Ask about their testing strategy")
    assert session.record.flags.admin_intervention is True
    assert store.find("s-1").flags.admin_intervention is True

    session.submit_turn("I write unit tests for every API")
    context = llm.calls[-1].context
    assert {"role": "user", "content": "[Interviewer note] Ask about their testing strategy"} in context
    assert context[-1]["role"] == "user"


def test_degraded_media_sets_technical_issues(make_session, make_suite):
    session = make_session(suite=make_suite())
    result = session.start()
    assert session.record.flags.technical_issues is True
    assert result.audio_ref.startswith("https://demo-audio.elevenlabs.com/")
    assert result.video_ref.startswith("https://demo-videos.heygen.com/")


def test_demo_mode_is_not_a_technical_issue(make_session, make_suite):
    session = make_session(suite=make_suite(demo_mode=True))
    session.start()
    assert session.record.flags.technical_issues is False


def test_failed_candidate_write_leaves_history_unchanged(make_session):
    store = FlakyStore()
    session = make_session(store=store)
    session.start()
    store.fail_candidate_turns = True
    with pytest.raises(PersistenceError):
        session.submit_turn(SCENARIO_B)
    assert len(session.record.history) == 1
    assert session.record.scores == []


def test_failed_score_write_still_replies(make_session):
    store = FlakyStore()
    session = make_session(store=store)
    session.start()
    store.fail_scores = True
    result = session.submit_turn(SCENARIO_B)
    assert result.reply_text
    assert len(session.record.scores) == 1
    assert store.find("s-1").scores == []


def test_snapshot_is_a_copy(make_session):
    session = make_session()
    session.start()
    snapshot = session.snapshot()
    snapshot.session.history.clear()
    assert len(session.record.history) == 1
    assert snapshot.turn_count == 1


def test_cancelled_turn_does_not_flag_technical_issues(make_session, make_suite, fake_backend):
    tts = fake_backend("gated-tts", ["/uploads/audio/audio_a.mp3"])
    avatar = fake_backend("avatar", ["/uploads/video/video_a.mp4"])
    session = make_session(suite=make_suite(generation=[fake_backend("llm", ["Go on."])], synthesis=[tts], avatar=[avatar]))
    session.start()
    assert session.record.flags.technical_issues is False

    tts.gate = threading.Event()
    errors = []

    def run():
        try:
            session.submit_turn("My answer about the project")
        except SessionNotActive as exc:
            errors.append(exc)

    worker = threading.Thread(target=run)
    worker.start()
    assert tts.entered.wait(5)
    session.abandon()
    tts.gate.set()
    worker.join(5)

    # The avatar call after abandon went to the fallback; that is not a vendor failure.
    assert len(errors) == 1
    assert [call.text for call in avatar.calls] == [session.record.history[0].message]
    assert session.status == "abandoned"
    assert session.record.flags.technical_issues is False


def test_turn_token_is_not_rescored_after_pause(make_session, make_suite, fake_backend):
    llm = fake_backend("gated-llm", ["Tell me more."])
    session = make_session(suite=make_suite(generation=[llm]))
    session.start()

    llm.gate = threading.Event()
    errors = []

    def run():
        try:
            session.submit_turn(SCENARIO_B, turn_token="t-1")
        except SessionNotActive as exc:
            errors.append(exc)

    worker = threading.Thread(target=run)
    worker.start()
    assert llm.entered.wait(5)
    with pytest.raises(SessionBusy):
        session.submit_turn(SCENARIO_B, turn_token="t-1")
    session.pause()
    llm.gate.set()
    worker.join(5)
    assert len(errors) == 1
    assert len(session.record.scores) == 1

    session.resume()
    with pytest.raises(DuplicateTurn):
        session.submit_turn(SCENARIO_B, turn_token="t-1")
    assert len(session.record.scores) == 1
    assert [t.speaker for t in session.record.history] == ["ai", "candidate"]
