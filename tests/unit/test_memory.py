from interview.analyzer import analyze
from interview.memory import ConversationMemory
from interview.types import ConversationTurn


def _fill(memory: ConversationMemory, count: int) -> None:
    for idx in range(count):
        text = f"Answer {idx} about my python project, I love it"
        memory.append(ConversationTurn(speaker="candidate", message=text), analyze(text))


def test_recent_context_returns_last_turns():
    memory = ConversationMemory()
    _fill(memory, 25)
    recent = memory.recent_context(6)
    assert [t.message for t in recent] == [f"Answer {i} about my python project, I love it" for i in range(19, 25)]
    assert len(memory.full_context()) == 25


def test_feature_window_is_bounded():
    memory = ConversationMemory(window=20)
    _fill(memory, 25)
    assert len(memory.entries()) == 20
    assert len(memory) == 25


def test_transcript_is_shared_with_owner():
    history = []
    memory = ConversationMemory(history)
    memory.append(ConversationTurn(speaker="ai", message="Welcome"))
    assert history[0].message == "Welcome"
    assert memory.entries() == []


def test_topics_and_strengths():
    memory = ConversationMemory()
    _fill(memory, 2)
    topics = memory.topics_covered()
    assert "project" in topics
    assert "python" in topics
    assert len(topics) == len(set(topics))
    assert "project" in memory.strengths()
    assert memory.sentiment_history() == ["positive", "positive"]
