import os
import sys
import threading
from pathlib import Path
from typing import Iterable, List, Optional

import pytest

os.environ["ENABLE_FILE_LOGS"] = "0"

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.settings import Settings, settings
from providers.base import ProviderAdapter
from providers.content_store import ContentStore
from providers.demo import demo_avatar, demo_generation, demo_recognition, demo_synthesis
from providers.factory import ProviderSuite
from services.sessions import InterviewService
from storage.memory import InMemorySessionStore
from storage.migrate import migrate


class FakeBackend:
    """Scripted backend: returns replies in turn, raises ``error`` when set.

    With ``gate`` set, ``invoke`` signals ``entered`` and blocks until the
    gate opens, which lets tests hold a turn in flight.
    """

    def __init__(
        self,
        backend_id: str,
        replies: Iterable[str] = ("ok",),
        *,
        error: Optional[BaseException] = None,
        available: bool = True,
        gate: Optional[threading.Event] = None,
    ) -> None:
        self.id = backend_id
        self.replies: List[str] = list(replies)
        self.error = error
        self._available = available
        self.gate = gate
        self.entered = threading.Event()
        self.calls: List[object] = []

    def available(self) -> bool:
        return self._available

    def invoke(self, request, cancel=None):
        self.calls.append(request)
        if self.gate is not None:
            self.entered.set()
            self.gate.wait(5)
        if self.error is not None:
            raise self.error
        return self.replies[(len(self.calls) - 1) % len(self.replies)]


def build_suite(
    generation: Optional[list] = None,
    synthesis: Optional[list] = None,
    recognition: Optional[list] = None,
    avatar: Optional[list] = None,
    *,
    demo_mode: bool = False,
) -> ProviderSuite:
    return ProviderSuite(
        generation=ProviderAdapter("generation", generation or [], demo_generation, demo_mode=demo_mode),
        synthesis=ProviderAdapter("synthesis", synthesis or [], demo_synthesis, demo_mode=demo_mode),
        recognition=ProviderAdapter("recognition", recognition or [], demo_recognition, demo_mode=demo_mode),
        avatar=ProviderAdapter("avatar", avatar or [], demo_avatar, demo_mode=demo_mode),
    )


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch, tmp_path):
    db_path = str(tmp_path / "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    monkeypatch.setattr(settings, "CONTENT_DIR", str(tmp_path / "uploads"), raising=False)
    migrate(db_path)
    yield db_path


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DB_PATH=str(tmp_path / "test.db"),
        CONTENT_DIR=str(tmp_path / "uploads"),
        STORE_BACKEND="memory",
        DEMO_MODE_ENABLED=False,
        POLL_INTERVAL_S=0.0,
    )


@pytest.fixture
def content_store(tmp_path) -> ContentStore:
    return ContentStore(tmp_path / "uploads")


@pytest.fixture
def fake_backend():
    return FakeBackend


@pytest.fixture
def make_suite():
    return build_suite


@pytest.fixture
def fake_suite() -> ProviderSuite:
    return build_suite(
        generation=[FakeBackend("fake-llm", ["Great, tell me more about the hardest part of that project."])],
        synthesis=[FakeBackend("fake-tts", ["/uploads/audio/audio_fake.mp3"])],
        recognition=[FakeBackend("fake-stt", ["I built payment APIs with Python."])],
        avatar=[FakeBackend("fake-avatar", ["/uploads/video/video_fake.mp4"])],
    )


@pytest.fixture
def memory_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def service(fake_suite, memory_store, content_store, test_settings) -> InterviewService:
    return InterviewService(
        providers=fake_suite,
        store=memory_store,
        content=content_store,
        settings=test_settings,
    )
