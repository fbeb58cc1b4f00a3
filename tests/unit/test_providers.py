import threading

import httpx
import pytest

from interview.errors import ProviderExhausted
from providers.base import DEMO_BACKEND, BackendError, ProviderAdapter
from providers.demo import CLOSING_TEXT, FALLBACK_REPLIES, demo_generation, demo_synthesis, welcome_text
from providers.generation import GenerationRequest
from providers.speech import SynthesisRequest


def _reply(prompt="How did it go?"):
    return GenerationRequest(purpose="reply", prompt=prompt)


def test_first_available_backend_serves(fake_backend):
    first = fake_backend("a", ["from a"])
    second = fake_backend("b", ["from b"])
    adapter = ProviderAdapter("generation", [first, second], demo_generation)
    artifact = adapter.invoke(_reply())
    assert artifact.value == "from a"
    assert artifact.backend == "a"
    assert artifact.degraded is False
    assert second.calls == []


def test_failing_backend_falls_through(fake_backend):
    broken = fake_backend("a", error=BackendError("boom", backend="a"))
    timeout = fake_backend("b", error=httpx.ReadTimeout("slow"))
    working = fake_backend("c", ["from c"])
    adapter = ProviderAdapter("generation", [broken, timeout, working], demo_generation)
    assert adapter.invoke(_reply()).backend == "c"
    assert len(broken.calls) == 1
    assert len(timeout.calls) == 1


def test_unavailable_backends_are_skipped(fake_backend):
    missing = fake_backend("a", available=False)
    working = fake_backend("b", ["from b"])
    adapter = ProviderAdapter("generation", [missing, working], demo_generation)
    assert adapter.invoke(_reply()).value == "from b"
    assert missing.calls == []


def test_empty_result_counts_as_failure(fake_backend):
    blank = fake_backend("a", ["   "])
    adapter = ProviderAdapter("generation", [blank], demo_generation)
    artifact = adapter.invoke(_reply())
    assert artifact.backend == DEMO_BACKEND
    assert artifact.value in FALLBACK_REPLIES


def test_demo_placeholder_is_degraded(fake_backend):
    adapter = ProviderAdapter("synthesis", [fake_backend("a", available=False)], demo_synthesis)
    artifact = adapter.invoke(SynthesisRequest(text="Hello", persona_id="john-technical-lead"))
    assert artifact.degraded is True
    assert artifact.value == "https://demo-audio.elevenlabs.com/john-interview.mp3"


def test_demo_mode_skips_vendors(fake_backend):
    vendor = fake_backend("a", ["real"])
    adapter = ProviderAdapter("generation", [vendor], demo_generation, demo_mode=True)
    artifact = adapter.invoke(GenerationRequest(purpose="closing", prompt="bye"))
    assert artifact.value == CLOSING_TEXT
    assert artifact.degraded is False
    assert vendor.calls == []


def test_cancelled_call_goes_straight_to_fallback(fake_backend):
    vendor = fake_backend("a", ["real"])
    cancel = threading.Event()
    cancel.set()
    adapter = ProviderAdapter("generation", [vendor], demo_generation)
    assert adapter.invoke(_reply(), cancel=cancel).backend == DEMO_BACKEND
    assert vendor.calls == []


def test_exhausted_when_fallback_fails(fake_backend):
    def broken(request):
        raise RuntimeError("no demo either")

    adapter = ProviderAdapter("avatar", [fake_backend("a", error=BackendError("x"))], broken)
    with pytest.raises(ProviderExhausted):
        adapter.invoke(object())
    with pytest.raises(ProviderExhausted):
        ProviderAdapter("avatar", [], lambda request: "").invoke(object())


def test_programming_errors_are_not_swallowed(fake_backend):
    adapter = ProviderAdapter("generation", [fake_backend("a", error=TypeError("bug"))], demo_generation)
    with pytest.raises(TypeError):
        adapter.invoke(_reply())


def test_demo_generation_is_deterministic():
    assert demo_generation(_reply("same prompt")) == demo_generation(_reply("same prompt"))
    welcome = demo_generation(
        GenerationRequest(purpose="welcome", prompt="hi", candidate_name="Ana", position="Engineer", persona_name="John")
    )
    assert welcome == welcome_text("Ana", "Engineer", "John")
    assert "Ana" in welcome


def test_health_reports_backends(fake_backend):
    adapter = ProviderAdapter("generation", [fake_backend("a"), fake_backend("b", available=False)], demo_generation)
    assert adapter.health() == {
        "capability": "generation",
        "demo_mode": False,
        "backends": [{"id": "a", "available": True}, {"id": "b", "available": False}],
    }
