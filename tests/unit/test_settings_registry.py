from pathlib import Path

import pytest

from config.providers import DEFAULT_PROVIDERS, build_provider_config, load_provider_config
from config.registry import backend_key, bind_backend, get_backend, registered_backends
from config.settings import Settings
from providers.factory import build_providers
from providers.generation import GeminiBackend

ROOT = Path(__file__).resolve().parents[2]


def test_settings_defaults():
    settings = Settings(_env_file=None)
    assert settings.DB_PATH.endswith(".db")
    assert settings.RECENT_CONTEXT_TURNS == 6
    assert settings.MEMORY_WINDOW == 20
    assert settings.PASS_THRESHOLD == 7.0
    assert settings.DEMO_MODE_ENABLED is False


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("DEMO_MODE_ENABLED", "true")
    monkeypatch.setenv("MAX_MESSAGE_CHARS", "200")
    settings = Settings(_env_file=None)
    assert settings.DEMO_MODE_ENABLED is True
    assert settings.MAX_MESSAGE_CHARS == 200


def test_registry_bind_and_retrieve():
    marker = object()
    bind_backend("generation.test-marker", lambda *_, **__: marker)
    assert get_backend("generation.test-marker")() is marker
    assert "generation.gemini" in registered_backends()
    with pytest.raises(KeyError):
        get_backend("avatar.unknown")


def test_yaml_matches_builtin_defaults():
    from_file = load_provider_config(ROOT / "config" / "providers.yaml", environ={})
    builtin = build_provider_config(DEFAULT_PROVIDERS, environ={})
    assert from_file == builtin


def test_missing_file_uses_defaults(tmp_path):
    config = load_provider_config(tmp_path / "nope.yaml", environ={})
    assert [r.id for r in config.for_capability("avatar").backends] == ["did", "heygen"]


def test_credentials_resolved_from_environment():
    config = build_provider_config(
        DEFAULT_PROVIDERS,
        environ={"GEMINI_API_KEY": "real-key", "OPENAI_API_KEY": "your_openai_key_here", "DEEPGRAM_API_KEY": " "},
    )
    generation = config.for_capability("generation")
    assert [r.id for r in generation.configured()] == ["gemini"]
    assert config.for_capability("recognition").configured() == []


def test_demo_mode_override():
    assert build_provider_config({"demo_mode": False}, environ={}, demo_mode=True).demo_mode is True
    assert build_provider_config({"demo_mode": True}, environ={}).demo_mode is True


def test_build_providers_orders_backends(test_settings, content_store):
    config = build_provider_config(DEFAULT_PROVIDERS, environ={"GEMINI_API_KEY": "k"})
    suite = build_providers(config, settings=test_settings, store=content_store)
    generation = suite.generation.backends
    assert [b.id for b in generation] == ["gemini", "openai"]
    assert isinstance(generation[0], GeminiBackend)
    assert generation[0].available() and not generation[1].available()
    assert [h["capability"] for h in suite.health()] == ["generation", "synthesis", "recognition", "avatar"]


def test_unknown_backend_fails_at_build(test_settings, content_store):
    data = {"capabilities": {"avatar": {"backends": [{"id": "synthesia", "base_url": "https://x.test"}]}}}
    with pytest.raises(KeyError):
        build_providers(build_provider_config(data, environ={}), settings=test_settings, store=content_store)
    assert backend_key("avatar", "did") == "avatar.did"
