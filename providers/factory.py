"""Assemble capability adapters from provider configuration."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict

from config.providers import Capability, ProviderConfig
from config.registry import backend_key, bind_backend, get_backend
from config.settings import Settings

from .avatar import DIDBackend, HeyGenBackend
from .base import ProviderAdapter
from .content_store import ContentStore
from .demo import demo_avatar, demo_generation, demo_recognition, demo_synthesis
from .generation import GeminiBackend, OpenAIChatBackend
from .speech import AssemblyAIBackend, DeepgramBackend, ElevenLabsBackend, PlayHTBackend

logger = logging.getLogger(__name__)

_FALLBACKS = {
    "generation": demo_generation,
    "synthesis": demo_synthesis,
    "recognition": demo_recognition,
    "avatar": demo_avatar,
}


def register_default_backends() -> None:
    bind_backend(backend_key("generation", "gemini"), GeminiBackend)
    bind_backend(backend_key("generation", "openai"), OpenAIChatBackend)
    bind_backend(backend_key("synthesis", "playht"), PlayHTBackend)
    bind_backend(backend_key("synthesis", "elevenlabs"), ElevenLabsBackend)
    bind_backend(backend_key("recognition", "assemblyai"), AssemblyAIBackend)
    bind_backend(backend_key("recognition", "deepgram"), DeepgramBackend)
    bind_backend(backend_key("avatar", "did"), DIDBackend)
    bind_backend(backend_key("avatar", "heygen"), HeyGenBackend)


register_default_backends()


class ProviderSuite(BaseModel):
    """The four capability adapters an interview session talks to."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    generation: ProviderAdapter
    synthesis: ProviderAdapter
    recognition: ProviderAdapter
    avatar: ProviderAdapter

    def health(self) -> List[Dict[str, object]]:
        return [adapter.health() for adapter in (self.generation, self.synthesis, self.recognition, self.avatar)]


def _limits(capability: Capability, settings: Settings) -> Dict[str, Any]:
    timeouts = {
        "generation": settings.GENERATION_TIMEOUT_S,
        "synthesis": settings.SYNTHESIS_TIMEOUT_S,
        "recognition": settings.RECOGNITION_TIMEOUT_S,
        "avatar": settings.AVATAR_TIMEOUT_S,
    }
    polls = {
        "generation": 1,
        "synthesis": settings.SYNTHESIS_MAX_POLLS,
        "recognition": settings.TRANSCRIPTION_MAX_POLLS,
        "avatar": settings.VIDEO_MAX_POLLS,
    }
    return {
        "timeout_s": timeouts[capability],
        "max_polls": polls[capability],
        "poll_interval_s": settings.POLL_INTERVAL_S,
        "poll_backoff": settings.POLL_BACKOFF,
    }


def build_adapter(
    capability: Capability,
    config: ProviderConfig,
    *,
    settings: Settings,
    store: ContentStore,
    client: Optional[httpx.Client] = None,
) -> ProviderAdapter:
    backends = []
    for route in config.for_capability(capability).backends:
        factory = get_backend(backend_key(capability, route.id))
        backends.append(factory(route, client=client, store=store, **_limits(capability, settings)))
    logger.info(
        "%s adapter: %s (demo_mode=%s)",
        capability,
        ", ".join(f"{b.id}{'' if b.available() else ' [no key]'}" for b in backends) or "no backends",
        config.demo_mode,
    )
    return ProviderAdapter(capability, backends, _FALLBACKS[capability], demo_mode=config.demo_mode)


def build_providers(
    config: ProviderConfig,
    *,
    settings: Settings,
    store: ContentStore,
    client: Optional[httpx.Client] = None,
) -> ProviderSuite:
    """Build every adapter; unknown backend ids fail here rather than mid-interview."""

    return ProviderSuite(
        generation=build_adapter("generation", config, settings=settings, store=store, client=client),
        synthesis=build_adapter("synthesis", config, settings=settings, store=store, client=client),
        recognition=build_adapter("recognition", config, settings=settings, store=store, client=client),
        avatar=build_adapter("avatar", config, settings=settings, store=store, client=client),
    )


__all__ = ["ProviderSuite", "build_adapter", "build_providers", "register_default_backends"]
