"""Provider configuration schema for the capability adapters."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

Capability = Literal["generation", "synthesis", "recognition", "avatar"]
CAPABILITIES: Tuple[Capability, ...] = ("generation", "synthesis", "recognition", "avatar")

DEFAULT_PROVIDERS: Dict[str, Any] = {
    "demo_mode": False,
    "capabilities": {
        "generation": {
            "backends": [
                {
                    "id": "gemini",
                    "base_url": "https://generativelanguage.googleapis.com/v1beta",
                    "model": "gemini-1.5-flash",
                    "api_key_env": "GEMINI_API_KEY",
                },
                {
                    "id": "openai",
                    "base_url": "https://api.openai.com/v1",
                    "endpoint": "/chat/completions",
                    "model": "gpt-3.5-turbo",
                    "api_key_env": "OPENAI_API_KEY",
                },
            ]
        },
        "synthesis": {
            "backends": [
                {
                    "id": "playht",
                    "base_url": "https://api.play.ht/api/v2",
                    "api_key_env": "PLAYHT_API_KEY",
                    "options": {"user_id_env": "PLAYHT_USER_ID"},
                },
                {
                    "id": "elevenlabs",
                    "base_url": "https://api.elevenlabs.io/v1",
                    "model": "eleven_monolingual_v1",
                    "api_key_env": "ELEVENLABS_API_KEY",
                },
            ]
        },
        "recognition": {
            "backends": [
                {
                    "id": "assemblyai",
                    "base_url": "https://api.assemblyai.com/v2",
                    "api_key_env": "ASSEMBLYAI_API_KEY",
                },
                {
                    "id": "deepgram",
                    "base_url": "https://api.deepgram.com/v1",
                    "model": "nova-2",
                    "api_key_env": "DEEPGRAM_API_KEY",
                },
            ]
        },
        "avatar": {
            "backends": [
                {
                    "id": "did",
                    "base_url": "https://api.d-id.com",
                    "api_key_env": "D_ID_API_KEY",
                },
                {
                    "id": "heygen",
                    "base_url": "https://api.heygen.com",
                    "api_key_env": "HEYGEN_API_KEY",
                },
            ]
        },
    },
}


class BackendRoute(BaseModel):  # One vendor integration for a capability
    model_config = ConfigDict(frozen=True)

    id: str
    base_url: str
    endpoint: Optional[str] = None
    model: Optional[str] = None
    api_key_env: Optional[str] = None
    timeout_s: Optional[float] = Field(default=None, ge=0.1)
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    options: Dict[str, Any] = Field(default_factory=dict)
    credentials_available: bool = False

    def api_key(self) -> Optional[str]:
        if not self.api_key_env:
            return None
        return _usable_secret(os.getenv(self.api_key_env))


class CapabilityConfig(BaseModel):  # Ordered backend list for one capability family
    model_config = ConfigDict(frozen=True)

    capability: Capability
    backends: Tuple[BackendRoute, ...] = ()

    def configured(self) -> List[BackendRoute]:
        return [route for route in self.backends if route.credentials_available]


class ProviderConfig(BaseModel):  # Root of the provider configuration
    model_config = ConfigDict(frozen=True)

    demo_mode: bool = False
    capabilities: Dict[str, CapabilityConfig] = Field(default_factory=dict)

    def for_capability(self, capability: Capability) -> CapabilityConfig:
        return self.capabilities.get(capability) or CapabilityConfig(capability=capability)


def _usable_secret(value: Optional[str]) -> Optional[str]:
    if not value or not value.strip():
        return None
    if value.strip().lower().startswith("your_"):
        return None
    return value.strip()


def _load_yaml(path: Path) -> Dict[str, Any]:
    import yaml  # local import to avoid mandatory dependency until used

    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def build_provider_config(
    data: Mapping[str, Any],
    *,
    environ: Optional[Mapping[str, str]] = None,
    demo_mode: Optional[bool] = None,
) -> ProviderConfig:
    """Validate raw configuration and resolve credential availability once."""

    env = os.environ if environ is None else environ
    capabilities: Dict[str, CapabilityConfig] = {}
    raw_caps = data.get("capabilities") or {}
    for capability in CAPABILITIES:
        raw = raw_caps.get(capability) or {}
        routes: List[BackendRoute] = []
        for entry in raw.get("backends") or []:
            key_env = entry.get("api_key_env")
            has_key = bool(_usable_secret(env.get(key_env))) if key_env else False
            routes.append(BackendRoute(**{**entry, "credentials_available": has_key}))
        capabilities[capability] = CapabilityConfig(capability=capability, backends=tuple(routes))
    resolved_demo = bool(data.get("demo_mode", False)) if demo_mode is None else demo_mode
    return ProviderConfig(demo_mode=resolved_demo, capabilities=capabilities)


def load_provider_config(
    path: Path,
    *,
    environ: Optional[Mapping[str, str]] = None,
    demo_mode: Optional[bool] = None,
) -> ProviderConfig:
    """Load provider routes from YAML, falling back to the built-in defaults."""

    try:
        data = _load_yaml(path)
    except FileNotFoundError:
        data = DEFAULT_PROVIDERS
    return build_provider_config(data, environ=environ, demo_mode=demo_mode)


__all__ = [
    "BackendRoute",
    "CAPABILITIES",
    "Capability",
    "CapabilityConfig",
    "DEFAULT_PROVIDERS",
    "ProviderConfig",
    "build_provider_config",
    "load_provider_config",
]
