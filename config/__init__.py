"""Configuration package for the interview orchestrator."""
from .providers import (
    CAPABILITIES,
    BackendRoute,
    CapabilityConfig,
    ProviderConfig,
    build_provider_config,
    load_provider_config,
)
from .registry import backend_key, bind_backend, get_backend
from .settings import Settings, settings

__all__ = [
    "CAPABILITIES",
    "BackendRoute",
    "CapabilityConfig",
    "ProviderConfig",
    "build_provider_config",
    "load_provider_config",
    "backend_key",
    "bind_backend",
    "get_backend",
    "Settings",
    "settings",
]
