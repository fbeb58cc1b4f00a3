"""In-memory backend registry for provider adapters."""
from typing import Any, Callable, Dict

_REGISTRY: Dict[str, Callable[..., Any]] = {}


def bind_backend(key: str, factory: Callable[..., Any]) -> None:
    """Bind a backend factory to a registry key such as ``generation.gemini``."""
    _REGISTRY[key] = factory


def get_backend(key: str) -> Callable[..., Any]:
    """Retrieve a backend factory from the registry.

    Raises:
        KeyError: If no factory has been bound for ``key``.
    """

    if key not in _REGISTRY:
        raise KeyError(f"Backend not bound in registry: {key}")
    return _REGISTRY[key]


def registered_backends() -> list[str]:
    return sorted(_REGISTRY)


def backend_key(capability: str, backend_id: str) -> str:
    return f"{capability}.{backend_id}"
