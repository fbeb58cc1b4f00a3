"""Capability adapters with ordered backend fallback and a demo terminal."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Generic, List, Optional, Protocol, Sequence, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict

from interview.errors import ProviderExhausted
from observability import log_event

logger = logging.getLogger(__name__)

DEMO_BACKEND = "demo"

Req = TypeVar("Req", contravariant=True)
R = TypeVar("R")


class BackendError(RuntimeError):
    """A single backend failed; the adapter moves on to the next one."""

    def __init__(self, message: str, *, backend: str = "") -> None:
        super().__init__(message)
        self.backend = backend


class MalformedPayload(BackendError):
    pass


class JobFailed(BackendError):
    pass


class PollTimeout(BackendError):
    pass


class PollCancelled(BackendError):
    pass


class Artifact(BaseModel):
    """Adapter output: a text or a content reference plus where it came from."""

    model_config = ConfigDict(frozen=True)

    value: str
    backend: str
    degraded: bool = False


class Backend(Protocol[Req]):
    id: str

    def available(self) -> bool:  # pragma: no cover - protocol
        ...

    def invoke(self, request: Req, cancel: Optional[threading.Event] = None) -> str:  # pragma: no cover - protocol
        ...


class ProviderAdapter(Generic[R]):
    """Try each configured backend in order, then the deterministic fallback.

    Backends without credentials are skipped. In demo mode, or once the
    cancel event is set, only the fallback runs. The adapter never
    returns an empty value; if even the fallback fails it raises
    :class:`ProviderExhausted`.
    """

    def __init__(
        self,
        capability: str,
        backends: Sequence[Backend],
        fallback: Callable[[R], str],
        *,
        demo_mode: bool = False,
    ) -> None:
        self.capability = capability
        self.backends: List[Backend] = list(backends)
        self._fallback = fallback
        self.demo_mode = demo_mode

    def invoke(
        self,
        request: R,
        *,
        cancel: Optional[threading.Event] = None,
        session_id: Optional[str] = None,
    ) -> Artifact:
        if not self.demo_mode:
            for backend in self.backends:
                if cancel is not None and cancel.is_set():
                    break
                if not backend.available():
                    continue
                try:
                    value = backend.invoke(request, cancel)
                except (BackendError, httpx.HTTPError) as exc:
                    log_event(
                        "provider_fallback",
                        session_id,
                        level=logging.WARNING,
                        capability=self.capability,
                        backend=backend.id,
                        error=str(exc),
                    )
                    continue
                if not value or not str(value).strip():
                    log_event(
                        "provider_fallback",
                        session_id,
                        level=logging.WARNING,
                        capability=self.capability,
                        backend=backend.id,
                        error="empty result",
                    )
                    continue
                log_event("provider_served", session_id, capability=self.capability, backend=backend.id, outcome="ok")
                return Artifact(value=str(value).strip(), backend=backend.id)

        try:
            value = self._fallback(request)
        except Exception as exc:  # fallback must never leak a raw error
            raise ProviderExhausted(
                f"All {self.capability} backends failed",
                details={"capability": self.capability, "error": str(exc)},
            ) from exc
        if not value:
            raise ProviderExhausted(f"All {self.capability} backends failed", details={"capability": self.capability})
        log_event("provider_served", session_id, capability=self.capability, backend=DEMO_BACKEND, outcome="fallback")
        return Artifact(value=value, backend=DEMO_BACKEND, degraded=not self.demo_mode)

    def health(self) -> Dict[str, object]:
        return {
            "capability": self.capability,
            "demo_mode": self.demo_mode,
            "backends": [{"id": backend.id, "available": backend.available()} for backend in self.backends],
        }


__all__ = [
    "Artifact",
    "Backend",
    "BackendError",
    "DEMO_BACKEND",
    "JobFailed",
    "MalformedPayload",
    "PollCancelled",
    "PollTimeout",
    "ProviderAdapter",
]
