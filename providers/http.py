"""Shared HTTP plumbing for vendor backends."""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

import httpx

from config.providers import BackendRoute

from .base import BackendError, MalformedPayload
from .content_store import ContentStore
from .polling import poll_job

logger = logging.getLogger(__name__)


def dig(data: Any, *path: Any, backend: str = "") -> Any:
    """Walk ``path`` through nested dicts/lists or raise :class:`MalformedPayload`."""

    current = data
    for key in path:
        try:
            current = current[key]
        except (KeyError, IndexError, TypeError) as exc:
            raise MalformedPayload(f"missing {key!r} in payload", backend=backend) from exc
    if current is None:
        raise MalformedPayload(f"null value at {path!r}", backend=backend)
    return current


class HttpBackend:
    """Base for vendor integrations reached over HTTP.

    Subclasses implement ``invoke(request, cancel=None)`` and use the helpers
    below, which turn transport problems into :class:`BackendError` so the
    adapter can fall through to the next backend.
    """

    capability = ""

    def __init__(
        self,
        route: BackendRoute,
        *,
        client: Optional[httpx.Client] = None,
        store: Optional[ContentStore] = None,
        timeout_s: float = 30.0,
        max_polls: int = 30,
        poll_interval_s: float = 1.0,
        poll_backoff: float = 1.0,
    ) -> None:
        self.route = route
        self.id = route.id
        self._client = client
        self._store = store
        self._timeout_s = route.timeout_s or timeout_s
        self._max_polls = max_polls
        self._poll_interval_s = poll_interval_s
        self._poll_backoff = poll_backoff

    def available(self) -> bool:
        return self.route.credentials_available

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------
    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout_s)
        return self._client

    def _url(self, path: str) -> str:
        return f"{self.route.base_url.rstrip('/')}{path}"

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = dict(self.route.extra_headers)
        if extra:
            headers.update(extra)
        return headers

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        kwargs.setdefault("timeout", self._timeout_s)
        response = self._http().request(method, url, **kwargs)
        # Redirects are not followed, so a 3xx is as much a failure as a 4xx/5xx.
        if not response.is_success:
            raise BackendError(f"{self.id} returned status {response.status_code}", backend=self.id)
        return response

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedPayload(f"{self.id} payload was not JSON", backend=self.id) from exc

    def _object(self, response: httpx.Response) -> Dict[str, Any]:
        data = self._json(response)
        if not isinstance(data, dict):
            raise MalformedPayload(
                f"{self.id} payload was {type(data).__name__}, expected an object", backend=self.id
            )
        return data

    def _dig(self, data: Any, *path: Any) -> Any:
        return dig(data, *path, backend=self.id)

    def _poll(self, check, *, cancel: Optional[threading.Event]) -> Any:
        return poll_job(
            check,
            max_polls=self._max_polls,
            interval_s=self._poll_interval_s,
            backoff=self._poll_backoff,
            cancel=cancel,
            backend=self.id,
        )

    def _download(self, url: str) -> bytes:
        response = self._send("GET", url)
        if not response.content:
            raise MalformedPayload(f"{self.id} returned an empty artifact", backend=self.id)
        return response.content

    def _persist(self, data: bytes, *, kind: str, suffix: str) -> str:
        if self._store is None:
            raise BackendError(f"{self.id} has no content store configured", backend=self.id)
        return self._store.save(data, kind=kind, suffix=suffix)


__all__ = ["HttpBackend", "dig"]
