"""Bounded, cancellable polling for job-based vendor APIs."""
from __future__ import annotations

import threading
from typing import Callable, Optional, TypeVar

from .base import PollCancelled, PollTimeout

T = TypeVar("T")


def poll_job(
    check: Callable[[], Optional[T]],
    *,
    max_polls: int,
    interval_s: float = 1.0,
    backoff: float = 1.0,
    max_interval_s: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
    backend: str = "",
) -> T:
    """Call ``check`` until it returns a value, at most ``max_polls`` times.

    ``check`` returns ``None`` while the job is pending and raises
    ``JobFailed`` when the vendor reports a failure. Waits between attempts
    start at ``interval_s`` and grow by ``backoff``; the cancel event is
    checked before every attempt and interrupts the wait.
    """

    event = cancel or threading.Event()
    wait = interval_s
    for attempt in range(max_polls):
        if event.is_set():
            raise PollCancelled(f"{backend} job cancelled", backend=backend)
        result = check()
        if result is not None:
            return result
        if attempt == max_polls - 1:
            break
        delay = wait if max_interval_s is None else min(wait, max_interval_s)
        if event.wait(delay):
            raise PollCancelled(f"{backend} job cancelled", backend=backend)
        wait *= backoff
    raise PollTimeout(f"{backend} job not ready after {max_polls} polls", backend=backend)


__all__ = ["poll_job"]
