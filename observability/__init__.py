"""Event logging and timing spans for interview sessions and provider calls."""
from .logger import log_event
from .tracing import span

__all__ = ["log_event", "span"]
