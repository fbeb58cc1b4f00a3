"""Bounded conversation memory for a single interview session."""
from __future__ import annotations

from collections import deque
from typing import Deque, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .types import ConversationTurn, Features, Sentiment

DEFAULT_RECENT_TURNS = 6
DEFAULT_MEMORY_WINDOW = 20


class MemoryEntry(BaseModel):
    """Derived per-answer facts kept for cross-turn context."""

    model_config = ConfigDict(frozen=True)

    keywords: List[str] = Field(default_factory=list)
    technical_terms: List[str] = Field(default_factory=list)
    sentiment: Sentiment = "neutral"
    specificity: float = 0.0
    length: int = 0
    has_examples: bool = False


class ConversationMemory:
    """Append-only transcript plus a compacted window of derived features.

    The transcript list is shared with the owning session record and is never
    trimmed; only the derived accumulator is capped at ``window`` entries.
    """

    def __init__(
        self,
        transcript: Optional[List[ConversationTurn]] = None,
        *,
        recent_turns: int = DEFAULT_RECENT_TURNS,
        window: int = DEFAULT_MEMORY_WINDOW,
    ) -> None:
        self._turns: List[ConversationTurn] = transcript if transcript is not None else []
        self._recent_turns = recent_turns
        self._entries: Deque[MemoryEntry] = deque(maxlen=window)

    def append(self, turn: ConversationTurn, features: Optional[Features] = None) -> None:
        self._turns.append(turn)
        if features is not None and turn.speaker == "candidate":
            self._entries.append(
                MemoryEntry(
                    keywords=list(features.keywords),
                    technical_terms=list(features.technical_terms),
                    sentiment=features.sentiment,
                    specificity=features.specificity,
                    length=features.char_length,
                    has_examples=features.has_examples,
                )
            )

    def recent_context(self, n: Optional[int] = None) -> List[ConversationTurn]:
        count = self._recent_turns if n is None else n
        if count <= 0:
            return []
        return list(self._turns[-count:])

    def full_context(self) -> List[ConversationTurn]:
        return list(self._turns)

    def entries(self) -> List[MemoryEntry]:
        return list(self._entries)

    def topics_covered(self) -> List[str]:
        return _unique(term for entry in self._entries for term in entry.keywords + entry.technical_terms)

    def strengths(self) -> List[str]:
        return _unique(
            term for entry in self._entries if entry.sentiment == "positive" for term in entry.keywords
        )

    def sentiment_history(self) -> List[Sentiment]:
        return [entry.sentiment for entry in self._entries]

    def __len__(self) -> int:
        return len(self._turns)


def _unique(items) -> List[str]:
    seen: set[str] = set()
    ordered: List[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


def mean_length(entries: Sequence[MemoryEntry]) -> float:
    if not entries:
        return 0.0
    return sum(entry.length for entry in entries) / len(entries)


__all__ = ["ConversationMemory", "MemoryEntry", "mean_length"]
