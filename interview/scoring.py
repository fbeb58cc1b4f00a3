"""Weighted rubric that turns answer features into a 1-10 score."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from .memory import MemoryEntry, mean_length
from .types import Features, ScoreRecord

MIN_SCORE = 1.0
MAX_SCORE = 10.0

WEIGHTS: Dict[str, float] = {
    "responseLength": 0.20,
    "keywordRelevance": 0.25,
    "specificExamples": 0.20,
    "communicationClarity": 0.15,
    "technicalAccuracy": 0.10,
    "enthusiasmIndicators": 0.10,
}

BRIEF_CHARS = 50
LOW_SPECIFICITY = 0.5

FEEDBACK_BRIEF = "Consider providing more detailed responses"
FEEDBACK_SPECIFIC = "Include specific examples to strengthen your answers"
FEEDBACK_POSITIVE = "Good enthusiasm and positive attitude"
FEEDBACK_TECHNICAL = "Strong technical knowledge demonstrated"
FEEDBACK_SHRINKING = "Your answers are getting shorter, keep elaborating"


class ScoreResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: float
    feedback: str
    factors: Dict[str, float]

    def to_record(self, category: str = "overall") -> ScoreRecord:
        return ScoreRecord(category=category, score=self.value, feedback=self.feedback, factors=dict(self.factors))


def round1(value: float) -> float:
    """Round half-up to one decimal, ignoring binary float noise."""
    return float(Decimal(repr(round(value, 9))).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def clamp(value: float, low: float = MIN_SCORE, high: float = MAX_SCORE) -> float:
    return max(low, min(high, value))


def score_length(length: int) -> float:
    if length < 30:
        return 3.0
    if length < 100:
        return 6.0
    if length < 300:
        return 9.0
    return 7.0


def score_keywords(count: int) -> float:
    return float(min(10, count * 2))


def score_examples(present: bool) -> float:
    return 8.0 if present else 4.0


def score_clarity(avg_sentence_words: float) -> float:
    if avg_sentence_words < 10:
        return 8.0
    if avg_sentence_words < 20:
        return 9.0
    return 6.0


def score_technical(count: int) -> float:
    return float(min(10, count * 3))


def score_enthusiasm(count: int) -> float:
    return float(min(10, count * 3 + 5))


class ScoringEngine:
    """Auditable weighted rubric over :class:`Features`."""

    def __init__(self, weights: Optional[Dict[str, float]] = None) -> None:
        self.weights = dict(weights or WEIGHTS)

    def factors(self, features: Features) -> Dict[str, float]:
        return {
            "responseLength": score_length(features.char_length),
            "keywordRelevance": score_keywords(len(features.keywords)),
            "specificExamples": score_examples(features.has_examples),
            "communicationClarity": score_clarity(features.avg_sentence_words),
            "technicalAccuracy": score_technical(len(features.technical_terms)),
            "enthusiasmIndicators": score_enthusiasm(features.enthusiasm_count),
        }

    def feedback(self, features: Features, prior: Optional[Sequence[MemoryEntry]] = None) -> str:
        notes: List[str] = []
        if features.char_length < BRIEF_CHARS:
            notes.append(FEEDBACK_BRIEF)
        if features.specificity < LOW_SPECIFICITY:
            notes.append(FEEDBACK_SPECIFIC)
        if features.sentiment == "positive":
            notes.append(FEEDBACK_POSITIVE)
        if features.technical_terms:
            notes.append(FEEDBACK_TECHNICAL)
        if prior and features.char_length < mean_length(prior) / 2:
            notes.append(FEEDBACK_SHRINKING)
        return ". ".join(notes)

    def score(self, features: Features, prior: Optional[Sequence[MemoryEntry]] = None) -> ScoreResult:
        factors = self.factors(features)
        total = sum(self.weights.get(name, 0.0) * value for name, value in factors.items())
        return ScoreResult(
            value=clamp(round1(total)),
            feedback=self.feedback(features, prior),
            factors=factors,
        )


def final_score(records: Iterable[ScoreRecord]) -> Optional[float]:
    """Arithmetic mean of ``overall`` records rounded to one decimal."""

    overall = [record.score for record in records if record.category == "overall"]
    if not overall:
        return None
    return clamp(round1(sum(overall) / len(overall)))


__all__ = [
    "ScoreResult",
    "ScoringEngine",
    "WEIGHTS",
    "clamp",
    "final_score",
    "round1",
]
