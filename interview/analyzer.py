"""Deterministic lexical analysis of candidate answers."""
from __future__ import annotations

import re
from typing import Iterable, List, Sequence, Tuple

from .types import Features, Sentiment

KEYWORDS: Tuple[str, ...] = (
    "experience",
    "project",
    "team",
    "leadership",
    "problem",
    "solution",
    "technology",
    "skill",
    "challenge",
    "success",
    "failure",
    "learn",
    "improve",
    "develop",
    "manage",
    "collaborate",
    "communicate",
)

TECHNICAL_TERMS: Tuple[str, ...] = (
    "javascript",
    "python",
    "react",
    "node.js",
    "aws",
    "docker",
    "kubernetes",
    "agile",
    "scrum",
    "git",
    "api",
    "database",
    "frontend",
    "backend",
    "machine learning",
    "ai",
    "cloud",
    "devops",
    "ci/cd",
)

POSITIVE_WORDS = frozenset({"excited", "passionate", "love", "enjoy", "successful", "achieved", "improved"})
NEGATIVE_WORDS = frozenset({"difficult", "challenging", "failed", "struggled", "problem", "issue"})
ENTHUSIASM_WORDS = frozenset({"excited", "passionate", "love", "enjoy", "thrilled", "amazing"})

SPECIFIC_INDICATORS: Tuple[str, ...] = ("specifically", "for example", "in detail", "concrete", "particular")
VAGUE_INDICATORS: Tuple[str, ...] = ("maybe", "perhaps", "kind of", "sort of", "generally")

EXAMPLE_PATTERNS: Tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (r"for example", r"such as", r"like when", r"specifically", r"in one case")
)

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_EDGE_PUNCT = ".,;:!?\"'()[]{}"


def _words(text: str) -> List[str]:
    return [word for word in text.lower().split() if word]


def _bare(word: str) -> str:
    return word.strip(_EDGE_PUNCT)


def _match_vocabulary(words: Sequence[str], vocabulary: Iterable[str]) -> List[str]:
    # A term is present when a word contains it or it contains a word.
    return [term for term in vocabulary if any(term in word or word in term for word in words)]


def _count_phrases(text: str, phrases: Iterable[str]) -> int:
    lowered = text.lower()
    return sum(len(re.findall(rf"\b{re.escape(phrase)}\b", lowered)) for phrase in phrases)


def extract_keywords(text: str) -> List[str]:
    return _match_vocabulary(_words(text), KEYWORDS)


def extract_technical_terms(text: str) -> List[str]:
    return _match_vocabulary(_words(text), TECHNICAL_TERMS)


def analyze_sentiment(text: str) -> Sentiment:
    bare = [_bare(word) for word in _words(text)]
    positive = sum(1 for word in bare if word in POSITIVE_WORDS)
    negative = sum(1 for word in bare if word in NEGATIVE_WORDS)
    if positive > negative:
        return "positive"
    if negative > positive:
        return "negative"
    return "neutral"


def calculate_specificity(text: str) -> float:
    specific = _count_phrases(text, SPECIFIC_INDICATORS)
    vague = _count_phrases(text, VAGUE_INDICATORS)
    return max(0.0, min(1.0, (specific - vague + 1) / 2))


def has_examples(text: str) -> bool:
    return any(pattern.search(text) for pattern in EXAMPLE_PATTERNS)


def count_enthusiasm(text: str) -> int:
    return sum(1 for word in _words(text) if _bare(word) in ENTHUSIASM_WORDS)


def average_sentence_words(text: str) -> float:
    sentences = [part for part in _SENTENCE_SPLIT.split(text) if part.strip()]
    if not sentences:
        return 0.0
    return sum(len(sentence.split()) for sentence in sentences) / len(sentences)


class ResponseAnalyzer:
    """Pure feature extractor; identical input always yields identical features."""

    def analyze(self, text: str) -> Features:
        return Features(
            keywords=extract_keywords(text),
            sentiment=analyze_sentiment(text),
            specificity=calculate_specificity(text),
            technical_terms=extract_technical_terms(text),
            has_examples=has_examples(text),
            word_count=len(text.split()),
            char_length=len(text),
            enthusiasm_count=count_enthusiasm(text),
            avg_sentence_words=average_sentence_words(text),
        )


def analyze(text: str) -> Features:
    return ResponseAnalyzer().analyze(text)


__all__ = [
    "KEYWORDS",
    "TECHNICAL_TERMS",
    "ResponseAnalyzer",
    "analyze",
    "analyze_sentiment",
    "average_sentence_words",
    "calculate_specificity",
    "count_enthusiasm",
    "extract_keywords",
    "extract_technical_terms",
    "has_examples",
]
