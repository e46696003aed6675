"""Keyword-based sentiment scoring for free-text answers."""

import re
from collections.abc import Callable

from equizz.core.modules.quiz.models import QuestionType, QuizQuestion

TextScorer = Callable[[str], float]

POSITIVE_WORDS = frozenset(
    {"bon", "bonne", "excellent", "excellente", "bien", "super", "intéressant", "intéressante", "clair", "utile"}
)
NEGATIVE_WORDS = frozenset(
    {"mauvais", "mauvaise", "nul", "nulle", "ennuyeux", "ennuyeuse", "rapide", "incompréhensible", "difficile"}
)
WORD_WEIGHT = 0.5
MIN_SCOREABLE_LENGTH = 10  # Open answers must be longer than this (stripped) to be scored

POSITIVE_THRESHOLD = 0.25
NEGATIVE_THRESHOLD = -0.25

_WORD_RE = re.compile(r"\w+")


def clamp(value: float, low: float = -1.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def score_text(text: str) -> float:
    """Score text in [-1, 1]: +0.5 per positive keyword, -0.5 per negative keyword."""
    score = 0.0
    for word in _WORD_RE.findall(text.lower()):
        if word in POSITIVE_WORDS:
            score += WORD_WEIGHT
        elif word in NEGATIVE_WORDS:
            score -= WORD_WEIGHT
    return clamp(score)


def is_scoreable(question: QuizQuestion | None, value: str) -> bool:
    """Only long enough answers to open questions are scored."""
    return question is not None and question.type == QuestionType.OPEN and len(value.strip()) > MIN_SCOREABLE_LENGTH


def classify(score: float) -> str:
    if score > POSITIVE_THRESHOLD:
        return "positive"
    if score < NEGATIVE_THRESHOLD:
        return "negative"
    return "neutral"
