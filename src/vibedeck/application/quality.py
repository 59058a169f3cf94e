"""
Heuristic content-quality scoring for learning items.

This is a pure computation module with no I/O. Scores start from a
baseline and move by fixed weights; the final value is clamped to 0-100.
"""

import re
from collections.abc import Sequence
from typing import Any

from vibedeck.domain.constants import LOW_TIER_CEILING, MEDIUM_TIER_CEILING
from vibedeck.domain.review.models import QualityScore, QualityTier

QUESTION_STARTERS = re.compile(
    r"^(what|why|how|when|where|which|explain|describe|compare|implement|design)\b",
    re.IGNORECASE,
)
VAGUE_QUESTION = re.compile(r"\b(stuff|thing|things|common operations|overview)\b", re.IGNORECASE)
NOISE_ANSWER = re.compile(r"(lorem ipsum|\btodo\b|\btbd\b)", re.IGNORECASE)
LIST_MARKER = re.compile(r"(^|\n)\s*([-*]|\d+[.)])\s+")

# Q&A weights
QUESTION_MIN_LEN = 18
QUESTION_MAX_LEN = 200
CLEAR_QUESTION = 12
SHORT_QUESTION = -4
LONG_QUESTION = -8
EXPLICIT_PROMPT = 6
IMPLICIT_PROMPT = -2
VAGUE_WORDING = -8
SUBSTANTIVE_ANSWER = 24  # >= 120 chars
ADEQUATE_ANSWER = 12  # >= 60 chars
LIGHT_ANSWER = -8  # 30-59 chars
SHORT_ANSWER = -20  # < 30 chars
STRUCTURED_ANSWER = 8
TRUNCATED_ANSWER = -10
NOISY_ANSWER = -12

# MCQ weights
MCQ_GOOD_OPTION_COUNT = 8
MCQ_BAD_OPTION_COUNT = -14
MCQ_UNIQUE_OPTIONS = 7
MCQ_DUPLICATE_OPTIONS = -10

# Solve prompt weights
SOLVE_BASELINE = 55


def quality_tier(score: int) -> QualityTier:
    if score >= MEDIUM_TIER_CEILING:
        return "high"
    if score >= LOW_TIER_CEILING:
        return "medium"
    return "low"


def _finish(score: float, signals: list[str]) -> QualityScore:
    final = max(0, min(100, round(score)))
    return QualityScore(score=final, tier=quality_tier(final), signals=tuple(signals))


def score_exercise(
    question: str,
    answer: str,
    options: Sequence[str] | None = None,
) -> QualityScore:
    """
    Score a question/answer pair, with MCQ option checks when options is given.

    Args:
        question: Prompt text (flashcard front or MCQ question).
        answer: Answer text (flashcard back or MCQ explanation).
        options: MCQ choices, or None for plain Q&A.
    """
    score = 50
    signals: list[str] = []
    question = (question or "").strip()
    answer = (answer or "").strip()

    if QUESTION_MIN_LEN <= len(question) <= QUESTION_MAX_LEN:
        score += CLEAR_QUESTION
        signals.append("clear-question-length")
    elif len(question) < QUESTION_MIN_LEN:
        score += SHORT_QUESTION
        signals.append("question-too-short")
    else:
        score += LONG_QUESTION
        signals.append("question-too-long")

    if QUESTION_STARTERS.search(question) or "?" in question:
        score += EXPLICIT_PROMPT
        signals.append("clear-prompt")
    else:
        score += IMPLICIT_PROMPT
        signals.append("prompt-not-explicit")

    if VAGUE_QUESTION.search(question):
        score += VAGUE_WORDING
        signals.append("vague-wording")

    if len(answer) >= 120:
        score += SUBSTANTIVE_ANSWER
        signals.append("substantive-answer")
    elif len(answer) >= 60:
        score += ADEQUATE_ANSWER
        signals.append("adequate-answer")
    elif len(answer) < 30:
        score += SHORT_ANSWER
        signals.append("answer-too-short")
    else:
        score += LIGHT_ANSWER
        signals.append("answer-light")

    if "```" in answer or LIST_MARKER.search(answer):
        score += STRUCTURED_ANSWER
        signals.append("structured-answer")

    if answer.endswith("..."):
        score += TRUNCATED_ANSWER
        signals.append("truncated-answer")

    if NOISE_ANSWER.search(answer):
        score += NOISY_ANSWER
        signals.append("noisy-answer")

    if options is not None:
        if 3 <= len(options) <= 5:
            score += MCQ_GOOD_OPTION_COUNT
            signals.append("mcq-option-count-good")
        else:
            score += MCQ_BAD_OPTION_COUNT
            signals.append("mcq-option-count-bad")

        unique = {" ".join(o.split()).lower() for o in options}
        if len(unique) == len(options):
            score += MCQ_UNIQUE_OPTIONS
            signals.append("mcq-options-unique")
        else:
            score += MCQ_DUPLICATE_OPTIONS
            signals.append("mcq-duplicate-options")

    return _finish(score, signals)


def score_solve(description: str) -> QualityScore:
    """Score an open-ended problem prompt by its description."""
    score = SOLVE_BASELINE
    signals: list[str] = []
    description = (description or "").strip()

    if len(description) >= 180:
        score += 16
        signals.append("detailed-description")
    elif len(description) >= 100:
        score += 8
        signals.append("adequate-description")
    else:
        score -= 10
        signals.append("description-too-short")

    if "Example" in description or "Input" in description:
        score += 8
        signals.append("has-examples")

    return _finish(score, signals)


def score_item(item: Any) -> QualityScore:
    """
    Score any learning item by its text payload.

    Dispatches on shape: MCQs (question/options/explanation), solve prompts
    (description), flashcards (front/back) or plain question/answer objects.
    """
    if hasattr(item, "options"):
        return score_exercise(item.question, item.explanation, item.options)
    if hasattr(item, "description"):
        return score_solve(item.description)
    if hasattr(item, "front"):
        return score_exercise(item.front, item.back)
    return score_exercise(item.question, item.answer)
