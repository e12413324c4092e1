from __future__ import annotations

"""Weighted scoring: per-question ceilings, category breakdown, tiers.

All functions are pure. Nothing here rounds; display rounding belongs to
the report formatter and other presentation code.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from ..models import Category, CategoryScore, EvaluationResult, Question, UserAnswer

EXPERT_THRESHOLD = 80.0
GOOD_THRESHOLD = 60.0

LEVEL_EXPERT = "Expert"
LEVEL_GOOD = "Good"
LEVEL_NOVICE = "Novice"

BADGES = {
    LEVEL_EXPERT: "evaluation-expert",
    LEVEL_GOOD: "evaluation-good",
    LEVEL_NOVICE: "evaluation-novice",
}


class InvalidQuestionError(ValueError):
    """Raised when a question has no answers to take a ceiling from."""


# ------------------------------
# CEILINGS
# ------------------------------

def max_weight_of(question: Question) -> float:
    if not question.answers:
        raise InvalidQuestionError(f"Question {question.id!r} has no answers")
    return max(float(a.weight) for a in question.answers)


def question_max_score(question: Question) -> float:
    return max_weight_of(question) * float(question.weight)


def category_max_score(category: Category) -> float:
    return sum((question_max_score(q) for q in category.questions), 0.0)


def total_max_score(categories: Iterable[Category]) -> float:
    """Global denominator for one evaluation."""
    return sum((category_max_score(c) for c in categories), 0.0)


# ------------------------------
# SCORES
# ------------------------------

def score_of(answers: Iterable[UserAnswer]) -> float:
    return sum((a.answer_weight * a.question_weight for a in answers), 0.0)


def percentage_of(score: float, max_score: float) -> float:
    """Return score as a percentage of max_score; 0 when max_score is not positive."""
    if max_score > 0:
        return (score / max_score) * 100.0
    return 0.0


def completion_rate(answered: int, total: int) -> float:
    if total > 0:
        return (answered / total) * 100.0
    return 0.0


def category_score(
    category: Category, answers: Sequence[UserAnswer], language: Optional[str] = None
) -> CategoryScore:
    ids = category.question_ids()
    matching = [a for a in answers if a.question_id in ids]
    score = score_of(matching)
    max_score = category_max_score(category)
    return CategoryScore(
        category_id=category.id,
        category_name=category.display_name(language),
        score=score,
        max_score=max_score,
        percentage=percentage_of(score, max_score),
        questions_answered=len(matching),
        total_questions=len(category.questions),
    )


# ------------------------------
# TIERS
# ------------------------------

def classify(percentage: float) -> Tuple[str, str]:
    """Map a percentage to (level, badge). Lower bounds are inclusive."""
    if percentage >= EXPERT_THRESHOLD:
        level = LEVEL_EXPERT
    elif percentage >= GOOD_THRESHOLD:
        level = LEVEL_GOOD
    else:
        level = LEVEL_NOVICE
    return level, BADGES[level]


def evaluate(
    categories: Sequence[Category],
    answers: Sequence[UserAnswer],
    language: Optional[str] = None,
    max_possible_score: Optional[float] = None,
) -> EvaluationResult:
    """Compose the full result for a set of answers.

    Args:
        categories: The question tree's categories, in display order.
        answers: Active answers, at most one per question.
        language: Optional language code for category names.
        max_possible_score: Precomputed `total_max_score(categories)`; computed
            here when omitted.
    """
    answers = list(answers)
    total = score_of(answers)
    max_score = total_max_score(categories) if max_possible_score is None else float(max_possible_score)
    pct = percentage_of(total, max_score)
    level, badge = classify(pct)
    total_questions = sum(len(c.questions) for c in categories)
    scores: List[CategoryScore] = [category_score(c, answers, language) for c in categories]
    return EvaluationResult(
        total_score=total,
        max_possible_score=max_score,
        percentage=pct,
        level=level,
        badge=badge,
        completion_rate=completion_rate(len(answers), total_questions),
        category_scores=tuple(scores),
    )
