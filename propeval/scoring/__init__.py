from .engine import (
    BADGES,
    EXPERT_THRESHOLD,
    GOOD_THRESHOLD,
    InvalidQuestionError,
    category_max_score,
    category_score,
    classify,
    completion_rate,
    evaluate,
    max_weight_of,
    percentage_of,
    question_max_score,
    score_of,
    total_max_score,
)

__all__ = [
    "BADGES",
    "EXPERT_THRESHOLD",
    "GOOD_THRESHOLD",
    "InvalidQuestionError",
    "category_max_score",
    "category_score",
    "classify",
    "completion_rate",
    "evaluate",
    "max_weight_of",
    "percentage_of",
    "question_max_score",
    "score_of",
    "total_max_score",
]
