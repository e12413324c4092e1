"""propeval: guided property quality evaluation.

Weighted multiple-choice scoring, a resumable evaluation flow and a
plain-text report. Storage, clock, durable save and telemetry are injected.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .models import (  # noqa: E402
    Answer,
    Category,
    CategoryScore,
    EvaluationResult,
    EvaluationSession,
    PropertyInfo,
    PropertyType,
    Question,
    Screen,
    UserAnswer,
)

__all__ = [
    "__version__",
    "Answer",
    "Category",
    "CategoryScore",
    "EvaluationResult",
    "EvaluationSession",
    "PropertyInfo",
    "PropertyType",
    "Question",
    "Screen",
    "UserAnswer",
]
