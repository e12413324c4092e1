from __future__ import annotations

"""Pydantic models for records that cross a storage boundary.

- SessionRecord / PropertyInfoRecord: JSON blobs in scoped key-value storage.
- CategoryScoreRow: one row per (evaluation x category) in the results table.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional, Union

import pandas as pd
from pydantic import BaseModel, Field, field_validator, model_validator

from ..models import EvaluationSession, PropertyInfo, Screen, UserAnswer

# --- Constants ---

SCREENS = tuple(s.value for s in Screen)
LEVELS = {"Novice", "Good", "Expert"}

DTYPES = {
    "evaluation_id": "string",
    "evaluated_at": pd.DatetimeTZDtype(tz="UTC"),
    "property_type_id": "string",
    "property_name": "string",
    "category_id": "string",
    "category_name": "string",
    "score": "float64",
    "max_score": "float64",
    "percentage": "float64",
    "questions_answered": "UInt16",
    "total_questions": "UInt16",
    "overall_percentage": "float64",
    "level": pd.CategoricalDtype(categories=sorted(LEVELS), ordered=False),
}

Id = Union[int, str]


# --- Scoped storage records ---

class AnswerRow(BaseModel):
    question_id: Id
    answer_id: Id
    answer_weight: float = Field(ge=0)
    question_weight: float = Field(ge=0)

    def to_domain(self) -> UserAnswer:
        return UserAnswer(
            question_id=self.question_id,
            answer_id=self.answer_id,
            answer_weight=self.answer_weight,
            question_weight=self.question_weight,
        )


class SessionRecord(BaseModel):
    answers: List[AnswerRow] = Field(default_factory=list)
    question_index: int = Field(ge=0)
    screen: Literal[SCREENS]  # type: ignore[valid-type]
    timestamp: int = Field(ge=0)

    @field_validator("answers")
    @classmethod
    def _one_per_question(cls, v: List[AnswerRow]) -> List[AnswerRow]:
        seen = set()
        for row in v:
            if row.question_id in seen:
                raise ValueError(f"duplicate answer for question {row.question_id!r}")
            seen.add(row.question_id)
        return v

    @classmethod
    def from_domain(cls, session: EvaluationSession) -> "SessionRecord":
        return cls(
            answers=[AnswerRow(**a.to_json()) for a in session.answers],
            question_index=session.question_index,
            screen=Screen(session.screen).value,
            timestamp=session.timestamp,
        )

    def to_domain(self) -> EvaluationSession:
        return EvaluationSession(
            answers=[a.to_domain() for a in self.answers],
            question_index=self.question_index,
            screen=Screen(self.screen),
            timestamp=self.timestamp,
        )


class PropertyInfoRecord(BaseModel):
    name: str
    location: Optional[str] = None
    surface: Optional[float] = None
    floors: Optional[str] = None
    construction_year: Optional[int] = None

    def to_domain(self) -> PropertyInfo:
        return PropertyInfo(**self.model_dump())


# --- Results table ---

class CategoryScoreRow(BaseModel):
    evaluation_id: str
    evaluated_at: datetime
    property_type_id: str
    property_name: Optional[str] = None
    category_id: str
    category_name: str
    score: float = Field(ge=0)
    max_score: float = Field(ge=0)
    percentage: float = Field(ge=0)
    questions_answered: int = Field(ge=0, le=65535)
    total_questions: int = Field(ge=0, le=65535)
    overall_percentage: float = Field(ge=0)
    level: Literal[tuple(sorted(LEVELS))]  # type: ignore[valid-type]

    @model_validator(mode="after")
    def _answered_le_total(self) -> "CategoryScoreRow":
        if self.questions_answered > self.total_questions:
            raise ValueError("questions_answered must be <= total_questions")
        return self

    @field_validator("evaluated_at")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)
