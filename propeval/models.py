from __future__ import annotations

"""Domain model for property evaluations.

The question tree (PropertyType -> Category -> Question -> Answer) is
supplied by the caller and treated as read-only. UserAnswer, the session
snapshot and the result objects are produced by the evaluation flow.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple


def _names_from_json(data: Dict[str, Any]) -> Tuple[str, Dict[str, str]]:
    """Accept `name` as a plain string or a {lang: name} map, plus `name_<lang>` keys."""
    raw = data.get("name", "")
    names: Dict[str, str] = {}
    if isinstance(raw, dict):
        names.update({str(k): str(v) for k, v in raw.items()})
        name = next(iter(names.values()), "")
    else:
        name = str(raw)
    names.update({str(k): str(v) for k, v in (data.get("names") or {}).items()})
    for key, value in data.items():
        if key.startswith("name_") and value:
            names.setdefault(key[len("name_"):], str(value))
    return name, names


@dataclass
class Answer:
    id: Any
    text: str
    weight: float

    def to_json(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "weight": self.weight}

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Answer":
        return cls(id=data["id"], text=str(data.get("text", "")), weight=float(data.get("weight", 0.0)))


@dataclass
class Question:
    id: Any
    text: str
    weight: float
    answers: List[Answer] = field(default_factory=list)

    def find_answer(self, answer_id: Any) -> Optional[Answer]:
        for a in self.answers:
            if a.id == answer_id:
                return a
        return None

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "weight": self.weight,
            "answers": [a.to_json() for a in self.answers],
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Question":
        return cls(
            id=data["id"],
            text=str(data.get("text", "")),
            weight=float(data.get("weight", 1.0)),
            answers=[Answer.from_json(a) for a in data.get("answers", [])],
        )


@dataclass
class Category:
    id: Any
    name: str
    questions: List[Question] = field(default_factory=list)
    names: Dict[str, str] = field(default_factory=dict)

    def display_name(self, language: Optional[str] = None) -> str:
        if language and self.names.get(language):
            return self.names[language]
        return self.name

    def question_ids(self) -> set:
        return {q.id for q in self.questions}

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "questions": [q.to_json() for q in self.questions],
        }
        if self.names:
            data["names"] = dict(self.names)
        return data

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Category":
        name, names = _names_from_json(data)
        return cls(
            id=data["id"],
            name=name,
            questions=[Question.from_json(q) for q in data.get("questions", [])],
            names=names,
        )


@dataclass
class PropertyType:
    """Root of the question tree (one property type and its categories)."""

    id: Any
    name: str
    categories: List[Category] = field(default_factory=list)
    names: Dict[str, str] = field(default_factory=dict)

    def display_name(self, language: Optional[str] = None) -> str:
        if language and self.names.get(language):
            return self.names[language]
        return self.name

    def iter_questions(self) -> Iterator[Tuple[Category, Question]]:
        for category in self.categories:
            for question in category.questions:
                yield category, question

    @property
    def total_questions(self) -> int:
        return sum(len(c.questions) for c in self.categories)

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "categories": [c.to_json() for c in self.categories],
        }
        if self.names:
            data["names"] = dict(self.names)
        return data

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "PropertyType":
        name, names = _names_from_json(data)
        return cls(
            id=data["id"],
            name=name,
            categories=[Category.from_json(c) for c in data.get("categories", [])],
            names=names,
        )


@dataclass(frozen=True)
class UserAnswer:
    """A selected answer, with the weights copied at selection time."""

    question_id: Any
    answer_id: Any
    answer_weight: float
    question_weight: float

    @property
    def points(self) -> float:
        return self.answer_weight * self.question_weight

    def to_json(self) -> Dict[str, Any]:
        return {
            "question_id": self.question_id,
            "answer_id": self.answer_id,
            "answer_weight": self.answer_weight,
            "question_weight": self.question_weight,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "UserAnswer":
        return cls(
            question_id=data["question_id"],
            answer_id=data["answer_id"],
            answer_weight=float(data["answer_weight"]),
            question_weight=float(data["question_weight"]),
        )

    @classmethod
    def select(cls, question: Question, answer: Answer) -> "UserAnswer":
        return cls(
            question_id=question.id,
            answer_id=answer.id,
            answer_weight=float(answer.weight),
            question_weight=float(question.weight),
        )


class Screen(str, Enum):
    START = "start"
    PROPERTY_INFO = "property-info"
    QUESTIONS = "questions"
    FINAL = "final"


@dataclass
class EvaluationSession:
    """In-progress snapshot mirrored into scoped storage."""

    answers: List[UserAnswer]
    question_index: int
    screen: Screen
    timestamp: int  # epoch ms


@dataclass
class PropertyInfo:
    name: str
    location: Optional[str] = None
    surface: Optional[float] = None
    floors: Optional[str] = None
    construction_year: Optional[int] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "location": self.location,
            "surface": self.surface,
            "floors": self.floors,
            "construction_year": self.construction_year,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "PropertyInfo":
        return cls(
            name=str(data.get("name", "")),
            location=data.get("location"),
            surface=data.get("surface"),
            floors=data.get("floors"),
            construction_year=data.get("construction_year"),
        )


@dataclass(frozen=True)
class CategoryScore:
    category_id: Any
    category_name: str
    score: float
    max_score: float
    percentage: float
    questions_answered: int
    total_questions: int

    def to_json(self) -> Dict[str, Any]:
        return {
            "category_id": self.category_id,
            "category_name": self.category_name,
            "score": self.score,
            "max_score": self.max_score,
            "percentage": self.percentage,
            "questions_answered": self.questions_answered,
            "total_questions": self.total_questions,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "CategoryScore":
        return cls(
            category_id=data["category_id"],
            category_name=str(data.get("category_name", "")),
            score=float(data["score"]),
            max_score=float(data["max_score"]),
            percentage=float(data["percentage"]),
            questions_answered=int(data["questions_answered"]),
            total_questions=int(data["total_questions"]),
        )


@dataclass(frozen=True)
class EvaluationResult:
    total_score: float
    max_possible_score: float
    percentage: float
    level: str
    badge: str
    completion_rate: float
    category_scores: Tuple[CategoryScore, ...] = ()

    def to_json(self) -> Dict[str, Any]:
        return {
            "total_score": self.total_score,
            "max_possible_score": self.max_possible_score,
            "percentage": self.percentage,
            "level": self.level,
            "badge": self.badge,
            "completion_rate": self.completion_rate,
            "category_scores": [c.to_json() for c in self.category_scores],
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "EvaluationResult":
        return cls(
            total_score=float(data["total_score"]),
            max_possible_score=float(data["max_possible_score"]),
            percentage=float(data["percentage"]),
            level=str(data["level"]),
            badge=str(data["badge"]),
            completion_rate=float(data["completion_rate"]),
            category_scores=tuple(CategoryScore.from_json(c) for c in data.get("category_scores", [])),
        )
