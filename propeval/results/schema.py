from __future__ import annotations

"""Payload handed to durable-save collaborators once an evaluation completes."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from ..models import EvaluationResult, PropertyInfo, PropertyType, UserAnswer


@dataclass(frozen=True)
class EvaluationSubmission:
    property_type: PropertyType
    result: EvaluationResult
    answers: List[UserAnswer] = field(default_factory=list)
    property_info: Optional[PropertyInfo] = None
    completed_at: int = 0  # epoch ms

    @property
    def property_type_id(self) -> Any:
        return self.property_type.id

    def to_json(self) -> Dict[str, Any]:
        return {
            "property_type_id": self.property_type.id,
            "property_info": self.property_info.to_json() if self.property_info else None,
            "answers": [a.to_json() for a in self.answers],
            "result": self.result.to_json(),
            "completed_at": self.completed_at,
        }


class DurableSaver(Protocol):
    """Persists a completed evaluation. Raising signals failure."""

    def __call__(self, submission: EvaluationSubmission) -> None: ...
