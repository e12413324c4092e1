from __future__ import annotations

"""Load a question tree (property type -> categories -> questions -> answers) from YAML or JSON."""

import json
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .models import PropertyType
from .scoring.engine import InvalidQuestionError, max_weight_of


class TreeFormatError(ValueError):
    pass


def parse_property_type(data: Dict[str, Any]) -> PropertyType:
    if not isinstance(data, dict):
        raise TreeFormatError("Tree document must be a mapping")
    if "property_type" in data:
        data = data["property_type"]
    try:
        return PropertyType.from_json(data)
    except (KeyError, TypeError, ValueError) as e:
        raise TreeFormatError(f"Malformed question tree: {e!r}") from e


def load_property_type(path: str | Path) -> PropertyType:
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    try:
        if p.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        raise TreeFormatError(f"Cannot parse {p}: {e}") from e
    return parse_property_type(data)


def tree_problems(property_type: PropertyType) -> List[str]:
    """Human-readable list of data-model violations (empty when the tree is sound)."""
    problems: List[str] = []
    seen = set()
    for category, question in property_type.iter_questions():
        if question.id in seen:
            problems.append(f"Duplicate question id {question.id!r}")
        seen.add(question.id)
        if question.weight <= 0:
            problems.append(f"Question {question.id!r} in {category.name!r} has non-positive weight")
        try:
            max_weight_of(question)
        except InvalidQuestionError as e:
            problems.append(str(e))
        for a in question.answers:
            if a.weight < 0:
                problems.append(f"Answer {a.id!r} of question {question.id!r} has negative weight")
    return problems
