from __future__ import annotations

"""Plain-text report for a completed evaluation (download/export)."""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..models import EvaluationResult, PropertyInfo

IMPROVEMENT_THRESHOLD = 70.0
HIGH_PRIORITY_BELOW = 30.0
MEDIUM_PRIORITY_BELOW = 50.0


@dataclass(frozen=True)
class ImprovementArea:
    name: str
    percentage: float
    priority: str


def round_half_up(value: float) -> int:
    """Display rounding; .5 always rounds up (round() would round to even)."""
    return int(math.floor(value + 0.5))


def priority_for(percentage: float) -> str:
    if percentage < HIGH_PRIORITY_BELOW:
        return "High"
    if percentage < MEDIUM_PRIORITY_BELOW:
        return "Medium"
    return "Low"


def improvement_areas(result: EvaluationResult, limit: Optional[int] = None) -> List[ImprovementArea]:
    """Categories under the improvement threshold, weakest first."""
    weak = [c for c in result.category_scores if c.percentage < IMPROVEMENT_THRESHOLD]
    weak.sort(key=lambda c: c.percentage)
    if limit is not None:
        weak = weak[:limit]
    return [ImprovementArea(c.category_name, c.percentage, priority_for(c.percentage)) for c in weak]


def _underline(title: str, char: str = "-") -> List[str]:
    return [title, char * len(title)]


def format_text_report(
    result: EvaluationResult,
    property_label: str,
    generated_at: datetime,
    property_info: Optional[PropertyInfo] = None,
    limit: Optional[int] = None,
) -> str:
    """Return a human-readable report. Same inputs give byte-identical output."""
    lines = _underline("PROPERTY EVALUATION REPORT", "=")
    lines.append(f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M')}")
    lines.append(f"Property type: {property_label}")
    if property_info is not None:
        lines.append(f"Property: {property_info.name}")
        if property_info.location:
            lines.append(f"Location: {property_info.location}")
    lines.append("")

    lines += _underline("Overall")
    lines.append(
        f"Score: {round_half_up(result.percentage)}% "
        f"({result.total_score:.1f}/{result.max_possible_score:.1f} points)"
    )
    lines.append(f"Level: {result.level}")
    lines.append(f"Badge: {result.badge}")
    lines.append(f"Completion: {round_half_up(result.completion_rate)}%")
    lines.append("")

    lines += _underline("Categories")
    for c in result.category_scores:
        lines.append(
            f"{c.category_name}: {round_half_up(c.percentage)}% "
            f"({c.score:.1f}/{c.max_score:.1f} points), "
            f"{c.questions_answered}/{c.total_questions} questions answered"
        )
    if not result.category_scores:
        lines.append("(no categories)")
    lines.append("")

    lines += _underline("Areas for improvement")
    areas = improvement_areas(result, limit)
    for area in areas:
        lines.append(f"- {area.name}: {round_half_up(area.percentage)}% [{area.priority} priority]")
    if not areas:
        lines.append(f"None. Every category scored {IMPROVEMENT_THRESHOLD:.0f}% or more.")
    return "\n".join(lines) + "\n"
