from __future__ import annotations

"""Shared fakes and trees for the test suite."""

from concurrent.futures import Executor, Future
from typing import Any, Dict, List, Tuple

from propeval.models import Answer, Category, PropertyType, Question


def _choices(qid: str, weights=(1.0, 3.0, 5.0)) -> List[Answer]:
    return [Answer(id=f"{qid}-a{i}", text=f"Choice {i}", weight=w) for i, w in enumerate(weights, start=1)]


def two_category_tree() -> PropertyType:
    """Two categories, one question each (weight 1.0), answers weighted 1/3/5."""
    return PropertyType(
        id="house",
        name="House",
        names={"ro": "Casă"},
        categories=[
            Category(
                id="structure",
                name="Structure",
                names={"ro": "Structură"},
                questions=[Question(id="q1", text="Foundation condition?", weight=1.0, answers=_choices("q1"))],
            ),
            Category(
                id="roof",
                name="Roof",
                names={"ro": "Acoperiș"},
                questions=[Question(id="q2", text="Roof condition?", weight=1.0, answers=_choices("q2"))],
            ),
        ],
    )


def three_question_tree() -> PropertyType:
    """Category A: q1 (w=2), q2 (w=1); category B: q3 (w=1.5)."""
    return PropertyType(
        id=7,
        name="Apartment",
        categories=[
            Category(
                id="a",
                name="Interior",
                questions=[
                    Question(id="q1", text="Walls?", weight=2.0, answers=_choices("q1", (0.0, 2.0, 4.0))),
                    Question(id="q2", text="Floors?", weight=1.0, answers=_choices("q2", (1.0, 2.0))),
                ],
            ),
            Category(
                id="b",
                name="Utilities",
                questions=[Question(id="q3", text="Heating?", weight=1.5, answers=_choices("q3", (0.5, 1.0, 3.0)))],
            ),
        ],
    )


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs) -> Future:
        f: Future = Future()
        try:
            f.set_result(fn(*args, **kwargs))
        except BaseException as e:  # pragma: no cover - mirrors ThreadPoolExecutor
            f.set_exception(e)
        return f


class RecordingTelemetry:
    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def track(self, event: str, properties: Dict[str, Any]) -> None:
        self.events.append((event, dict(properties)))

    def names(self) -> List[str]:
        return [e for e, _ in self.events]


class RecordingSaver:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.submissions: list = []

    def __call__(self, submission) -> None:
        self.submissions.append(submission)
        if self.fail:
            raise ConnectionError("backend unavailable")
