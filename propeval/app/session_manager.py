from __future__ import annotations

"""Evaluation session manager: the start -> property-info -> questions -> final flow.

Every transition checks its guards first and only then mutates state, so a
rejected call leaves the flow exactly as it was. The in-memory answers are
mirrored into the session store after each step so a reload can resume.

Completion hands the result to the durable-save collaborator on an
executor and returns immediately; the save outcome is reported through
telemetry and never changes the screen.
"""

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..clock import Clock, current_year
from ..models import (
    Category,
    EvaluationResult,
    EvaluationSession,
    PropertyInfo,
    PropertyType,
    Question,
    Screen,
    UserAnswer,
)
from ..results.schema import DurableSaver, EvaluationSubmission
from ..scoring.engine import evaluate, percentage_of, score_of, total_max_score
from ..storage.store import SessionStore
from .events import Telemetry, TraceTelemetry
from .property_info import validate_property_info

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """The requested action is not allowed from the current state."""


class UnknownAnswerError(KeyError):
    """The answer id does not belong to the current question."""


@dataclass
class FlowState:
    screen: Screen = Screen.START
    question_index: int = 0
    answers: List[UserAnswer] = field(default_factory=list)
    result: Optional[EvaluationResult] = None
    property_info: Optional[PropertyInfo] = None


class EvaluationSessionManager:
    def __init__(
        self,
        property_type: PropertyType,
        store: SessionStore,
        *,
        saver: Optional[DurableSaver] = None,
        telemetry: Optional[Telemetry] = None,
        executor: Optional[Executor] = None,
        clock: Optional[Clock] = None,
        language: Optional[str] = None,
    ) -> None:
        self.property_type = property_type
        self.store = store
        self.clock = clock or store.clock
        self.saver = saver
        self.telemetry = telemetry or TraceTelemetry()
        self.language = language
        self.state = FlowState()
        self._executor = executor
        self._owns_executor = executor is None
        self._flat: List[Tuple[Category, Question]] = list(property_type.iter_questions())
        # Fixed for the lifetime of this manager; the tree is read-only.
        self._max_possible = total_max_score(property_type.categories)
        self._pending_resume: Optional[EvaluationSession] = None
        self._pending_save: Optional[Future] = None

    # ------------------------------
    # VIEWS
    # ------------------------------

    @property
    def property_id(self) -> Any:
        return self.property_type.id

    @property
    def screen(self) -> Screen:
        return self.state.screen

    @property
    def question_index(self) -> int:
        return self.state.question_index

    @property
    def answers(self) -> Tuple[UserAnswer, ...]:
        return tuple(self.state.answers)

    @property
    def result(self) -> Optional[EvaluationResult]:
        return self.state.result

    @property
    def property_info(self) -> Optional[PropertyInfo]:
        return self.state.property_info

    @property
    def total_questions(self) -> int:
        return len(self._flat)

    @property
    def max_possible_score(self) -> float:
        return self._max_possible

    @property
    def current_score(self) -> float:
        return score_of(self.state.answers)

    @property
    def current_percentage(self) -> float:
        return percentage_of(self.current_score, self._max_possible)

    @property
    def current_category(self) -> Optional[Category]:
        if self.state.screen is not Screen.QUESTIONS or not self._flat:
            return None
        return self._flat[self.state.question_index][0]

    @property
    def current_question(self) -> Optional[Question]:
        if self.state.screen is not Screen.QUESTIONS or not self._flat:
            return None
        return self._flat[self.state.question_index][1]

    @property
    def current_answer(self) -> Optional[UserAnswer]:
        q = self.current_question
        return self.answer_for(q.id) if q is not None else None

    @property
    def is_last_question(self) -> bool:
        return self.state.question_index == self.total_questions - 1

    @property
    def can_go_next(self) -> bool:
        """Forward is always open mid-flow; finishing needs the last question answered."""
        if self.state.screen is not Screen.QUESTIONS:
            return False
        return not self.is_last_question or self.current_answer is not None

    @property
    def progress(self) -> float:
        if not self._flat:
            return 0.0
        return (self.state.question_index + 1) / self.total_questions * 100.0

    @property
    def pending_resume(self) -> Optional[EvaluationSession]:
        return self._pending_resume

    @property
    def pending_save(self) -> Optional[Future]:
        """Future[bool] of the last durable save, if one was submitted."""
        return self._pending_save

    def answer_for(self, question_id: Any) -> Optional[UserAnswer]:
        for a in self.state.answers:
            if a.question_id == question_id:
                return a
        return None

    # ------------------------------
    # MOUNT / RESUME
    # ------------------------------

    def mount(self) -> Optional[EvaluationSession]:
        """Decide whether a stored session can be offered for resume.

        Returns the session when it is eligible; the caller then calls
        resume() or start_fresh(). Ineligible records are discarded along
        with the stored property info.
        """
        existed = self.store.has_session(self.property_id)
        session = self.store.resume_candidate(self.property_id)
        if session is not None and session.question_index >= self.total_questions:
            logger.warning(
                "Stored index %s out of range for %s; discarding", session.question_index, self.property_id
            )
            session = None
        if session is not None:
            self._pending_resume = session
            return session
        self._pending_resume = None
        if existed:
            self.store.clear_all(self.property_id)
            self._track("evaluation_discarded", reason="ineligible")
        self.state = FlowState()
        return None

    def resume(self) -> None:
        session = self._pending_resume
        if session is None:
            raise InvalidTransitionError("No session available to resume")
        self.state = FlowState(
            screen=Screen.QUESTIONS,
            question_index=session.question_index,
            answers=list(session.answers),
            property_info=self.store.load_property_info(self.property_id),
        )
        self._pending_resume = None
        self._track(
            "evaluation_resumed",
            question_index=session.question_index,
            questions_answered=len(session.answers),
        )

    def start_fresh(self) -> None:
        declined = self._pending_resume is not None
        self.store.clear_all(self.property_id)
        self._pending_resume = None
        self.state = FlowState()
        if declined:
            self._track("evaluation_discarded", reason="declined")

    # ------------------------------
    # TRANSITIONS
    # ------------------------------

    def start(self) -> None:
        self._require(Screen.START, "start")
        self.store.clear_all(self.property_id)
        self._pending_resume = None
        self.state = FlowState(screen=Screen.PROPERTY_INFO, property_info=self.state.property_info)
        self._track("evaluation_started", property_type=self.property_type.display_name(self.language))

    def save_property_info(self, info: PropertyInfo) -> Dict[str, str]:
        """Validate and store the property info, then move to the first question.

        Returns field-level error messages; when non-empty nothing changes.
        """
        self._require(Screen.PROPERTY_INFO, "save property info")
        errors = validate_property_info(info, current_year(self.clock))
        if errors:
            return errors
        if not self._flat:
            raise InvalidTransitionError(f"Property type {self.property_id!r} has no questions")
        info = PropertyInfo(
            name=info.name.strip(),
            location=info.location,
            surface=info.surface,
            floors=info.floors,
            construction_year=info.construction_year,
        )
        self.store.save_property_info(self.property_id, info)
        self.state.property_info = info
        self.state.screen = Screen.QUESTIONS
        self.state.question_index = 0
        self._persist()
        self._track("property_info_saved", has_location=bool(info.location))
        return {}

    def answer(self, answer_id: Any) -> UserAnswer:
        """Select an answer for the current question, replacing any earlier choice."""
        self._require(Screen.QUESTIONS, "answer")
        question = self.current_question
        choice = question.find_answer(answer_id)
        if choice is None:
            raise UnknownAnswerError(answer_id)
        selected = UserAnswer.select(question, choice)
        answers = list(self.state.answers)
        for i, a in enumerate(answers):
            if a.question_id == selected.question_id:
                answers[i] = selected
                break
        else:
            answers.append(selected)
        self.state.answers = answers
        self._persist()
        self._track(
            "question_answered",
            question_id=selected.question_id,
            answer_id=selected.answer_id,
            question_index=self.state.question_index,
            total_questions=self.total_questions,
            current_score=self.current_score,
        )
        return selected

    def next(self) -> Optional[EvaluationResult]:
        """Advance one question, or complete on the last one.

        Returns the result when this call completed the evaluation.
        """
        self._require(Screen.QUESTIONS, "go to the next question")
        if not self.can_go_next:
            raise InvalidTransitionError("The last question must be answered before completing")
        return self._advance()

    def skip(self) -> Optional[EvaluationResult]:
        """Drop any answer to the current question and advance (or complete)."""
        self._require(Screen.QUESTIONS, "skip")
        qid = self.current_question.id
        self.state.answers = [a for a in self.state.answers if a.question_id != qid]
        self._track(
            "question_skipped",
            question_index=self.state.question_index,
            total_questions=self.total_questions,
        )
        return self._advance()

    def previous(self) -> None:
        self._require(Screen.QUESTIONS, "go back")
        if self.state.question_index == 0:
            raise InvalidTransitionError("Already at the first question")
        self.state.question_index -= 1
        self._persist()
        self._track(
            "question_back",
            question_index=self.state.question_index,
            total_questions=self.total_questions,
        )

    def back(self) -> None:
        screen = self.state.screen
        if screen is Screen.PROPERTY_INFO:
            self.state.screen = Screen.START
        elif screen is Screen.QUESTIONS:
            if self.state.question_index > 0:
                self.previous()
                return
            # The stored session is left as is; mount() decides its fate later.
            self.state.screen = Screen.START
        else:
            raise InvalidTransitionError(f"Cannot go back from screen {screen.value}")
        logger.debug("back: %s -> %s", screen.value, self.state.screen.value)

    def restart(self) -> None:
        screen = self.state.screen
        if screen is Screen.FINAL:
            self.store.clear(self.property_id)
            self.state = FlowState(property_info=self.state.property_info)
        elif screen is Screen.QUESTIONS:
            questions_answered = len(self.state.answers)
            self.state.answers = []
            self.state.question_index = 0
            self._persist()
            self._track(
                "evaluation_restarted",
                property_type=self.property_type.display_name(self.language),
                questions_answered=questions_answered,
                total_questions=self.total_questions,
            )
            return
        else:
            raise InvalidTransitionError(f"Cannot restart from screen {screen.value}")
        self._track("evaluation_restarted", property_type=self.property_type.display_name(self.language))

    # ------------------------------
    # COMPLETION
    # ------------------------------

    def _advance(self) -> Optional[EvaluationResult]:
        if self.state.question_index < self.total_questions - 1:
            self.state.question_index += 1
            self._persist()
            self._track(
                "question_next",
                question_index=self.state.question_index,
                total_questions=self.total_questions,
            )
            return None
        return self._complete()

    def _complete(self) -> EvaluationResult:
        answers = list(self.state.answers)
        result = evaluate(
            self.property_type.categories,
            answers,
            language=self.language,
            max_possible_score=self._max_possible,
        )
        now = self.clock.now()
        self.state.result = result
        self.state.screen = Screen.FINAL
        # Keep the final snapshot recoverable until the durable save lands.
        self.store.save(self.property_id, answers, self.state.question_index, Screen.FINAL, now)
        self._track(
            "evaluation_completed",
            property_type=self.property_type.display_name(self.language),
            total_score=result.total_score,
            max_possible_score=result.max_possible_score,
            percentage=result.percentage,
            level=result.level,
            questions_answered=len(answers),
            total_questions=self.total_questions,
            completion_rate=result.completion_rate,
        )
        submission = EvaluationSubmission(
            property_type=self.property_type,
            result=result,
            answers=answers,
            property_info=self.state.property_info,
            completed_at=now,
        )
        self._submit_save(submission)
        return result

    def _submit_save(self, submission: EvaluationSubmission) -> None:
        if self.saver is None:
            self._pending_save = None
            return
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="propeval-save")
        self._pending_save = self._executor.submit(self._durable_save, submission)

    def _durable_save(self, submission: EvaluationSubmission) -> bool:
        try:
            self.saver(submission)
        except Exception as e:
            logger.exception("Durable save failed for property type %s", self.property_id)
            self._track("evaluation_save_failed", error=str(e))
            return False
        # Only drop the snapshot this completion wrote; a newer session wins.
        stored = self.store.load(self.property_id)
        if stored is not None and stored.screen is Screen.FINAL and stored.timestamp == submission.completed_at:
            self.store.clear(self.property_id)
        self._track(
            "evaluation_saved",
            total_score=submission.result.total_score,
            level=submission.result.level,
        )
        return True

    def close(self, wait: bool = True) -> None:
        """Shut down the executor this manager created, if any."""
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def __enter__(self) -> "EvaluationSessionManager":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------
    # HELPERS
    # ------------------------------

    def _require(self, screen: Screen, action: str) -> None:
        if self.state.screen is not screen:
            raise InvalidTransitionError(f"Cannot {action} from screen {self.state.screen.value}")

    def _persist(self) -> None:
        self.store.save(self.property_id, self.state.answers, self.state.question_index, self.state.screen)

    def _track(self, event: str, **properties: Any) -> None:
        logger.debug("%s %s", event, properties)
        try:
            self.telemetry.track(event, {"property_type_id": self.property_id, **properties})
        except Exception:
            logger.exception("Telemetry failed for %s", event)
