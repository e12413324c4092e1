from __future__ import annotations

"""Session store: in-progress evaluation snapshots in scoped key-value storage.

Two records per property id:
- `evaluation-{id}`: answers, question index, screen, timestamp (epoch ms).
- `property-info-{id}`: name/location/surface/floors/year; no staleness.

Loading never raises on bad data: a corrupt or invalid record is deleted
and treated as absent.
"""

import json
import logging
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from ..clock import Clock, SystemClock
from ..models import EvaluationSession, PropertyInfo, Screen, UserAnswer
from .backends import ScopedStorage
from .schema import PropertyInfoRecord, SessionRecord

logger = logging.getLogger(__name__)

SESSION_MAX_AGE_MS = 24 * 60 * 60 * 1000


def session_key(property_id: Any) -> str:
    return f"evaluation-{property_id}"


def property_info_key(property_id: Any) -> str:
    return f"property-info-{property_id}"


def is_stale(session: EvaluationSession, now: int, max_age_ms: int = SESSION_MAX_AGE_MS) -> bool:
    return now - session.timestamp >= max_age_ms


class SessionStore:
    def __init__(
        self,
        storage: ScopedStorage,
        clock: Optional[Clock] = None,
        *,
        max_age_ms: int = SESSION_MAX_AGE_MS,
    ) -> None:
        self.storage = storage
        self.clock = clock or SystemClock()
        self.max_age_ms = int(max_age_ms)

    # --- evaluation session ---

    def has_session(self, property_id: Any) -> bool:
        return self.storage.get(session_key(property_id)) is not None

    def load(self, property_id: Any) -> Optional[EvaluationSession]:
        key = session_key(property_id)
        raw = self.storage.get(key)
        if raw is None:
            return None
        try:
            record = SessionRecord.model_validate(json.loads(raw))
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning("Discarding unreadable session %s: %s", key, e)
            self.storage.remove(key)
            return None
        return record.to_domain()

    def save(
        self,
        property_id: Any,
        answers: Sequence[UserAnswer],
        question_index: int,
        screen: Screen,
        now: Optional[int] = None,
    ) -> EvaluationSession:
        session = EvaluationSession(
            answers=list(answers),
            question_index=int(question_index),
            screen=Screen(screen),
            timestamp=self.clock.now() if now is None else int(now),
        )
        record = SessionRecord.from_domain(session)
        self.storage.set(session_key(property_id), json.dumps(record.model_dump(), separators=(",", ":")))
        return session

    def clear(self, property_id: Any) -> None:
        self.storage.remove(session_key(property_id))

    def is_stale(self, session: EvaluationSession, now: Optional[int] = None) -> bool:
        return is_stale(session, self.clock.now() if now is None else now, self.max_age_ms)

    def resume_candidate(self, property_id: Any, now: Optional[int] = None) -> Optional[EvaluationSession]:
        """Return the stored session if it may be resumed, else discard it.

        Only sessions still on the questions screen and younger than
        max_age_ms qualify.
        """
        session = self.load(property_id)
        if session is None:
            return None
        if session.screen is Screen.QUESTIONS and not self.is_stale(session, now):
            return session
        logger.debug(
            "Discarding session for %s (screen=%s, timestamp=%s)",
            property_id,
            session.screen.value,
            session.timestamp,
        )
        self.clear(property_id)
        return None

    # --- property info ---

    def load_property_info(self, property_id: Any) -> Optional[PropertyInfo]:
        key = property_info_key(property_id)
        raw = self.storage.get(key)
        if raw is None:
            return None
        try:
            record = PropertyInfoRecord.model_validate(json.loads(raw))
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning("Discarding unreadable property info %s: %s", key, e)
            self.storage.remove(key)
            return None
        return record.to_domain()

    def save_property_info(self, property_id: Any, info: PropertyInfo) -> None:
        record = PropertyInfoRecord(**info.to_json())
        self.storage.set(property_info_key(property_id), json.dumps(record.model_dump(), separators=(",", ":")))

    def clear_property_info(self, property_id: Any) -> None:
        self.storage.remove(property_info_key(property_id))

    def clear_all(self, property_id: Any) -> None:
        self.clear(property_id)
        self.clear_property_info(property_id)
