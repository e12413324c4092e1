from .events import TelemetryBus, TraceTelemetry
from .session_manager import EvaluationSessionManager, InvalidTransitionError, UnknownAnswerError

__all__ = [
    "EvaluationSessionManager",
    "InvalidTransitionError",
    "TelemetryBus",
    "TraceTelemetry",
    "UnknownAnswerError",
]
