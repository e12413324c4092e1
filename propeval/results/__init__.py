from .report import format_text_report, improvement_areas
from .schema import EvaluationSubmission

__all__ = ["EvaluationSubmission", "format_text_report", "improvement_areas"]
