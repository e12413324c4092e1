from __future__ import annotations

"""Parquet-backed table of completed evaluations using pandas + pyarrow.

Unit of data: (evaluation x category) summary rows.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

import pandas as pd

from ..results.schema import EvaluationSubmission
from .schema import DTYPES, CategoryScoreRow

DATA_FILE = "evaluation_category_scores.parquet"


def _empty_df() -> pd.DataFrame:
    return pd.DataFrame({k: pd.Series(dtype=v) for k, v in DTYPES.items()})


def init_store(data_dir: Path) -> None:
    """Ensure data directory and an empty Parquet file with the right schema exist."""
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    path = data_dir / DATA_FILE
    if not path.exists():
        _empty_df().to_parquet(path, engine="pyarrow", compression="zstd", index=False)


def rows_from_submission(
    submission: EvaluationSubmission,
    *,
    evaluation_id: Optional[str] = None,
    evaluated_at: Optional[datetime] = None,
) -> List[CategoryScoreRow]:
    eid = evaluation_id or str(uuid4())
    if evaluated_at is None:
        if submission.completed_at:
            evaluated_at = datetime.fromtimestamp(submission.completed_at / 1000, tz=timezone.utc)
        else:
            evaluated_at = datetime.now(timezone.utc)
    result = submission.result
    name = submission.property_info.name if submission.property_info else None
    return [
        CategoryScoreRow(
            evaluation_id=eid,
            evaluated_at=evaluated_at,
            property_type_id=str(submission.property_type_id),
            property_name=name,
            category_id=str(cs.category_id),
            category_name=cs.category_name,
            score=cs.score,
            max_score=cs.max_score,
            percentage=cs.percentage,
            questions_answered=cs.questions_answered,
            total_questions=cs.total_questions,
            overall_percentage=result.percentage,
            level=result.level,
        )
        for cs in result.category_scores
    ]


def _fix_dtypes(df: pd.DataFrame) -> pd.DataFrame:
    for col, dt in DTYPES.items():
        if col not in df.columns:
            df[col] = pd.NA
        df[col] = df[col].astype(dt)
    return df[list(DTYPES.keys())]


def validate_records(records: List[CategoryScoreRow]) -> pd.DataFrame:
    """Validate rows and return a DataFrame with the table dtypes."""
    if not isinstance(records, list):
        raise TypeError("records must be a list[CategoryScoreRow]")
    rows = [r if isinstance(r, CategoryScoreRow) else CategoryScoreRow.model_validate(r) for r in records]
    if not rows:
        return _empty_df()
    df = pd.DataFrame([r.model_dump() for r in rows])
    return _fix_dtypes(df)


def append_evaluation(df_new: pd.DataFrame, data_dir: Path) -> None:
    """Append rows; exact duplicate rows are dropped."""
    data_dir = Path(data_dir)
    f = data_dir / DATA_FILE
    if f.exists():
        df_old = pd.read_parquet(f, engine="pyarrow")
    else:
        data_dir.mkdir(parents=True, exist_ok=True)
        df_old = _empty_df()
    combined = pd.concat([_fix_dtypes(df_old), _fix_dtypes(df_new.copy())], ignore_index=True)
    combined = _fix_dtypes(combined).drop_duplicates()
    combined.to_parquet(f, engine="pyarrow", compression="zstd", index=False)


def load_all(data_dir: Path) -> pd.DataFrame:
    f = Path(data_dir) / DATA_FILE
    if not f.exists():
        return _empty_df()
    return _fix_dtypes(pd.read_parquet(f, engine="pyarrow"))


def query_trend(df: pd.DataFrame, *, property_type_id: str, category_id: Optional[str] = None) -> pd.DataFrame:
    """Rows for one property type (and optionally one category), oldest first."""
    mask = df["property_type_id"].astype("string") == str(property_type_id)
    if category_id is not None:
        mask &= df["category_id"].astype("string") == str(category_id)
    return df[mask].sort_values("evaluated_at").reset_index(drop=True)


class ParquetResultSink:
    """Durable-save collaborator writing category rows to the Parquet table."""

    def __init__(self, data_dir: Path | str) -> None:
        self.data_dir = Path(data_dir)

    def __call__(self, submission: EvaluationSubmission) -> None:
        init_store(self.data_dir)
        append_evaluation(validate_records(rows_from_submission(submission)), self.data_dir)
