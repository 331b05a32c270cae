# ABOUTME: Loads exam-result exports into canonical ExamResult records.
# ABOUTME: Normalizes columns, coerces types, and drops rows with unusable dates.

from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from .schemas import ExamResult

REQUIRED_COLUMNS = [
    "id",
    "date",
    "score",
    "questions_answered",
    "questions_correct",
    "total_time",
    "topics_covered",
    "difficulty_level",
]
NUMERIC_COLUMNS = ["score", "questions_answered", "questions_correct", "total_time"]
SUPPORTED_SUFFIXES = (".csv", ".json", ".parquet")


def load_exam_results(path: Path) -> List[ExamResult]:
    """
    Read an exam-result export and convert it into canonical records.

    CSV, JSON (list of records) and parquet files are supported. Rows whose
    date cannot be parsed are dropped.
    """

    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(path, dtype={"id": "string"})
    elif suffix == ".json":
        df = pd.read_json(path, orient="records", dtype={"id": str}, convert_dates=False)
    elif suffix == ".parquet":
        df = pd.read_parquet(path)
    else:
        raise ValueError(f"Unsupported file type '{path.suffix}'. Expected one of: {', '.join(SUPPORTED_SUFFIXES)}.")
    return frame_to_exam_results(df)


def frame_to_exam_results(df: pd.DataFrame) -> List[ExamResult]:
    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(f"Exam results are missing required columns: {', '.join(missing)}.")

    if df.empty:
        return []

    frame = df[REQUIRED_COLUMNS].copy()
    frame["date"] = pd.to_datetime(frame["date"], utc=True, errors="coerce", format="mixed")
    frame = frame.dropna(subset=["date"])
    for column in NUMERIC_COLUMNS:
        frame[column] = pd.to_numeric(frame[column], errors="coerce").fillna(0)
    frame["score"] = frame["score"].clip(0, 100)
    frame = frame.sort_values("date", kind="mergesort").reset_index(drop=True)

    return [
        ExamResult(
            id=str(row.id),
            date=row.date.to_pydatetime(),
            score=float(row.score),
            questions_answered=int(row.questions_answered),
            questions_correct=int(row.questions_correct),
            total_time=float(row.total_time),
            topics_covered=tuple(_to_topic_list(row.topics_covered)),
            difficulty_level=_normalize_difficulty(row.difficulty_level),
        )
        for row in frame.itertuples(index=False)
    ]


def filter_by_date_range(
    results: Sequence[ExamResult],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[ExamResult]:
    """
    Keep results whose date falls within ``[start, end]``; either bound may be open.
    """

    return [
        r
        for r in results
        if (start is None or r.date >= start) and (end is None or r.date <= end)
    ]


def _to_topic_list(raw_value) -> List[str]:
    if raw_value is None:
        return []
    if isinstance(raw_value, (list, tuple)):
        return [str(v).strip() for v in raw_value if v is not None and str(v).strip()]
    if hasattr(raw_value, "tolist"):
        return _to_topic_list(raw_value.tolist())
    if isinstance(raw_value, float) and pd.isna(raw_value):
        return []
    text_value = str(raw_value).strip()
    if not text_value:
        return []
    parts = [part.strip() for part in text_value.replace(";", ",").split(",") if part.strip()]
    return parts or [text_value]


def _normalize_difficulty(raw_value) -> str:
    if raw_value is None or (isinstance(raw_value, float) and pd.isna(raw_value)):
        return "medium"
    return str(raw_value).strip().lower() or "medium"
