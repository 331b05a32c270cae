# ABOUTME: Converts exam results into aggregate and segmented performance metrics.
# ABOUTME: Provides overall, per-topic, per-difficulty, per-day, comparison, and efficiency views.

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .schemas import (
    DIFFICULTY_LEVELS,
    DetailedPerformance,
    DifficultyPerformance,
    ExamResult,
    FatigueIndicator,
    PerformanceComparison,
    PerformanceMetrics,
    PerformanceTrend,
    StudyEfficiency,
    TimeBasedPerformance,
    TopicPerformance,
)

PASSING_SCORE = 70.0
MAX_PLAUSIBLE_DEVIATION = 50.0
LONG_SESSION_SECONDS = 3600
DEFAULT_OPTIMAL_DURATION = 30


def calculate_overall_metrics(
    results: Sequence[ExamResult], as_of: Optional[datetime] = None
) -> PerformanceMetrics:
    """
    Aggregate a set of exam results into a single metrics record.

    Empty input yields zeroed metrics with a perfect consistency score.
    """

    if not results:
        return PerformanceMetrics(consistency=100.0)

    total_answered = sum(r.questions_answered for r in results)
    total_correct = sum(r.questions_correct for r in results)
    total_time = sum(r.total_time for r in results)

    accuracy = total_correct / total_answered * 100 if total_answered > 0 else 0.0
    average_time = total_time / total_answered if total_answered > 0 else 0.0

    return PerformanceMetrics(
        accuracy=round(min(100.0, max(0.0, accuracy)), 2),
        average_time=round(average_time, 2),
        improvement=round(_improvement(results), 2),
        consistency=round(_consistency(results), 2),
        efficiency=round(_efficiency(results), 2),
        streak=_streak(results, as_of),
    )


def calculate_detailed_performance(
    results: Sequence[ExamResult], as_of: Optional[datetime] = None
) -> DetailedPerformance:
    return DetailedPerformance(
        overall=calculate_overall_metrics(results, as_of),
        by_topic=calculate_topic_performance(results, as_of),
        by_difficulty=calculate_difficulty_performance(results, as_of),
        by_time_period=calculate_time_based_performance(results, as_of),
        trends=calculate_trends(results),
    )


def calculate_topic_performance(
    results: Sequence[ExamResult], as_of: Optional[datetime] = None
) -> Tuple[TopicPerformance, ...]:
    """
    Group results by every topic they cover and score each group.

    A result covering N topics contributes to all N groups. Topics keep the
    order in which they first appear.
    """

    frame = _results_frame(results)
    if frame.empty:
        return ()

    exploded = frame.explode("topics").dropna(subset=["topics"])
    performances: List[TopicPerformance] = []
    for topic, group in exploded.groupby("topics", sort=False):
        topic_results = [results[pos] for pos in group["position"]]
        metrics = calculate_overall_metrics(topic_results, as_of)
        mastery_level = min(100.0, metrics.accuracy * (metrics.consistency / 100))
        performances.append(
            TopicPerformance(
                topic=str(topic),
                metrics=metrics,
                question_count=int(sum(r.questions_answered for r in topic_results)),
                time_spent=float(sum(r.total_time for r in topic_results)),
                mastery_level=round(mastery_level, 2),
                last_practiced=max(r.date for r in topic_results),
            )
        )
    return tuple(performances)


def calculate_difficulty_performance(
    results: Sequence[ExamResult], as_of: Optional[datetime] = None
) -> Tuple[DifficultyPerformance, ...]:
    buckets = []
    for difficulty in DIFFICULTY_LEVELS:
        bucket = [r for r in results if str(r.difficulty_level).strip().lower() == difficulty]
        passed = sum(1 for r in bucket if r.score >= PASSING_SCORE)
        success_rate = passed / len(bucket) * 100 if bucket else 0.0
        buckets.append(
            DifficultyPerformance(
                difficulty=difficulty,
                metrics=calculate_overall_metrics(bucket, as_of),
                question_count=int(sum(r.questions_answered for r in bucket)),
                success_rate=round(success_rate, 2),
                average_attempts=len(bucket),
            )
        )
    return tuple(buckets)


def calculate_time_based_performance(
    results: Sequence[ExamResult], as_of: Optional[datetime] = None
) -> Tuple[TimeBasedPerformance, ...]:
    frame = _results_frame(results)
    if frame.empty:
        return ()

    periods = []
    for day, group in frame.groupby("day", sort=True):
        day_results = [results[pos] for pos in group["position"]]
        periods.append(
            TimeBasedPerformance(
                period="daily",
                date=day,
                metrics=calculate_overall_metrics(day_results, as_of),
                exams_taken=len(day_results),
                total_time=float(sum(r.total_time for r in day_results)),
            )
        )
    return tuple(periods)


def calculate_trends(results: Sequence[ExamResult]) -> Tuple[PerformanceTrend, ...]:
    return tuple(
        PerformanceTrend(
            date=r.date,
            score=r.score,
            questions_answered=r.questions_answered,
            time_spent=r.total_time,
            topics_covered=tuple(r.topics_covered),
        )
        for r in sorted(results, key=lambda r: r.date)
    )


def calculate_comparison(
    current: Sequence[ExamResult], previous: Sequence[ExamResult]
) -> PerformanceComparison:
    """
    Compare two periods; speed improves when average time per question drops.
    """

    cur = calculate_overall_metrics(current)
    prev = calculate_overall_metrics(previous)

    change = (cur.accuracy - prev.accuracy) / prev.accuracy * 100 if prev.accuracy > 0 else 0.0

    improving: List[str] = []
    declining: List[str] = []
    # (area, current, previous, higher_is_better)
    for area, cur_value, prev_value, higher_is_better in (
        ("accuracy", cur.accuracy, prev.accuracy, True),
        ("speed", cur.average_time, prev.average_time, False),
        ("consistency", cur.consistency, prev.consistency, True),
    ):
        if cur_value == prev_value:
            continue
        if (cur_value > prev_value) == higher_is_better:
            improving.append(area)
        else:
            declining.append(area)

    return PerformanceComparison(
        current_period=cur,
        previous_period=prev,
        change_percentage=round(change, 2),
        improvement_areas=tuple(improving),
        declining_areas=tuple(declining),
    )


def calculate_study_efficiency(results: Sequence[ExamResult]) -> StudyEfficiency:
    if not results:
        return StudyEfficiency(
            questions_per_hour=0.0,
            accuracy_per_minute=0.0,
            optimal_study_duration=DEFAULT_OPTIMAL_DURATION,
            fatigue_indicators=(),
            peak_performance_times=(),
        )

    total_answered = sum(r.questions_answered for r in results)
    total_hours = sum(r.total_time for r in results) / 3600
    questions_per_hour = total_answered / total_hours if total_hours > 0 else 0.0

    per_minute = [
        (r.score / 100) / (r.total_time / 60) if r.total_time > 0 else 0.0 for r in results
    ]

    return StudyEfficiency(
        questions_per_hour=round(questions_per_hour, 2),
        accuracy_per_minute=round(float(np.mean(per_minute)), 2),
        optimal_study_duration=_optimal_duration(results),
        fatigue_indicators=_fatigue_indicators(results),
        peak_performance_times=_peak_performance_times(results),
    )


def _results_frame(results: Sequence[ExamResult]) -> pd.DataFrame:
    if not results:
        return pd.DataFrame(columns=["position", "day", "topics", "score", "total_time", "hour"])
    return pd.DataFrame(
        {
            "position": range(len(results)),
            "day": [r.date.date() for r in results],
            # Repeated labels within one result count once.
            "topics": [list(dict.fromkeys(r.topics_covered)) for r in results],
            "score": [float(r.score) for r in results],
            "total_time": [float(r.total_time) for r in results],
            "hour": [r.date.hour for r in results],
        }
    )


def _improvement(results: Sequence[ExamResult]) -> float:
    if len(results) < 2:
        return 0.0
    ordered = sorted(results, key=lambda r: r.date)
    half = len(ordered) // 2
    first = np.mean([r.score for r in ordered[:half]])
    second = np.mean([r.score for r in ordered[half:]])
    return float(second - first)


def _consistency(results: Sequence[ExamResult]) -> float:
    if len(results) < 2:
        return 100.0
    std = float(np.std([r.score for r in results]))
    return max(0.0, 100 - std / MAX_PLAUSIBLE_DEVIATION * 100)


def _efficiency(results: Sequence[ExamResult]) -> float:
    scores = []
    for r in results:
        minutes = r.total_time / 60
        questions_per_minute = r.questions_answered / minutes if minutes > 0 else 0.0
        scores.append(questions_per_minute * (r.score / 100))
    return float(np.mean(scores)) if scores else 0.0


def _streak(results: Sequence[ExamResult], as_of: Optional[datetime]) -> int:
    ordered = sorted(results, key=lambda r: r.date, reverse=True)
    if not ordered:
        return 0

    anchor = as_of if as_of is not None else ordered[0].date
    streak = 0
    for result in ordered:
        days_apart = (anchor - result.date).days
        if days_apart > 1 or result.score < PASSING_SCORE:
            break
        streak += 1
        anchor = result.date
    return streak


def _optimal_duration(results: Sequence[ExamResult]) -> int:
    frame = _results_frame(results)
    frame["bucket"] = (frame["total_time"] // 600 * 10).astype(int)
    # idxmax keeps the first-seen bucket on ties
    means = frame.groupby("bucket", sort=False)["score"].mean()
    if means.empty or means.max() <= 0:
        return DEFAULT_OPTIMAL_DURATION
    return int(means.idxmax())


def _fatigue_indicators(results: Sequence[ExamResult]) -> Tuple[FatigueIndicator, ...]:
    indicators = []
    for r in results:
        if r.total_time <= LONG_SESSION_SECONDS:
            continue
        per_question = r.total_time / r.questions_answered if r.questions_answered > 0 else 0.0
        indicators.append(
            FatigueIndicator(
                session_duration=r.total_time,
                accuracy_decline=max(0.0, 80 - r.score),
                response_time_increase=round(max(0.0, per_question - 60), 2),
                error_rate_increase=max(0.0, (100 - r.score) - 20),
            )
        )
    return tuple(indicators)


def _peak_performance_times(results: Sequence[ExamResult]) -> Tuple[str, ...]:
    frame = _results_frame(results)
    hourly = frame.groupby("hour", sort=False)["score"].mean()
    top = hourly.sort_values(ascending=False, kind="mergesort").head(3)
    return tuple(f"{int(hour)}:00" for hour in top.index)
