# ABOUTME: Fits trend lines to score time series and detects recurring patterns.
# ABOUTME: Covers OLS trend direction, weekly/seasonal/cyclical patterns, anomalies, and smoothing.

from __future__ import annotations

from datetime import datetime
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from .schemas import (
    Anomaly,
    PatternDetection,
    PerformanceCycle,
    PerformanceTrend,
    SeasonalTrend,
    TrendAnalysis,
    WeeklyPattern,
)

MIN_TREND_POINTS = 3
MIN_SEASONAL_POINTS = 30
MIN_CYCLE_POINTS = 14
MIN_ANOMALY_POINTS = 10
CYCLE_WINDOW = 7
FULL_CONFIDENCE_SAMPLES = 20
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
# Sunday=0 ... Saturday=6
WEEKEND_DAYS = (0, 6)


def analyze_performance_trend(trends: Sequence[PerformanceTrend]) -> TrendAnalysis:
    """
    Classify the direction and strength of a score series with ordinary least squares.

    Scores are regressed against their sequential index after sorting by date.
    Fewer than three points yield a neutral, zero-confidence analysis whose
    prediction is simply the last observed score.
    """

    if len(trends) < MIN_TREND_POINTS:
        last_score = float(trends[-1].score) if trends else 0.0
        return TrendAnalysis(
            direction="stable",
            strength="weak",
            confidence=0.0,
            slope=0.0,
            r_squared=0.0,
            prediction=last_score,
        )

    ordered = _chronological(trends)
    n = len(ordered)
    slope, intercept, r_squared = _linear_regression([t.score for t in ordered])

    if abs(slope) < 0.1:
        direction = "stable"
    else:
        direction = "improving" if slope > 0 else "declining"

    if r_squared < 0.3:
        strength = "weak"
    elif r_squared < 0.7:
        strength = "moderate"
    else:
        strength = "strong"

    confidence = r_squared * min(1.0, n / FULL_CONFIDENCE_SAMPLES) * 100
    prediction = min(100.0, max(0.0, slope * n + intercept))

    return TrendAnalysis(
        direction=direction,
        strength=strength,
        confidence=round(confidence, 2),
        slope=round(slope, 2),
        r_squared=round(r_squared, 2),
        prediction=round(prediction, 2),
    )


def detect_patterns(trends: Sequence[PerformanceTrend]) -> PatternDetection:
    ordered = _chronological(trends)
    return PatternDetection(
        weekly_patterns=analyze_weekly_patterns(ordered),
        seasonal_trends=analyze_seasonal_trends(ordered),
        performance_cycles=detect_performance_cycles(ordered),
        anomalies=detect_anomalies(ordered),
    )


def analyze_weekly_patterns(trends: Sequence[PerformanceTrend]) -> Tuple[WeeklyPattern, ...]:
    if not trends:
        return ()

    frame = pd.DataFrame(
        {
            "day_of_week": [day_of_week(t.date) for t in trends],
            "score": [float(t.score) for t in trends],
        }
    )
    patterns = []
    for day, scores in frame.groupby("day_of_week", sort=True)["score"]:
        values = scores.to_numpy()
        consistency = max(0.0, 100 - float(np.sqrt(np.var(values))))
        patterns.append(
            WeeklyPattern(
                day_of_week=int(day),
                average_performance=round(float(values.mean()), 2),
                consistency=round(consistency, 2),
                activity_level=len(values),
            )
        )
    return tuple(patterns)


def analyze_seasonal_trends(trends: Sequence[PerformanceTrend]) -> Tuple[SeasonalTrend, ...]:
    """
    Compare each month-of-year mean score to the overall mean.

    The same month in different years pools into one period, labelled "Jan"
    through "Dec" in order of first appearance.

    Needs at least thirty points; months within two points of the overall
    mean are reported as stable.
    """

    if len(trends) < MIN_SEASONAL_POINTS:
        return ()

    frame = pd.DataFrame(
        {
            "month": [t.date.month for t in trends],
            "score": [float(t.score) for t in trends],
        }
    )
    overall = float(frame["score"].mean())
    seasonal = []
    for month, scores in frame.groupby("month", sort=False)["score"]:
        deviation = float(scores.mean()) - overall
        if abs(deviation) < 2:
            direction = "stable"
        else:
            direction = "up" if deviation > 0 else "down"
        seasonal.append(
            SeasonalTrend(
                period=MONTH_NAMES[int(month) - 1],
                trend_direction=direction,
                magnitude=round(abs(deviation), 2),
                confidence=float(min(100, len(scores) * 5)),
            )
        )
    return tuple(seasonal)


def detect_performance_cycles(trends: Sequence[PerformanceTrend]) -> Tuple[PerformanceCycle, ...]:
    if len(trends) < MIN_CYCLE_POINTS:
        return ()

    averages = _window_means([float(t.score) for t in trends], CYCLE_WINDOW)
    peaks: List[int] = []
    valleys: List[int] = []
    for i in range(1, len(averages) - 1):
        prev, current, nxt = averages[i - 1], averages[i], averages[i + 1]
        if current > prev and current > nxt:
            peaks.append(i)
        if current < prev and current < nxt:
            valleys.append(i)

    if len(peaks) < 2 or len(valleys) < 2:
        return ()

    intervals = np.diff(peaks)
    amplitude = np.mean([averages[i] for i in peaks]) - np.mean([averages[i] for i in valleys])
    return (
        PerformanceCycle(
            cycle_length=int(round(float(intervals.mean()))),
            peak_performance_day=int(round(float(np.mean([i % 7 for i in peaks])))),
            low_performance_day=int(round(float(np.mean([i % 7 for i in valleys])))),
            amplitude=round(float(amplitude), 2),
        ),
    )


def detect_anomalies(trends: Sequence[PerformanceTrend]) -> Tuple[Anomaly, ...]:
    """
    Flag points whose score sits more than two standard deviations from the mean.
    """

    if len(trends) < MIN_ANOMALY_POINTS:
        return ()

    scores = np.array([float(t.score) for t in trends])
    mean = float(scores.mean())
    threshold = 2 * float(scores.std())

    anomalies = []
    for index, trend in enumerate(trends):
        deviation = abs(float(trend.score) - mean)
        if deviation <= threshold:
            continue
        anomalies.append(
            Anomaly(
                date=trend.date,
                expected_score=round(mean, 2),
                actual_score=float(trend.score),
                deviation=round(deviation, 2),
                possible_causes=_possible_causes(trends, index),
            )
        )
    return tuple(anomalies)


def calculate_moving_average(
    trends: Sequence[PerformanceTrend], window_size: int = CYCLE_WINDOW
) -> Tuple[PerformanceTrend, ...]:
    """
    Smooth a series with a trailing window; each point carries its window-end date.
    """

    if window_size < 1:
        raise ValueError(f"window_size must be positive, got {window_size}.")

    ordered = _chronological(trends)
    scores = _window_means([float(t.score) for t in ordered], window_size)
    questions = _window_means([float(t.questions_answered) for t in ordered], window_size)
    times = _window_means([float(t.time_spent) for t in ordered], window_size)

    smoothed = []
    for offset, end in enumerate(ordered[window_size - 1 :]):
        smoothed.append(
            PerformanceTrend(
                date=end.date,
                score=round(scores[offset], 2),
                questions_answered=int(round(questions[offset])),
                time_spent=int(round(times[offset])),
                topics_covered=tuple(end.topics_covered),
            )
        )
    return tuple(smoothed)


def day_of_week(moment: datetime) -> int:
    """Weekday index with Sunday=0 through Saturday=6."""
    return (moment.weekday() + 1) % 7


def _chronological(trends: Sequence[PerformanceTrend]) -> List[PerformanceTrend]:
    return sorted(trends, key=lambda t: t.date)


def _linear_regression(scores: Sequence[float]) -> Tuple[float, float, float]:
    y = np.asarray(scores, dtype=float)
    n = len(y)
    x = np.arange(n, dtype=float)

    denominator = n * (x * x).sum() - x.sum() ** 2
    slope = (n * (x * y).sum() - x.sum() * y.sum()) / denominator if denominator else 0.0
    intercept = (y.sum() - slope * x.sum()) / n

    ss_total = float(((y - y.mean()) ** 2).sum())
    ss_residual = float(((y - (slope * x + intercept)) ** 2).sum())
    # A flat series has nothing to explain.
    r_squared = 1 - ss_residual / ss_total if ss_total > 0 else 0.0
    return float(slope), float(intercept), min(1.0, max(0.0, r_squared))


def _window_means(values: Sequence[float], window_size: int) -> List[float]:
    return [
        float(np.mean(values[end - window_size + 1 : end + 1]))
        for end in range(window_size - 1, len(values))
    ]


def _possible_causes(trends: Sequence[PerformanceTrend], index: int) -> Tuple[str, ...]:
    point = trends[index]
    causes: List[str] = []

    if day_of_week(point.date) in WEEKEND_DAYS:
        causes.append("Weekend effect")

    average_time = float(np.mean([t.time_spent for t in trends]))
    if point.time_spent > average_time * 1.5:
        causes.append("Extended study session")
    elif point.time_spent < average_time * 0.5:
        causes.append("Shortened study session")

    if index > 0:
        gap_days = (point.date - trends[index - 1].date).total_seconds() / 86400
        if gap_days > 3:
            causes.append("Return after break")

    others = [set(t.topics_covered) for i, t in enumerate(trends) if i != index]
    cutoff = len(others) * 0.3
    if any(sum(1 for topics in others if topic in topics) < cutoff for topic in set(point.topics_covered)):
        causes.append("New or uncommon topics")

    return tuple(causes) or ("Unknown factors",)
